"""
expenseflow
~~~~~~~~~~~

Personal expense tracking API. Expenses are recorded per user and read back
through a filtered, sorted, paginated listing and a summary of totals,
category breakdown, a trailing monthly series and recent activity.
"""

__version__ = "1.0.0"
