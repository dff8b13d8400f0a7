from datetime import date

from expenseflow.db.memory import InMemoryExpenseStore
from expenseflow.db.store import get_expense_store
from expenseflow.main import app

from helpers import auth_headers, make_expense

ALICE = auth_headers("alice")
BOB = auth_headers("bob")


def create(client, headers=ALICE, **body):
    payload = {"description": "Coffee", "amount": 3.5, "category": "Food", "date": "2024-03-01"}
    payload.update(body)
    return client.post("/api/expenses", json=payload, headers=headers)


def test_requires_token(client):
    assert client.get("/api/expenses").status_code == 401
    assert client.get("/api/expenses", headers={"Authorization": "Bearer nonsense"}).status_code == 401


def test_create_and_fetch(client):
    response = create(client, description="  Flat white ", category=" Food ", amount="4.255")
    assert response.status_code == 201
    body = response.json()
    assert body["description"] == "Flat white"
    assert body["category"] == "Food"
    assert body["amount"] == 4.26
    assert body["ownerId"] == "alice"
    assert body["date"] == "2024-03-01"
    assert "createdAt" in body

    fetched = client.get(f"/api/expenses/{body['id']}", headers=ALICE)
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_defaults_date_to_today(client):
    body = {"description": "Snack", "amount": 2, "category": "Food"}
    response = client.post("/api/expenses", json=body, headers=ALICE)
    assert response.status_code == 201
    assert date.fromisoformat(response.json()["date"]) >= date(2024, 1, 1)


def test_create_accepts_timestamp_dates(client):
    response = create(client, date="2024-03-05T18:45:00.000Z")
    assert response.json()["date"] == "2024-03-05"


def test_create_rejects_missing_and_bad_fields(client):
    response = client.post("/api/expenses", json={"amount": 5}, headers=ALICE)
    assert response.status_code == 400
    assert set(response.json()["fields"]) == {"description", "category"}

    assert create(client, amount=-1).status_code == 400
    assert create(client, amount="lots").status_code == 400
    assert create(client, description="   ").status_code == 400
    assert create(client, date="not-a-date").status_code == 400


def test_other_users_record_is_not_found(client):
    expense_id = create(client).json()["id"]

    assert client.get(f"/api/expenses/{expense_id}", headers=BOB).status_code == 404
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": 1}, headers=BOB).status_code == 404
    assert client.delete(f"/api/expenses/{expense_id}", headers=BOB).status_code == 404
    assert client.get(f"/api/expenses/{expense_id}", headers=ALICE).json()["amount"] == 3.5


def test_partial_update(client):
    created = create(client).json()
    response = client.put(f"/api/expenses/{created['id']}", json={"amount": 9.99}, headers=ALICE)
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 9.99
    assert body["description"] == created["description"]
    assert body["createdAt"] == created["createdAt"]


def test_update_rejects_empty_and_null(client):
    expense_id = create(client).json()["id"]
    assert client.put(f"/api/expenses/{expense_id}", json={}, headers=ALICE).status_code == 400
    assert client.put(f"/api/expenses/{expense_id}", json={"category": None}, headers=ALICE).status_code == 400


def test_delete(client):
    expense_id = create(client).json()["id"]
    response = client.delete(f"/api/expenses/{expense_id}", headers=ALICE)
    assert response.status_code == 200
    assert response.json() == {"message": "Expense deleted successfully"}
    assert client.get(f"/api/expenses/{expense_id}", headers=ALICE).status_code == 404
    assert client.delete(f"/api/expenses/{expense_id}", headers=ALICE).status_code == 404


def test_list_shape_and_pagination(client, expense_store):
    for i in range(5):
        expense_store.put_expense(make_expense("alice", f"item {i}", i + 1, "Misc", date(2024, 2, i + 1)))
    expense_store.put_expense(make_expense("bob", "not yours", 100, "Misc", "2024-02-10"))

    response = client.get("/api/expenses", params={"page": 2, "limit": 2}, headers=ALICE)
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}
    assert [item["description"] for item in body["expenses"]] == ["item 2", "item 1"]
    assert all(item["ownerId"] == "alice" for item in body["expenses"])


def test_list_filters(client, expense_store):
    expense_store.put_expense(make_expense("alice", "Morning COFFEE", 4, "Food", "2024-01-10"))
    expense_store.put_expense(make_expense("alice", "Coffee beans", 18, "Groceries", "2024-02-10"))
    expense_store.put_expense(make_expense("alice", "Train", 30, "Transport", "2024-02-11"))

    def descriptions(**params):
        response = client.get("/api/expenses", params=params, headers=ALICE)
        assert response.status_code == 200
        return [item["description"] for item in response.json()["expenses"]]

    assert descriptions(search="coffee", sortBy="amount", sortOrder="asc") == ["Morning COFFEE", "Coffee beans"]
    assert descriptions(category="Transport") == ["Train"]
    assert descriptions(startDate="2024-02-01") == ["Train", "Coffee beans"]
    assert descriptions(endDate="2024-02-10") == ["Coffee beans", "Morning COFFEE"]
    assert descriptions(minAmount="10", maxAmount="20") == ["Coffee beans"]
    assert descriptions(minAmount="50", maxAmount="10") == []
    assert descriptions(minAmount="abc") == ["Train", "Coffee beans", "Morning COFFEE"]
    assert descriptions(sortBy="password", sortOrder="asc") == ["Morning COFFEE", "Coffee beans", "Train"]
    assert descriptions(sortBy="bogus") == ["Train", "Coffee beans", "Morning COFFEE"]


def test_list_rejects_bad_dates(client):
    response = client.get("/api/expenses", params={"startDate": "31/12/2024"}, headers=ALICE)
    assert response.status_code == 400
    assert response.json()["fields"] == ["startDate"]


def test_asc_and_desc_are_mirror_images(client, expense_store):
    for i, amount in enumerate([5, 5, 7, 1, 5]):
        expense_store.put_expense(make_expense("alice", f"e{i}", amount, "Misc", "2024-01-01", expense_id=f"id-{i}"))

    def ids(order):
        response = client.get("/api/expenses", params={"sortBy": "amount", "sortOrder": order}, headers=ALICE)
        return [item["id"] for item in response.json()["expenses"]]

    assert ids("asc") == list(reversed(ids("desc")))


def test_oversized_amount_is_rejected(client):
    response = create(client, description="Yacht", amount="1e30", category="Toys")
    assert response.status_code == 400
    assert "amount" in response.json()["fields"]

    expense_id = create(client).json()["id"]
    response = client.put(f"/api/expenses/{expense_id}", json={"amount": "1e30"}, headers=ALICE)
    assert response.status_code == 400
    assert "amount" in response.json()["fields"]


def test_large_limit_returns_full_page(client, expense_store):
    for i in range(150):
        expense_store.put_expense(make_expense("alice", f"item {i}", 1, "Misc", "2024-01-01"))

    body = client.get("/api/expenses", params={"limit": 150}, headers=ALICE).json()
    assert body["pagination"] == {"page": 1, "limit": 150, "total": 150, "totalPages": 1}
    assert len(body["expenses"]) == 150


class CountingStore(InMemoryExpenseStore):
    def __init__(self):
        super().__init__()
        self.reads = 0

    def get_expense(self, owner_id, expense_id):
        self.reads += 1
        return super().get_expense(owner_id, expense_id)


def test_update_writes_without_reading_first(client):
    store = CountingStore()
    app.dependency_overrides[get_expense_store] = lambda: store
    expense_id = create(client).json()["id"]

    assert client.put(f"/api/expenses/{expense_id}", json={"amount": 2}, headers=ALICE).status_code == 200
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": 2}, headers=BOB).status_code == 404
    assert client.put("/api/expenses/missing", json={"amount": 2}, headers=ALICE).status_code == 404
    assert store.reads == 0
