import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from expenseflow.core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from expenseflow.db.store import UserStore, get_user_store
from expenseflow.models.user import TokenResponse, UserCreate, UserInDB, UserLogin, UserPublic

router = APIRouter()
logger = logging.getLogger(__name__)


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Extract user_id from the bearer token."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token required")

    token = authorization[len("Bearer "):]
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user_id


def _token_response(user: dict) -> TokenResponse:
    return TokenResponse(
        token=create_access_token(data={"sub": user["user_id"]}),
        user=UserPublic(**user),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def signup(user: UserCreate, users: UserStore = Depends(get_user_store)):
    email = user.email.lower()
    if users.get_user_by_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    user_db = UserInDB(
        email=email,
        name=user.name,
        password_hash=get_password_hash(user.password),
    )
    users.put_user(user_db.model_dump())
    logger.info(f"Registered user {user_db.user_id}")
    return _token_response(user_db.model_dump())


@router.post("/login", response_model=TokenResponse)
def login(login_data: UserLogin, users: UserStore = Depends(get_user_store)):
    user = users.get_user_by_email(login_data.email.lower())
    if not user or not verify_password(login_data.password, user["password_hash"]):
        logger.warning(f"Failed login for {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info(f"Login successful for user {user['user_id']}")
    return _token_response(user)


@router.post("/logout")
def logout(user_id: str = Depends(get_current_user_id)):
    # Tokens are stateless; the client drops its copy.
    logger.info(f"Logout for user {user_id}")
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserPublic)
def get_current_user(user_id: str = Depends(get_current_user_id), users: UserStore = Depends(get_user_store)):
    """Get current user profile"""
    user = users.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPublic(**user)
