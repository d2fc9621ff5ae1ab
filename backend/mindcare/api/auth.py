"""
Authentication API endpoints.
"""

import logging
import uuid
from fastapi import APIRouter, HTTPException, status, Depends

from .errors import handle_service_errors
from ..models import UserCreate, UserLogin, Token, User
from ..storage.user_storage import get_user_storage
from ..utils.auth import (
    authenticate_user,
    create_access_token,
    get_password_hash,
    get_current_user_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _public_user(user: dict) -> User:
    return User(**{k: v for k, v in user.items() if k != 'hashed_password'})


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def register(user_data: UserCreate):
    """
    Register a new user.

    Raises:
        HTTPException: 409 if the email is already registered
    """
    user = await get_user_storage().create_user(
        user_id=uuid.uuid4().hex,
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
    )
    return _public_user(user)


@router.post("/login", response_model=Token)
@handle_service_errors
async def login(credentials: UserLogin):
    """
    Login and get an access token.

    Raises:
        HTTPException: 401 if the email or password is wrong
    """
    user = await authenticate_user(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user["user_id"], "email": user["email"]})
    logger.info(f"User logged in: {user['user_id']}")
    return Token(user=_public_user(user), access_token=access_token)


@router.get("/me", response_model=User)
@handle_service_errors
async def get_current_user(user_id: str = Depends(get_current_user_id)):
    """Get current user information."""
    user = await get_user_storage().get_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _public_user(user)


@router.post("/logout")
async def logout(user_id: str = Depends(get_current_user_id)):
    """Logout. Tokens are stateless; the client discards its token."""
    logger.info(f"User logged out: {user_id}")
    return {"message": "Logged out successfully"}
