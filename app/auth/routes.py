from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.auth.schemas import UserCreate, UserLogin, UserResponse, Token, RefreshTokenRequest
from app.auth.service import AuthService
from app.core.security import verify_token
from app.core.dependencies import get_current_user
from app.core.exceptions import InvalidTokenError

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user account."""
    return AuthService(db).create_user(user_data)


@router.post("/login", response_model=Token)
async def login_user(login_data: UserLogin, db: Session = Depends(get_db)):
    """Login user and return JWT tokens."""
    auth_service = AuthService(db)
    user = auth_service.authenticate_user(login_data)
    return auth_service.create_tokens(user)


@router.post("/refresh", response_model=Token)
async def refresh_token(request: RefreshTokenRequest, db: Session = Depends(get_db)):
    """Refresh access token using refresh token."""
    payload = verify_token(request.refresh_token, "refresh")
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid refresh token")

    auth_service = AuthService(db)
    user = auth_service.get_user_by_id(user_id)
    if not user or not user.is_active:
        raise InvalidTokenError("User not found or inactive")

    return auth_service.create_tokens(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user = Depends(get_current_user)):
    """Get current user information."""
    return current_user
