from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user
from app.models.user import User
from app.schemas.user import (
    RefreshTokenRequest,
    StudentRegister,
    TokenResponse,
    UserLogin,
    UserResponse,
)
from app.services.auth_service import AuthService
from core.db import get_db
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register")
async def register(
    data: StudentRegister,
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Register a new student.

    Returns user data and authentication tokens.
    """
    logger.info(f"Register request for roll number: {data.roll_number}")
    service = AuthService(db_session)
    user, tokens = await service.register_student(data)
    logger.info(f"Student registered successfully: {user.id}")
    return {
        "user": UserResponse.model_validate(user),
        "tokens": tokens,
    }


@router.post("/token", response_model=TokenResponse)
async def login_for_swagger(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db_session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    OAuth2 compatible token endpoint for Swagger UI.

    Username field expects email address.
    """
    service = AuthService(db_session)
    user, tokens = await service.login(form_data.username, form_data.password)
    logger.info(f"User logged in via OAuth2 form: {user.id}")
    return tokens


@router.post("/login", response_model=TokenResponse)
async def login(
    data: UserLogin,
    db_session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Authenticate a student or administrator with email and password."""
    service = AuthService(db_session)
    user, tokens = await service.login(data.email, data.password)
    logger.info(f"User logged in successfully: {user.id}")
    return tokens


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db_session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Refresh access token using refresh token."""
    service = AuthService(db_session)
    return await service.refresh_token(data.refresh_token)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Get the signed-in user's profile."""
    return UserResponse.model_validate(current_user)
