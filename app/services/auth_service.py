from datetime import datetime, timezone
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Role, User
from app.schemas.user import StudentRegister, TokenResponse
from app.utils.security import (
    REFRESH_TOKEN,
    create_tokens,
    decode_token,
    hash_password,
    verify_password,
)
from core.exceptions.base import BadRequestException, UnauthorizedException
from core.logging import get_logger

logger = get_logger(__name__)


def _tokens_for(user: User) -> TokenResponse:
    access_token, refresh_token = create_tokens(user.id, user.role.value)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def register_student(self, data: StudentRegister) -> Tuple[User, TokenResponse]:
        """Register a new student account."""
        if await User.get_by_email(self.db_session, data.email):
            raise BadRequestException(message="Email already registered")

        if await User.get_by_roll_number(self.db_session, data.roll_number):
            raise BadRequestException(message="Roll number already registered")

        user = await User.create_user(
            db_session=self.db_session,
            email=data.email,
            name=data.name,
            hashed_password=hash_password(data.password),
            role=Role.STUDENT,
            roll_number=data.roll_number,
        )
        return user, _tokens_for(user)

    async def create_admin(self, email: str, name: str, password: str) -> User:
        """Create an administrator account."""
        if await User.get_by_email(self.db_session, email):
            raise BadRequestException(message="Email already registered")

        user = await User.create_user(
            db_session=self.db_session,
            email=email,
            name=name,
            hashed_password=hash_password(password),
            role=Role.ADMIN,
        )
        logger.info(f"Administrator created: {user.id}")
        return user

    async def login(self, email: str, password: str) -> Tuple[User, TokenResponse]:
        """Authenticate a student or administrator with email and password."""
        user = await User.get_by_email(self.db_session, email)

        if not user or not verify_password(password, user.hashed_password):
            raise UnauthorizedException(message="Invalid email or password")

        if not user.is_active:
            raise UnauthorizedException(message="Account is deactivated")

        user.last_login = datetime.now(timezone.utc)
        await self.db_session.commit()

        return user, _tokens_for(user)

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """Issue new tokens from a refresh token."""
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN)

        user = await User.get_by_id(self.db_session, payload.get("sub"))
        if not user or not user.is_active:
            raise UnauthorizedException(message="User not found or inactive")

        return _tokens_for(user)
