import enum
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Enum, String, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, TimestampMixin


class Role(str, enum.Enum):
    """User roles in the system."""
    STUDENT = "student"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    """Portal account for a student or an administrator."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    roll_number: Mapped[Optional[str]] = mapped_column(
        String(50), unique=True, nullable=True
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        default=Role.STUDENT,
        nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalize emails so uniqueness checks are case-insensitive."""
        return email.strip().lower()

    @classmethod
    async def get_by_id(
        cls, db_session: AsyncSession, id: str
    ) -> Optional["User"]:
        """Get user by ID."""
        result = await db_session.execute(select(cls).where(cls.id == id))
        return result.scalars().first()

    @classmethod
    async def get_by_email(
        cls, db_session: AsyncSession, email: str
    ) -> Optional["User"]:
        """Get user by email."""
        result = await db_session.execute(
            select(cls).where(cls.email == cls.normalize_email(email))
        )
        return result.scalars().first()

    @classmethod
    async def get_by_roll_number(
        cls, db_session: AsyncSession, roll_number: str
    ) -> Optional["User"]:
        """Get student by college roll number."""
        result = await db_session.execute(
            select(cls).where(cls.roll_number == roll_number.strip())
        )
        return result.scalars().first()

    @classmethod
    async def create_user(
        cls,
        db_session: AsyncSession,
        email: str,
        name: str,
        hashed_password: str,
        role: Role = Role.STUDENT,
        roll_number: Optional[str] = None,
    ) -> "User":
        """Create a new user."""
        user = cls(
            email=cls.normalize_email(email),
            name=name.strip(),
            hashed_password=hashed_password,
            role=role,
            roll_number=roll_number.strip() if roll_number else None,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
