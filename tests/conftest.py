import os
import tempfile
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Ensure critical settings exist before the app/config modules import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-change-me-please-0123")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="concession-uploads-"))

from app.models.concession import ConcessionApplication
from app.models.user import Role, User
from app.schemas.concession import ConcessionDraft
from app.services.file_service import DocumentStorage, get_document_storage
from app.services.lifecycle_service import LifecycleService
from app.utils.security import create_tokens, hash_password
from core.db import PersistenceGateway, get_db
from core.db.base import Base
from main import app

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FixedClock:
    """Controllable replacement for utcnow."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create and drop all tables for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for testing."""
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
async def other_session() -> AsyncGenerator[AsyncSession, None]:
    """A second, independent session, as a concurrent request would hold."""
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> DocumentStorage:
    """Document storage rooted in a per-test directory."""
    return DocumentStorage(upload_dir=str(tmp_path / "uploads"), public_base_url="http://test")


@pytest.fixture
async def client(storage: DocumentStorage) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing."""

    async def override_get_db():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def lifecycle(db_session: AsyncSession, clock: FixedClock) -> LifecycleService:
    return LifecycleService(db_session, clock=clock)


async def _create_user(
    db_session: AsyncSession,
    email: str,
    name: str,
    role: Role = Role.STUDENT,
    roll_number: Optional[str] = None,
    password: str = "TestPass123",
) -> User:
    user = User(
        email=email,
        name=name,
        roll_number=roll_number,
        hashed_password=hash_password(password),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def student_user(db_session: AsyncSession) -> User:
    """Create a test student."""
    return await _create_user(
        db_session, "student@example.com", "Asha Patil", roll_number="CE-2021-014"
    )


@pytest.fixture
async def other_student(db_session: AsyncSession) -> User:
    """Create a second student."""
    return await _create_user(
        db_session, "other@example.com", "Rahul Deshmukh", roll_number="ME-2022-031"
    )


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user."""
    return await _create_user(
        db_session, "admin@example.com", "Office Admin", role=Role.ADMIN, password="AdminPass123"
    )


def _headers(user: User) -> dict:
    access_token, _ = create_tokens(user.id, user.role.value)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers(student_user: User) -> dict:
    """Create authentication headers for the test student."""
    return _headers(student_user)


@pytest.fixture
def other_headers(other_student: User) -> dict:
    return _headers(other_student)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Create authentication headers for admin user."""
    return _headers(admin_user)


@pytest.fixture
def draft_payload():
    """Factory for a complete application form; keyword arguments override fields."""

    def _payload(**overrides) -> dict:
        payload = {
            "year": "SE",
            "category": "Open",
            "branch": "Computer",
            "from_station": "Dadar",
            "to_station": "Wardha",
            "class_type": "2nd Class",
            "railway_type": "Central Railway",
            "pass_type": "Monthly",
            "date_of_birth": "2003-05-01",
            "concession_form_no": "CF-1001",
            "season_ticket_no": "ST-77",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def make_draft(draft_payload):
    """Factory for complete drafts."""

    def _make(**overrides) -> ConcessionDraft:
        return ConcessionDraft(**draft_payload(**overrides))

    return _make


@pytest.fixture
def submit(lifecycle: LifecycleService, student_user: User, make_draft, clock: FixedClock):
    """Submit an application; each call happens one second after the previous one."""

    async def _submit(student: Optional[User] = None, **overrides) -> ConcessionApplication:
        clock.advance(seconds=1)
        return await lifecycle.submit(student or student_user, make_draft(**overrides))

    return _submit


@pytest.fixture
def set_valid_until(db_session: AsyncSession):
    """Overwrite an application's validity end directly in storage."""

    async def _set(application_id: str, valid_until: Optional[datetime]) -> None:
        await PersistenceGateway(db_session).update(
            ConcessionApplication, application_id, {"valid_until": valid_until}
        )

    return _set


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    buffer = BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
