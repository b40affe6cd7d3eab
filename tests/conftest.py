"""Pytest configuration and shared fixtures."""

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Set required environment variables for testing BEFORE importing app
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'claimdocs-test-default.db')}",
)
os.environ.setdefault("DATABASE_AUTO_MIGRATE", "false")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes!!")
os.environ.setdefault("PUBLIC_APP_ORIGIN", "https://claims.example.com")

from fastapi import UploadFile
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.datastructures import Headers

from claimdocs.core.auth import get_current_user
from claimdocs.core.database import Base, build_engine
from claimdocs.database.models import Claim, PolicyType, User
from claimdocs.main import app
from claimdocs.schemas.auth import CurrentUser
from claimdocs.services.storage_service import StorageService


@dataclass
class FakeClock:
    """Settable clock handed to services instead of the wall clock."""

    now: datetime

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_upload(
    content: bytes = b"%PDF-1.4 test document",
    filename: str = "invoice.pdf",
    content_type: str = "application/pdf",
    declare_size: bool = True,
) -> UploadFile:
    """Build an UploadFile like the one FastAPI hands to endpoints."""
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        size=len(content) if declare_size else None,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def test_client() -> TestClient:
    """FastAPI test client; lifespan is not run, so no database is touched."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def operator() -> CurrentUser:
    return CurrentUser(
        id="6c1f4c52-0d8e-4a51-9d57-1b3f1f0e2a11",
        email="adjuster@example.com",
        role="user",
        full_name="Dana Adjuster",
    )


@pytest.fixture
def admin_operator() -> CurrentUser:
    return CurrentUser(
        id="b7d0e7a4-3a55-4c5e-8f0e-5a2b6c7d8e90",
        email="admin@example.com",
        role="admin",
    )


@pytest.fixture
def authenticated(operator):
    app.dependency_overrides[get_current_user] = lambda: operator
    return operator


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock(spec=StorageService)
    storage.upload_file = AsyncMock(return_value={"Key": "claim-documents/object"})
    storage.get_signed_url = AsyncMock(
        return_value={"signed_url": "https://test.supabase.co/storage/v1/object/sign/x?token=t", "storage_path": "x"}
    )
    storage.create_download_url = AsyncMock(
        return_value="https://test.supabase.co/storage/v1/object/sign/x?token=t"
    )
    storage.delete_files = AsyncMock(return_value=None)
    return storage


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'claimdocs.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db_session):
    """One operator, one policy type requiring two documents, one claim."""
    user = User(
        supabase_user_id="6c1f4c52-0d8e-4a51-9d57-1b3f1f0e2a11",
        email="adjuster@example.com",
        full_name="Dana Adjuster",
    )
    policy_type = PolicyType(
        name="Auto",
        description="Motor vehicle policy",
        required_documents=["Invoice", "Police Report"],
    )
    db_session.add_all([user, policy_type])
    await db_session.flush()

    claim = Claim(
        user_id=user.id,
        policy_type_id=policy_type.id,
        claim_number="CLM-20260302-0001",
        title="Rear-end collision",
    )
    db_session.add(claim)
    await db_session.commit()

    return SimpleNamespace(user=user, policy_type=policy_type, claim=claim)


@pytest.fixture
def upload_file():
    """Factory for UploadFile objects."""
    return make_upload
