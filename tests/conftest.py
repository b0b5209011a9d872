"""
Labor Administration - Test Configuration

Pytest fixtures and configuration.

Tests run against an in-memory SQLite database (aiosqlite). Environment
variables are set before the application is imported so settings never read a
real .env database.
"""

import os
import tempfile

os.environ["APP_ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL_ASYNC"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["LEAVE_SWEEP_ON_STARTUP"] = "false"
os.environ["STORAGE_LOCAL_PATH"] = tempfile.mkdtemp(prefix="laborhr-uploads-")

from datetime import date
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_async_session
from app.models.user import User, UserRole
from app.models.hr import Worker
from app.schemas.worker import WorkerCreate
from app.services.file_storage_service import FileStorageService, PdfUpload
from app.services.worker_service import WorkerService
from app.utils.security import create_access_token, get_password_hash
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Valid RUTs used across the suite
HR_RUT = "11.111.111-1"
USER_RUT = "12.345.678-5"
OTHER_RUT = "28.123.456-0"

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client; every request gets its own session on the test database."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def storage(tmp_path) -> FileStorageService:
    """File storage rooted in a temporary directory."""
    return FileStorageService(base_path=str(tmp_path / "uploads"))


@pytest.fixture
def pdf_upload() -> PdfUpload:
    return PdfUpload(filename="certificado.pdf", content_type="application/pdf", content=PDF_BYTES)


# ===========================================
# DATA FIXTURES
# ===========================================

async def _create_user(db_session: AsyncSession, email: str, rut: str, role: UserRole) -> User:
    user = User(
        id=uuid4(),
        name=f"{role.value.title()} Test",
        rut=rut,
        email=email,
        hashed_password=get_password_hash("Password123"),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def hr_user(db_session: AsyncSession) -> User:
    """An HR user."""
    return await _create_user(db_session, "rrhh@example.com", HR_RUT, UserRole.HR)


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """A regular user whose RUT matches test_worker."""
    return await _create_user(db_session, "trabajador@example.com", USER_RUT, UserRole.USER)


@pytest_asyncio.fixture
async def management_user(db_session: AsyncSession) -> User:
    """A management (read-only HR) user."""
    return await _create_user(db_session, "gerencia@example.com", "9.876.543-3", UserRole.MANAGEMENT)


def worker_payload(**overrides) -> dict:
    data = {
        "rut": USER_RUT,
        "first_names": "Ana María",
        "paternal_surname": "González",
        "maternal_surname": "Pérez",
        "birth_date": date(1990, 5, 17),
        "phone": "+56912345678",
        "email": "ana.gonzalez@example.com",
        "address": "Av. Providencia 1234, Santiago",
        "hire_date": date(2024, 1, 1),
        "job_title": "Analista",
        "department": "Finanzas",
        "contract_type": "Indefinido",
        "work_schedule": "Lunes a viernes",
        "base_salary": 1000000,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_worker_payload():
    """Factory of valid worker registration payloads."""
    return worker_payload


@pytest_asyncio.fixture
async def test_worker(db_session: AsyncSession, hr_user: User) -> Worker:
    """A worker hired 2024-01-01, sharing the RUT of regular_user."""
    worker, error = await WorkerService(db_session).create_worker(
        WorkerCreate(**worker_payload()), acting_user_id=hr_user.id,
    )
    assert error is None
    return worker


@pytest_asyncio.fixture
async def other_worker(db_session: AsyncSession, hr_user: User) -> Worker:
    """A second worker not linked to any user."""
    worker, error = await WorkerService(db_session).create_worker(
        WorkerCreate(**worker_payload(
            rut=OTHER_RUT,
            first_names="Pedro",
            paternal_surname="Soto",
            maternal_surname="Muñoz",
            email="pedro.soto@example.com",
        )),
        acting_user_id=hr_user.id,
    )
    assert error is None
    return worker


def _auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def hr_headers(hr_user: User) -> dict:
    """Authorization headers for the HR user."""
    return _auth_headers(hr_user)


@pytest.fixture
def user_headers(regular_user: User) -> dict:
    """Authorization headers for the regular user."""
    return _auth_headers(regular_user)


@pytest.fixture
def management_headers(management_user: User) -> dict:
    """Authorization headers for the management user."""
    return _auth_headers(management_user)
