"""Test configuration and fixtures for the library elements service."""

import os

# Settings are read at import time, so the test backend is selected first.
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("DATABASE_BACKEND", "sqlite")
os.environ.setdefault("SQLITE_URI", ":memory:")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.infrastructure.database.session import Base, async_session  # noqa: E402
from src.infrastructure.logging import configure_testing_logging  # noqa: E402
from src.interfaces.main import app  # noqa: E402
from src.modules.common.schemas import OrgRole, SignedInUser  # noqa: E402
from src.modules.folder.models import Folder, FolderPermission, FolderPermissionLevel  # noqa: E402
from src.modules.user.models import User  # noqa: E402

TEST_POSTGRES = os.environ.get("TEST_DATABASE_BACKEND", "sqlite") == "postgres"

configure_testing_logging()


def is_docker_running() -> bool:
    """Check if Docker daemon is running."""
    from testcontainers.core.docker_client import DockerClient

    try:
        DockerClient()
        return True
    except Exception:
        return False


@pytest.fixture(scope="session")
def test_db_url():
    """Database URL for the test run.

    In-memory SQLite by default; set ``TEST_DATABASE_BACKEND=postgres`` to run
    the suite against a throwaway Postgres container.
    """
    if not TEST_POSTGRES:
        yield "sqlite+aiosqlite:///:memory:"
        return

    if not is_docker_running():
        pytest.skip("Docker is required, but not running")

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(driver="asyncpg") as pg:
        yield pg.get_connection_url()


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(test_db_url):
    """Create a SQLAlchemy engine with a fresh schema."""
    if test_db_url.startswith("sqlite"):
        engine = create_async_engine(
            test_db_url, echo=False, connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    else:
        engine = create_async_engine(test_db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_db_engine):
    return async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory):
    """Create a test client where each request gets its own database session."""
    app.dependency_overrides = {}

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[async_session] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


async def _create_user(db: AsyncSession, org_id: int, login: str, role: OrgRole) -> SignedInUser:
    user = User(org_id=org_id, login=login, email=f"{login}@example.com", name=login.title())
    db.add(user)
    await db.commit()
    return SignedInUser(user_id=user.id, org_id=org_id, org_role=role, login=login, email=user.email)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> SignedInUser:
    return await _create_user(db_session, 1, "admin", OrgRole.ADMIN)


@pytest_asyncio.fixture
async def editor(db_session: AsyncSession) -> SignedInUser:
    return await _create_user(db_session, 1, "editor", OrgRole.EDITOR)


@pytest_asyncio.fixture
async def viewer(db_session: AsyncSession) -> SignedInUser:
    return await _create_user(db_session, 1, "viewer", OrgRole.VIEWER)


@pytest_asyncio.fixture
async def other_org_editor(db_session: AsyncSession) -> SignedInUser:
    return await _create_user(db_session, 2, "outsider", OrgRole.EDITOR)


@pytest_asyncio.fixture
async def test_folder(db_session: AsyncSession) -> dict:
    """Folder without ACL entries: viewers may view, editors may edit."""
    folder = Folder(org_id=1, uid="infra", title="Infrastructure")
    db_session.add(folder)
    await db_session.commit()
    return {"id": folder.id, "uid": folder.uid, "title": folder.title}


@pytest_asyncio.fixture
async def read_only_folder(db_session: AsyncSession) -> dict:
    """Folder whose ACL grants editors view access only, and viewers nothing."""
    folder = Folder(org_id=1, uid="audit", title="Audit")
    db_session.add(folder)
    await db_session.flush()
    db_session.add(
        FolderPermission(
            org_id=1, folder_id=folder.id, permission=FolderPermissionLevel.VIEW.value, role=OrgRole.EDITOR.value
        )
    )
    await db_session.commit()
    return {"id": folder.id, "uid": folder.uid, "title": folder.title}


@pytest_asyncio.fixture
async def other_org_folder(db_session: AsyncSession) -> dict:
    folder = Folder(org_id=2, uid="elsewhere", title="Elsewhere")
    db_session.add(folder)
    await db_session.commit()
    return {"id": folder.id, "uid": folder.uid, "title": folder.title}


@pytest.fixture
def panel_model() -> dict:
    return {"title": "ignored", "type": "graph", "description": "CPU usage per host", "gridPos": {"h": 8, "w": 12}}
