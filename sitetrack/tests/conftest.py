import os
import tempfile

# Settings are read at import time; keep uploads out of the real storage root
os.environ.setdefault("STORAGE_LOCAL_PATH", tempfile.mkdtemp(prefix="sitetrack-test-"))

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import date  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import JSON, event  # noqa: E402
from sqlalchemy.dialects.postgresql import JSONB  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from sitetrack.common.enums import UserRole  # noqa: E402
from sitetrack.common.security import create_access_token  # noqa: E402
from sitetrack.core.tracking.store import ProjectStore  # noqa: E402
from sitetrack.db.base import Base  # noqa: E402
from sitetrack.db.models import *  # noqa: F401,F403,E402 - ensure all models loaded
from sitetrack.db.repository import RepositoryError, SqlRepository  # noqa: E402
from sitetrack.integrations.storage import StorageClient  # noqa: E402

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


# Make JSONB render as JSON for SQLite
@event.listens_for(Base.metadata, "before_create")
def _remap_jsonb(target, connection, **kw):
    if connection.dialect.name == "sqlite":
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, JSONB):
                    column.type = JSON()


class FlakyRepository(SqlRepository):
    """SqlRepository that raises for chosen (operation, table) pairs."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.failing: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if (operation, table) in self.failing:
            raise RepositoryError(f"simulated {operation} failure on {table}")

    async def insert(self, table: str, row: dict[str, Any]) -> None:
        self._check("insert", table)
        await super().insert(table, row)

    async def update(self, table: str, row_id: str, changes: dict[str, Any]) -> None:
        self._check("update", table)
        await super().update(table, row_id, changes)

    async def update_where(self, table: str, column: str, value: Any, changes: dict[str, Any]) -> int:
        self._check("update_where", table)
        return await super().update_where(table, column, value, changes)

    async def delete(self, table: str, row_id: str) -> None:
        self._check("delete", table)
        await super().delete(table, row_id)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def repository(session_factory) -> FlakyRepository:
    return FlakyRepository(session_factory)


@pytest.fixture
async def store(repository) -> ProjectStore:
    store = ProjectStore(repository)
    assert await store.load()
    return store


@pytest.fixture
def storage(tmp_path) -> StorageClient:
    return StorageClient(base_path=tmp_path / "storage", url_prefix="/storage")


@pytest.fixture
async def client(store, storage) -> AsyncGenerator[AsyncClient, None]:
    from sitetrack.api.deps import get_storage, get_store
    from sitetrack.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_user(store):
    return await store.add_user(
        username="admin", name="John Admin", role=UserRole.ADMIN, password="admin123"
    )


@pytest.fixture
async def member_user(store):
    return await store.add_user(
        username="member1", name="Mike Worker", role=UserRole.MEMBER, password="member123"
    )


@pytest.fixture
async def client_user(store):
    return await store.add_user(
        username="client1", name="Sarah Client", role=UserRole.CLIENT, password="client123",
        assigned_projects=[],
    )


def _headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def member_headers(member_user):
    return _headers(member_user)


@pytest.fixture
def client_headers(client_user):
    return _headers(client_user)


@pytest.fixture
async def sample_project(store, admin_user):
    """Ten-day project with phases P1 and P2 and tasks in each plus one unassigned."""
    project = await store.add_project(
        name="Office Building Construction",
        start_date=date(2024, 7, 1),
        end_date=date(2024, 7, 10),
        created_by=admin_user.id,
    )
    p1 = await store.add_phase(
        project.id, name="P1", start_date=date(2024, 7, 1), end_date=date(2024, 7, 5), color="#8B5CF6"
    )
    p2 = await store.add_phase(
        project.id, name="P2", start_date=date(2024, 7, 6), end_date=date(2024, 7, 10), color="#F59E0B"
    )
    await store.add_task(
        name="Excavation", project=project.name, phase_id=p1.id, trade="Excavation",
        start_date=date(2024, 7, 3), end_date=date(2024, 7, 5), progress=40,
    )
    await store.add_task(
        name="Site Survey", project=project.name, trade="Survey", due_date=date(2024, 7, 2),
    )
    await store.add_task(
        name="Steel Frame", project=project.name, phase_id=p2.id, trade="Steel Work",
        start_date=date(2024, 7, 6), end_date=date(2024, 7, 9),
    )
    return store.get_project(project.id)
