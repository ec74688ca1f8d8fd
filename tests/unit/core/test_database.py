"""
Unit Tests for the request-scoped database session
Tests for: commit after the handler, rollback on error
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from projectdesk.core import database
from projectdesk.core.database import Base, get_db
from projectdesk.models.project import Project
from projectdesk.models.user import User
from projectdesk.schemas.wizard import ProjectFormData
from projectdesk.services.auth_service import AuthService
from projectdesk.services.project_service import ProjectService


@pytest.fixture
async def file_sessions(tmp_path, monkeypatch):
    """Point get_db at a throwaway SQLite file"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'requests.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    monkeypatch.setattr(database, "_engine", engine)
    monkeypatch.setattr(database, "_async_session_local", sessions)
    yield sessions
    await engine.dispose()


async def run_request(handler):
    """Drive get_db the way FastAPI does for one request"""
    db = get_db()
    session = await db.__anext__()
    await handler(session)
    with pytest.raises(StopAsyncIteration):
        await db.__anext__()


async def count(sessions, model) -> int:
    async with sessions() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestGetDb:

    async def test_created_project_is_committed(self, file_sessions):
        form = ProjectFormData(
            client_email="asha.rao@example.com",
            project_name="Inventory Tracker Platform",
            project_overview="o" * 120,
            development_areas=["Web Development"],
            senior_developers=1,
            project_budget=125000,
        )

        await run_request(lambda db: ProjectService(db).create_project(form))

        assert await count(file_sessions, Project) == 1

    async def test_registration_is_committed(self, file_sessions):
        await run_request(
            lambda db: AuthService(db).register("Asha Rao", "asha.rao@example.com", "clientpassword123")
        )

        assert await count(file_sessions, User) == 1

    async def test_status_change_is_committed(self, file_sessions):
        form = ProjectFormData(project_name="Inventory Tracker Platform", senior_developers=1)
        created = {}

        async def create(db):
            created["project"] = await ProjectService(db).create_project(form)

        await run_request(create)
        project_id = created["project"].id
        await run_request(lambda db: ProjectService(db).update_project_status(project_id, "in-progress"))

        async with file_sessions() as session:
            stored = await session.get(Project, project_id)
            assert stored.status.value == "in-progress"
            assert stored.start_date is not None

    async def test_error_rolls_back(self, file_sessions):
        db = get_db()
        session = await db.__anext__()
        await AuthService(session).register("Asha Rao", "asha.rao@example.com", "clientpassword123")

        with pytest.raises(RuntimeError):
            await db.athrow(RuntimeError("handler failed"))

        assert await count(file_sessions, User) == 0
