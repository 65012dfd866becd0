import asyncio
import os
import tempfile
import uuid
from datetime import datetime, timezone

_DB_DIR = tempfile.mkdtemp(prefix="planboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["NOTIFICATION_LOCALE"] = "he"
os.environ["DISPLAY_TIMEZONE"] = "Asia/Jerusalem"

import pytest

from planboard.database import init_db, drop_db, get_session
from planboard.db.models import Profile, Project, Category, Task, ProjectTask

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


async def reset_db():
    await drop_db()
    await init_db()


@pytest.fixture
async def session():
    await reset_db()
    async with get_session() as s:
        yield s


@pytest.fixture
def sync_db():
    """Чистая база для синхронных тестов Flask-клиента"""
    asyncio.run(reset_db())


async def make_profile(session, name="Dana Architect") -> Profile:
    profile = Profile(id=uuid.uuid4(), email=f"{uuid.uuid4().hex[:8]}@example.com", full_name=name)
    session.add(profile)
    await session.flush()
    return profile


async def make_project(session, client_name="Cohen residence") -> Project:
    project = Project(id=uuid.uuid4(), client_name=client_name, address="Herzl 12, Haifa")
    session.add(project)
    await session.flush()
    return project


async def make_task(session, name="Building permit submission") -> Task:
    category = Category(id=uuid.uuid4(), name="permits", display_name="Permits", order_index=1)
    task = Task(id=uuid.uuid4(), category=category, name=name, priority="high")
    session.add_all([category, task])
    await session.flush()
    return task


async def make_project_task(session, *, project=None, task=None, name="Building permit submission",
                            due=None, assigned_to=None, completed=False) -> ProjectTask:
    project = project or await make_project(session)
    task = task or await make_task(session, name)
    project_task = ProjectTask(
        id=uuid.uuid4(),
        project_id=project.id,
        task_id=task.id,
        due_date_override=due,
        assigned_to=assigned_to,
        completed=completed,
    )
    session.add(project_task)
    await session.commit()
    return project_task
