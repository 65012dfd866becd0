import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from conftest import NOW, make_profile, make_project_task
from planboard.database import get_session
from planboard.db.models import TaskReminder
from planboard.models.reminder import ReminderCreate
from planboard.reminder_poller import ReminderPoller
from planboard.services.reminder_service import ReminderService


async def add_reminder(session, project_task, user, when, active=True, message="Call the surveyor"):
    reminder = TaskReminder(
        project_task_id=project_task.id, created_by=user.id, reminder_time=when,
        message=message, is_active=active,
    )
    session.add(reminder)
    await session.commit()
    return reminder


async def is_active(reminder_id) -> bool:
    async with get_session() as s:
        result = await s.execute(select(TaskReminder.is_active).where(TaskReminder.id == reminder_id))
        return result.scalar_one()


@pytest.fixture
async def owner(session):
    user = await make_profile(session)
    project_task = await make_project_task(session, assigned_to=user.id)
    return user, project_task


class TestReminderService:
    async def test_get_due_uses_trailing_window(self, session, owner):
        user, project_task = owner
        inside = await add_reminder(session, project_task, user, NOW - timedelta(minutes=2))
        await add_reminder(session, project_task, user, NOW - timedelta(minutes=10))
        await add_reminder(session, project_task, user, NOW + timedelta(minutes=1))
        await add_reminder(session, project_task, user, NOW - timedelta(minutes=1), active=False)

        due = await ReminderService(session).get_due(NOW)

        assert [r.id for r in due] == [inside.id]
        assert due[0].message == "Call the surveyor"

    async def test_get_due_filters_by_user(self, session, owner):
        user, project_task = owner
        other = await make_profile(session, "Noa")
        await add_reminder(session, project_task, other, NOW - timedelta(minutes=1))

        assert await ReminderService(session).get_due(NOW, user_id=user.id) == []
        assert len(await ReminderService(session).get_due(NOW, user_id=other.id)) == 1

    async def test_create_list_toggle_delete(self, session, owner):
        user, project_task = owner
        service = ReminderService(session)

        later = await service.create(user.id, project_task.id, ReminderCreate(reminder_time=NOW + timedelta(days=1)))
        earlier = await service.create(
            user.id, project_task.id, ReminderCreate(reminder_time=NOW, message="Site visit", is_recurring=True)
        )

        listed = await service.list_for_task(project_task.id)
        assert [r['id'] for r in listed] == [earlier['id'], later['id']]
        assert listed[0]['is_recurring'] is True

        toggled = await service.toggle(user.id, uuid.UUID(earlier["id"]))
        assert toggled['is_active'] is False

        assert await service.delete(user.id, uuid.UUID(later["id"])) is True
        assert len(await service.list_for_task(project_task.id)) == 1

    async def test_deactivate_is_idempotent_and_scoped_to_creator(self, session, owner):
        user, project_task = owner
        other = await make_profile(session, "Noa")
        reminder = await add_reminder(session, project_task, user, NOW - timedelta(minutes=1))
        service = ReminderService(session)

        assert await service.deactivate(reminder.id, other.id) is False
        assert await is_active(reminder.id) is True

        assert await service.deactivate(reminder.id, user.id) is True
        assert await service.deactivate(reminder.id, user.id) is True
        assert await is_active(reminder.id) is False
        assert await service.deactivate(uuid.uuid4(), user.id) is False

    async def test_create_for_missing_task(self, session, owner):
        user, project_task = owner
        assert await ReminderService(session).create(user.id, uuid.uuid4(), ReminderCreate(reminder_time=NOW)) is None


class TestReminderPoller:
    async def test_due_reminder_is_surfaced_once_and_deactivated(self, session, owner):
        user, project_task = owner
        reminder = await add_reminder(session, project_task, user, NOW - timedelta(minutes=2))
        seen = []
        poller = ReminderPoller(on_reminder=seen.append)

        first = await poller.poll_once(NOW)
        second = await poller.poll_once(NOW)
        await poller.flush()

        assert [r.id for r in first] == [reminder.id]
        assert second == []
        assert [r.id for r in seen] == [reminder.id]
        assert [r.id for r in poller.active_reminders] == [reminder.id]
        assert await is_active(reminder.id) is False

    async def test_reminder_outside_window_silently_expires(self, session, owner):
        user, project_task = owner
        reminder = await add_reminder(session, project_task, user, NOW - timedelta(minutes=10))
        poller = ReminderPoller()

        assert await poller.poll_once(NOW) == []
        assert await poller.poll_once(NOW + timedelta(minutes=1)) == []
        assert await is_active(reminder.id) is True

    async def test_dismiss_removes_alert_without_resurfacing(self, session, owner):
        user, project_task = owner
        reminder = await add_reminder(session, project_task, user, NOW - timedelta(minutes=1))
        poller = ReminderPoller()

        await poller.poll_once(NOW)
        poller.dismiss(reminder.id)
        await poller.flush()

        assert poller.active_reminders == []
        assert await poller.poll_once(NOW) == []

    async def test_start_and_stop_loop(self, session, owner):
        user, project_task = owner
        reminder = await add_reminder(
            session, project_task, user, datetime.now(timezone.utc) - timedelta(seconds=30)
        )
        seen = []
        poller = ReminderPoller(interval=0.01, on_reminder=seen.append)

        poller.start()
        await asyncio.sleep(0.2)
        await poller.stop()
        await poller.flush()

        assert [r.id for r in seen] == [reminder.id]
        assert await is_active(reminder.id) is False

    async def test_failed_poll_does_not_stop_loop(self, session):
        calls = []

        @asynccontextmanager
        async def broken_session():
            calls.append(1)
            raise ConnectionError("store unavailable")
            yield  # pragma: no cover

        poller = ReminderPoller(session_factory=broken_session, interval=0.01)
        poller.start()
        await asyncio.sleep(0.1)
        await poller.stop()

        assert len(calls) > 1

    async def test_failing_callback_still_deactivates_and_continues(self, session, owner):
        user, project_task = owner
        first = await add_reminder(session, project_task, user, NOW - timedelta(minutes=3))
        second = await add_reminder(session, project_task, user, NOW - timedelta(minutes=1))
        seen = []

        def show(reminder):
            seen.append(reminder.id)
            raise RuntimeError("speaker unplugged")

        poller = ReminderPoller(on_reminder=show)
        surfaced = await poller.poll_once(NOW)
        await poller.flush()

        assert [r.id for r in surfaced] == [first.id, second.id]
        assert seen == [first.id, second.id]
        assert await is_active(first.id) is False
        assert await is_active(second.id) is False

    async def test_shown_ids_are_forgotten_once_outside_window(self, session, owner):
        user, project_task = owner
        reminder = await add_reminder(session, project_task, user, NOW - timedelta(minutes=1))
        poller = ReminderPoller()

        await poller.poll_once(NOW)
        await poller.flush()
        assert reminder.id in poller._shown

        assert await poller.poll_once(NOW + timedelta(minutes=10)) == []
        assert poller._shown == {}
