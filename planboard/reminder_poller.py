import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Set

from planboard.database import get_session
from planboard.load_env import REMINDER_POLL_INTERVAL, REMINDER_WINDOW_MINUTES
from planboard.models.reminder import ActiveReminder
from planboard.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


class ReminderPoller:
    """
    Периодически опрашивает хранилище и показывает сработавшие напоминания.

    Каждое напоминание показывается процессом не более одного раза: id запоминаются
    локально, а на сервере напоминание выключается без ожидания ответа.
    Два процесса, опрашивающие одновременно, могут оба показать одно напоминание.
    """

    def __init__(
        self,
        session_factory=get_session,
        user_id: uuid.UUID = None,
        interval: float = REMINDER_POLL_INTERVAL,
        window: timedelta = timedelta(minutes=REMINDER_WINDOW_MINUTES),
        on_reminder: Callable[[ActiveReminder], None] = None
    ):
        self.session_factory = session_factory
        self.user_id = user_id
        self.interval = interval
        self.window = window
        self.on_reminder = on_reminder
        self.active_reminders: List[ActiveReminder] = []
        # id -> reminder_time; старше окна запрос их уже не вернёт
        self._shown: Dict[uuid.UUID, datetime] = {}
        self._pending: Set[asyncio.Task] = set()
        self._loop_task: Optional[asyncio.Task] = None

    async def poll_once(self, now: datetime = None) -> List[ActiveReminder]:
        """Один цикл опроса. Возвращает напоминания, показанные впервые"""
        now = now or datetime.now(timezone.utc)
        async with self.session_factory() as session:
            due = await ReminderService(session).get_due(now, self.window, self.user_id)
        self._forget_expired(now)

        new_reminders = [r for r in due if r.id not in self._shown]
        for reminder in new_reminders:
            self._shown[reminder.id] = reminder.reminder_time
            self.active_reminders.append(reminder)
            logger.info(f"Reminder {reminder.id} fired for project task {reminder.project_task_id}")

            task = asyncio.create_task(self._deactivate(reminder.id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

            if self.on_reminder:
                try:
                    self.on_reminder(reminder)
                except Exception as e:
                    logger.exception(f"Reminder callback failed for {reminder.id}: {e}")
        return new_reminders

    def _forget_expired(self, now: datetime):
        cutoff = now - self.window
        for reminder_id, reminder_time in list(self._shown.items()):
            if reminder_time < cutoff:
                del self._shown[reminder_id]

    async def _deactivate(self, reminder_id: uuid.UUID):
        try:
            async with self.session_factory() as session:
                await ReminderService(session).deactivate(reminder_id)
        except Exception as e:
            logger.exception(f"Failed to deactivate reminder {reminder_id}: {e}")

    def dismiss(self, reminder_id: uuid.UUID):
        """Убрать напоминание из показанных; повторно оно не появится"""
        self.active_reminders = [r for r in self.active_reminders if r.id != reminder_id]

    async def flush(self):
        """Дождаться фоновых записей is_active=false"""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _run(self):
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.exception(f"Reminder poll failed: {e}")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._run())
            logger.debug(f"Reminder polling started, every {self.interval}s")
        return self._loop_task

    async def stop(self):
        """Остановить опрос; уже отправленные записи не отменяются"""
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        try:
            await self._loop_task
        except asyncio.CancelledError:
            pass
        self._loop_task = None
        logger.debug("Reminder polling stopped")
