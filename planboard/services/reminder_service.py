import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from planboard.db.models import TaskReminder, ProjectTask, as_utc
from planboard.models.reminder import ReminderCreate, ActiveReminder

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(minutes=5)


class ReminderService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_task(self, project_task_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Напоминания задачи по возрастанию времени"""
        result = await self.session.execute(
            select(TaskReminder)
            .where(TaskReminder.project_task_id == project_task_id)
            .order_by(TaskReminder.reminder_time.asc())
        )
        return [self._reminder_to_dict(r) for r in result.scalars().all()]

    async def create(self, user_id: uuid.UUID, project_task_id: uuid.UUID,
                     data: ReminderCreate) -> Optional[Dict[str, Any]]:
        """Создать напоминание. None, если задача проекта не найдена"""
        project_task = await self.session.get(ProjectTask, project_task_id)
        if not project_task:
            logger.error(f"Project task {project_task_id} not found")
            return None

        reminder = TaskReminder(
            project_task_id=project_task_id,
            created_by=user_id,
            # храним в UTC; время без пояса считаем UTC
            reminder_time=as_utc(data.reminder_time),
            message=data.message or None,
            sound_url=data.sound_url,
            is_recurring=data.is_recurring,
            recurrence_pattern=data.recurrence_pattern,
            is_active=True,
        )
        self.session.add(reminder)
        await self.session.commit()
        await self.session.refresh(reminder)
        logger.info(f"Reminder {reminder.id} created for project task {project_task_id}")
        return self._reminder_to_dict(reminder)

    async def toggle(self, user_id: uuid.UUID, reminder_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """Включить/выключить напоминание пользователя"""
        result = await self.session.execute(
            select(TaskReminder).where(TaskReminder.id == reminder_id, TaskReminder.created_by == user_id)
        )
        reminder = result.scalar_one_or_none()
        if not reminder:
            return None
        reminder.is_active = not reminder.is_active
        await self.session.commit()
        await self.session.refresh(reminder)
        return self._reminder_to_dict(reminder)

    async def delete(self, user_id: uuid.UUID, reminder_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(TaskReminder).where(TaskReminder.id == reminder_id, TaskReminder.created_by == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def get_due(
        self,
        now: datetime = None,
        window: timedelta = DEFAULT_WINDOW,
        user_id: uuid.UUID = None
    ) -> List[ActiveReminder]:
        """
        Активные напоминания, время которых попало в окно [now - window, now]

        Args:
            now: Текущий момент, по умолчанию datetime.now(UTC)
            window: Ширина окна; более старые напоминания больше не показываются
            user_id: Ограничить напоминаниями пользователя

        Returns:
            List[ActiveReminder]
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)
        query = select(TaskReminder).where(
            TaskReminder.is_active == True,  # noqa: E712
            TaskReminder.reminder_time >= now - window,
            TaskReminder.reminder_time <= now,
        )
        if user_id is not None:
            query = query.where(TaskReminder.created_by == user_id)

        result = await self.session.execute(query.order_by(TaskReminder.reminder_time.asc()))
        return [
            ActiveReminder(
                id=r.id,
                project_task_id=r.project_task_id,
                reminder_time=as_utc(r.reminder_time),
                message=r.message,
                sound_url=r.sound_url,
            )
            for r in result.scalars().all()
        ]

    async def deactivate(self, reminder_id: uuid.UUID, user_id: uuid.UUID = None) -> bool:
        """Выключить напоминание. Повторный вызов ничего не меняет"""
        query = update(TaskReminder).where(TaskReminder.id == reminder_id)
        if user_id:
            query = query.where(TaskReminder.created_by == user_id)
        result = await self.session.execute(query.values(is_active=False))
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _reminder_to_dict(reminder: TaskReminder) -> Dict[str, Any]:
        return {
            'id': str(reminder.id),
            'project_task_id': str(reminder.project_task_id),
            'reminder_time': as_utc(reminder.reminder_time).isoformat(),
            'message': reminder.message,
            'sound_url': reminder.sound_url,
            'is_active': bool(reminder.is_active),
            'is_recurring': bool(reminder.is_recurring),
            'recurrence_pattern': reminder.recurrence_pattern,
        }
