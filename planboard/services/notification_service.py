import logging
import uuid
from typing import Any, Dict, List

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from planboard.db.models import TaskNotification, as_utc
from planboard.load_env import NOTIFICATION_INBOX_LIMIT

logger = logging.getLogger(__name__)


class NotificationService:
    """Входящие уведомления пользователя"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_user(self, user_id: uuid.UUID, limit: int = NOTIFICATION_INBOX_LIMIT) -> List[Dict[str, Any]]:
        """Последние уведомления пользователя, новые первыми"""
        result = await self.session.execute(
            select(TaskNotification)
            .where(TaskNotification.user_id == user_id)
            .order_by(TaskNotification.sent_at.desc())
            .limit(limit)
        )
        return [self._notification_to_dict(n) for n in result.scalars().all()]

    async def unread_count(self, user_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(TaskNotification).where(
                TaskNotification.user_id == user_id,
                TaskNotification.is_read == False  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def mark_as_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            update(TaskNotification)
            .where(TaskNotification.id == notification_id, TaskNotification.user_id == user_id)
            .values(is_read=True)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def mark_all_as_read(self, user_id: uuid.UUID) -> int:
        """Отметить все непрочитанные уведомления. Возвращает количество изменённых"""
        result = await self.session.execute(
            update(TaskNotification)
            .where(TaskNotification.user_id == user_id, TaskNotification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        await self.session.commit()
        logger.debug(f"Marked {result.rowcount} notifications as read for {user_id}")
        return result.rowcount

    async def delete(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(TaskNotification)
            .where(TaskNotification.id == notification_id, TaskNotification.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _notification_to_dict(notification: TaskNotification) -> Dict[str, Any]:
        sent_at = as_utc(notification.sent_at)
        return {
            'id': str(notification.id),
            'project_task_id': str(notification.project_task_id),
            'user_id': str(notification.user_id),
            'message': notification.message,
            'notification_type': notification.notification_type,
            'is_read': bool(notification.is_read),
            'sent_at': sent_at.isoformat() if sent_at else None,
        }
