import uuid

from pydantic import BaseModel

from planboard.db.models import NotificationType


class NotificationDraft(BaseModel):
    """Уведомление, вычисленное проходом, но ещё не записанное"""
    project_task_id: uuid.UUID
    user_id: uuid.UUID
    notification_type: NotificationType
    message: str
