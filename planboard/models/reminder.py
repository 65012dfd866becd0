import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReminderCreate(BaseModel):
    """Данные для создания напоминания"""
    reminder_time: datetime
    message: Optional[str] = Field(default=None, max_length=1000)
    sound_url: Optional[str] = None
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None


class ActiveReminder(BaseModel):
    """Reminder surfaced to the user by the poller"""
    id: uuid.UUID
    project_task_id: uuid.UUID
    reminder_time: datetime
    message: Optional[str] = None
    sound_url: Optional[str] = None
