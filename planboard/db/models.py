import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text, Float, Uuid
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.sql import func

Base = declarative_base()
metadata = Base.metadata


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps (SQLite drops the offset) as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskStatus(enum.Enum):
    """Статусы задачи в проекте"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class DependencyType(enum.Enum):
    """Descriptive only, no scheduling constraint is derived from it"""
    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"

    @classmethod
    def _missing_(cls, value):
        # accept member names as well: "FINISH_TO_START"
        for member in cls:
            if isinstance(value, str) and member.name == value.upper():
                return member
        return None


class NotificationType(enum.Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    DEPENDENCY_COMPLETED = "dependency_completed"
    ASSIGNED = "assigned"
    TASK_COMPLETED = "task_completed"


class Profile(Base):
    """Профиль пользователя (auth.users на стороне хранилища)"""
    __tablename__ = 'profiles'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255))
    full_name = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())


class Project(Base):
    __tablename__ = 'projects'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_name = Column(String(255), nullable=False)
    address = Column(String(255))
    # кадастровые данные участка
    gush = Column(String(50))
    parcel = Column(String(50))
    plot = Column(String(50))
    priority = Column(Integer)
    created_by = Column(Uuid, ForeignKey('profiles.id', ondelete='SET NULL'))
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    project_tasks = relationship('ProjectTask', back_populates='project', cascade='all, delete-orphan')


class Category(Base):
    """Workflow stage grouping task templates"""
    __tablename__ = 'categories'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    display_name = Column(String(255), nullable=False)
    color = Column(String(7))
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=func.now())

    tasks = relationship('Task', back_populates='category')


class Task(Base):
    """Шаблон задачи, общий для всех проектов"""
    __tablename__ = 'tasks'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey('categories.id', ondelete='CASCADE'))
    name = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(DateTime(timezone=True))
    estimated_hours = Column(Float)
    is_required = Column(Boolean, default=False)
    order_index = Column(Integer)
    priority = Column(String(20))

    category = relationship('Category', back_populates='tasks')
    project_tasks = relationship('ProjectTask', back_populates='task')


class ProjectTask(Base):
    """Состояние задачи внутри конкретного проекта"""
    __tablename__ = 'project_tasks'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    task_id = Column(Uuid, ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    completed = Column(Boolean, default=False)
    status = Column(String(20), default=TaskStatus.PENDING.value)
    progress = Column(Integer, default=0)  # процент выполнения 0..100
    due_date_override = Column(DateTime(timezone=True))
    assigned_to = Column(Uuid, ForeignKey('profiles.id', ondelete='SET NULL'))
    assigned_at = Column(DateTime(timezone=True))
    actual_hours = Column(Float)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    completed_by = Column(Uuid, ForeignKey('profiles.id', ondelete='SET NULL'))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    project = relationship('Project', back_populates='project_tasks')
    task = relationship('Task', back_populates='project_tasks')
    reminders = relationship('TaskReminder', back_populates='project_task', cascade='all, delete-orphan')
    notifications = relationship('TaskNotification', back_populates='project_task', cascade='all, delete-orphan')


class TaskDependency(Base):
    """Edge task_id -> depends_on_task_id within one project"""
    __tablename__ = 'task_dependencies'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    task_id = Column(Uuid, ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    depends_on_task_id = Column(Uuid, ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    dependency_type = Column(String(30), default=DependencyType.FINISH_TO_START.value)
    created_at = Column(DateTime(timezone=True), default=func.now())

    task = relationship('Task', foreign_keys=[task_id])
    depends_on_task = relationship('Task', foreign_keys=[depends_on_task_id])


class TaskNotification(Base):
    __tablename__ = 'task_notifications'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_task_id = Column(Uuid, ForeignKey('project_tasks.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Uuid, ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(String(30))
    is_read = Column(Boolean, default=False)
    sent_at = Column(DateTime(timezone=True), default=func.now())
    created_at = Column(DateTime(timezone=True), default=func.now())

    project_task = relationship('ProjectTask', back_populates='notifications')


class TaskReminder(Base):
    """Напоминание пользователя о задаче"""
    __tablename__ = 'task_reminders'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_task_id = Column(Uuid, ForeignKey('project_tasks.id', ondelete='CASCADE'), nullable=False)
    created_by = Column(Uuid, ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    reminder_time = Column(DateTime(timezone=True), nullable=False)
    message = Column(Text)
    sound_url = Column(String(1024))
    is_active = Column(Boolean, default=True)
    # хранится, но повторное включение не реализовано
    is_recurring = Column(Boolean, default=False)
    recurrence_pattern = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    project_task = relationship('ProjectTask', back_populates='reminders')
