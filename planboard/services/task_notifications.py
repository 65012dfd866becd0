import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from fluent.runtime import FluentLocalization
from sqlalchemy import select, insert, and_
from sqlalchemy.ext.asyncio import AsyncSession

from planboard.db.models import (
    ProjectTask, Task, Project, TaskDependency, TaskNotification, NotificationType, as_utc
)
from planboard.locale_config import get_locale, format_display_date
from planboard.models.notification import NotificationDraft

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
THREE_DAYS = timedelta(days=3)
SEVEN_DAYS = timedelta(days=7)


class DueBucket(enum.Enum):
    """Due-date horizon a task falls into; value is the message id"""
    OVERDUE = "notification-overdue"
    TOMORROW = "notification-due-tomorrow"
    IN_3_DAYS = "notification-due-in-3-days"
    IN_WEEK = "notification-due-in-week"

    @property
    def notification_type(self) -> NotificationType:
        if self is DueBucket.OVERDUE:
            return NotificationType.OVERDUE
        return NotificationType.DUE_SOON


def classify_due_date(due: datetime, now: datetime) -> Optional[DueBucket]:
    """
    Определить горизонт срока задачи.

    Args:
        due: Срок выполнения (due_date_override)
        now: Текущий момент

    Returns:
        DueBucket или None, если срок дальше недели
    """
    due = as_utc(due)
    now = as_utc(now)
    if due < now:
        return DueBucket.OVERDUE
    if due <= now + ONE_DAY:
        return DueBucket.TOMORROW
    if due <= now + THREE_DAYS:
        return DueBucket.IN_3_DAYS
    if due <= now + SEVEN_DAYS:
        return DueBucket.IN_WEEK
    return None


class TaskNotificationEvaluator:
    """
    One pass over open project tasks: due-date buckets and completed prerequisites.

    Every pass re-emits notifications for conditions that are still true unless
    ``deduplicate`` is set, in which case a (project task, type) pair is notified
    at most once per UTC day.
    """

    def __init__(self, session: AsyncSession, localization: FluentLocalization = None,
                 deduplicate: bool = False):
        self.session = session
        self.localization = localization or get_locale()
        self.deduplicate = deduplicate

    def _t(self, message_id: str, **args) -> str:
        return self.localization.format_value(message_id, args or None)

    async def run(self, now: datetime = None) -> int:
        """Вычислить уведомления и записать их одной вставкой. Возвращает количество созданных"""
        now = as_utc(now) if now else datetime.now(timezone.utc)
        logger.info("Starting task notifications check...")

        try:
            drafts = await self.collect_due_date_notifications(now)
            drafts.extend(await self.collect_dependency_notifications())

            if self.deduplicate:
                drafts = await self._drop_already_sent(drafts, now)

            if not drafts:
                logger.info("No notifications to send")
                return 0

            logger.info(f"Inserting {len(drafts)} notifications")
            await self.session.execute(
                insert(TaskNotification),
                [
                    {
                        'project_task_id': draft.project_task_id,
                        'user_id': draft.user_id,
                        'notification_type': draft.notification_type.value,
                        'message': draft.message,
                        'is_read': False,
                        'sent_at': now,
                    }
                    for draft in drafts
                ]
            )
            await self.session.commit()
        except Exception:
            logger.error("Task notifications run failed, nothing was persisted")
            await self.session.rollback()
            raise

        logger.info("Notifications inserted successfully")
        return len(drafts)

    async def collect_due_date_notifications(self, now: datetime) -> List[NotificationDraft]:
        """Уведомления о просроченных задачах и приближающихся сроках"""
        query = (
            select(ProjectTask, Task.name, Project.client_name)
            .join(Task, ProjectTask.task_id == Task.id)
            .join(Project, ProjectTask.project_id == Project.id)
            .where(
                ProjectTask.completed == False,  # noqa: E712
                ProjectTask.due_date_override.is_not(None)
            )
        )
        result = await self.session.execute(query)
        rows = result.all()
        logger.info(f"Found {len(rows)} active tasks with due dates")

        drafts = []
        for project_task, task_name, project_name in rows:
            bucket = classify_due_date(project_task.due_date_override, now)
            if bucket is None:
                continue

            task_name = task_name or self._t('untitled-task')
            project_name = project_name or self._t('untitled-project')
            logger.debug(f"Task {task_name} ({project_task.id}) -> {bucket.name}")

            if not project_task.assigned_to:
                logger.debug(f"Task {project_task.id} has no assignee, skipping")
                continue

            args = {'task': task_name, 'project': project_name}
            if bucket is DueBucket.OVERDUE:
                args['due'] = format_display_date(as_utc(project_task.due_date_override))

            drafts.append(NotificationDraft(
                project_task_id=project_task.id,
                user_id=project_task.assigned_to,
                notification_type=bucket.notification_type,
                message=self._t(bucket.value, **args),
            ))
        return drafts

    async def collect_dependency_notifications(self) -> List[NotificationDraft]:
        """Уведомления исполнителям задач, чьи предшествующие задачи выполнены"""
        result = await self.session.execute(select(TaskDependency))
        dependencies = result.scalars().all()
        logger.info(f"Checking {len(dependencies)} task dependencies")

        drafts = []
        for dependency in dependencies:
            prerequisite = await self._find_project_task(dependency.depends_on_task_id, dependency.project_id)
            if prerequisite is None or not prerequisite[0].completed:
                continue

            dependent = await self._find_project_task(dependency.task_id, dependency.project_id)
            if dependent is None:
                continue
            dependent_task, dependent_name = dependent
            if dependent_task.completed or not dependent_task.assigned_to:
                continue

            drafts.append(NotificationDraft(
                project_task_id=dependent_task.id,
                user_id=dependent_task.assigned_to,
                notification_type=NotificationType.DEPENDENCY_COMPLETED,
                message=self._t(
                    'notification-dependency-completed',
                    completed=prerequisite[1] or self._t('prerequisite-task-fallback'),
                    task=dependent_name or self._t('dependent-task-fallback'),
                ),
            ))
        return drafts

    async def _find_project_task(self, task_id, project_id) -> Optional[Tuple[ProjectTask, str]]:
        result = await self.session.execute(
            select(ProjectTask, Task.name)
            .join(Task, ProjectTask.task_id == Task.id)
            .where(ProjectTask.task_id == task_id, ProjectTask.project_id == project_id)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    @staticmethod
    def _dedup_key(project_task_id, notification_type: str, message: str) -> tuple:
        # у dependency_completed текст называет завершённую задачу-предшественника
        if notification_type == NotificationType.DEPENDENCY_COMPLETED.value:
            return project_task_id, notification_type, message
        return project_task_id, notification_type

    async def _drop_already_sent(self, drafts: List[NotificationDraft], now: datetime) -> List[NotificationDraft]:
        """Оставить по одному уведомлению на (задача, тип, для зависимостей ещё и предшественник) за день UTC"""
        if not drafts:
            return drafts
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        result = await self.session.execute(
            select(TaskNotification.project_task_id, TaskNotification.notification_type, TaskNotification.message)
            .where(and_(
                TaskNotification.project_task_id.in_(list({d.project_task_id for d in drafts})),
                TaskNotification.sent_at >= day_start,
                TaskNotification.sent_at < day_start + ONE_DAY,
            ))
        )
        seen = {self._dedup_key(*row) for row in result.all()}

        kept = []
        for draft in drafts:
            key = self._dedup_key(draft.project_task_id, draft.notification_type.value, draft.message)
            if key in seen:
                continue
            seen.add(key)
            kept.append(draft)
        if len(kept) < len(drafts):
            logger.info(f"Skipped {len(drafts) - len(kept)} notifications already sent today")
        return kept
