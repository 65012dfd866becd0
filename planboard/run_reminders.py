"""
Console reminder watcher: polls due reminders of one user and logs each of them.

    python -m planboard.run_reminders <user-uuid>
"""
import asyncio
import logging
import sys

from planboard.exceptions import InvalidPayloadError
from planboard.load_env import LOGGER_LEVEL
from planboard.locale_config import get_locale
from planboard.models.reminder import ActiveReminder
from planboard.reminder_poller import ReminderPoller
from planboard.utils import parse_uuid

logger = logging.getLogger(__name__)


def show_reminder(reminder: ActiveReminder):
    logger.warning(
        f"🔔 {reminder.message or get_locale().format_value('reminder-default-message')} "
        f"(task {reminder.project_task_id}, {reminder.reminder_time:%d.%m.%Y %H:%M} UTC)"
    )


async def watch(user_id):
    poller = ReminderPoller(user_id=user_id, on_reminder=show_reminder)
    try:
        await poller.start()
    finally:
        await poller.stop()
        await poller.flush()


def main(argv=None) -> int:
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOGGER_LEVEL.upper(), logging.INFO)
    )
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        logger.error("Usage: python -m planboard.run_reminders <user-id>")
        return 2
    try:
        user_id = parse_uuid(argv[0], 'user id')
    except InvalidPayloadError as e:
        logger.error(e.message)
        return 2

    try:
        asyncio.run(watch(user_id))
    except KeyboardInterrupt:
        logger.info('Остановлено')
    return 0


if __name__ == '__main__':
    sys.exit(main())
