"""
Scheduled entry point: one task-notifications pass, then exit.

    */15 * * * * cd /srv/planboard && python -m planboard.run_notifications
"""
import asyncio
import logging
import sys

from planboard.database import get_session, engine
from planboard.load_env import LOGGER_LEVEL, NOTIFICATIONS_DEDUPLICATE
from planboard.services.task_notifications import TaskNotificationEvaluator

logger = logging.getLogger(__name__)


async def run_once() -> int:
    try:
        async with get_session() as session:
            evaluator = TaskNotificationEvaluator(session, deduplicate=NOTIFICATIONS_DEDUPLICATE)
            return await evaluator.run()
    finally:
        await engine.dispose()


def main() -> int:
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOGGER_LEVEL.upper(), logging.INFO)
    )
    try:
        created = asyncio.run(run_once())
    except Exception as e:
        logger.exception(f"Task notifications run failed: {e}")
        return 1
    logger.info(f"Created {created} notifications")
    return 0


if __name__ == '__main__':
    sys.exit(main())
