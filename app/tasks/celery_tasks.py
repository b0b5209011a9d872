"""
Labor Administration - Celery Tasks

Background tasks for scheduled operations.
"""

import asyncio
import logging
from typing import Any, Dict

from celery import shared_task

from app.database import async_session_factory

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ===========================================
# LEAVE TASKS
# ===========================================

@shared_task(name='app.tasks.celery_tasks.expire_leaves_task')
def expire_leaves_task() -> Dict[str, Any]:
    """End every leave whose last day has already passed."""
    return run_async(_expire_leaves())


async def _expire_leaves() -> Dict[str, Any]:
    """Async implementation of the leave expiry sweep."""
    from app.services.leave_request_service import LeaveRequestService
    from app.utils.calendar_dates import today

    run_date = today()
    async with async_session_factory() as db:
        reverted = await LeaveRequestService(db).expire_leaves(run_date)

    logger.info(f"Leave expiry task finished: {reverted} record(s) reverted")
    return {
        "run_date": run_date.isoformat(),
        "reverted": reverted,
    }
