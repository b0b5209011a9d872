"""
Labor Administration - Background Tasks Package

Celery background tasks.
"""

from app.tasks.celery_tasks import expire_leaves_task

__all__ = [
    "expire_leaves_task",
]
