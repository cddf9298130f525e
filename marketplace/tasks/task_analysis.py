"""Celery task for best-effort LLM analysis of new tasks."""

import asyncio
import logging

from marketplace.celery_app import app as celery_app
from marketplace.database import session_scope
from marketplace.models.task import Task
from marketplace.services.task_analysis import TaskAnalysisService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=2)
def analyze_task(self, task_id: int) -> dict:
    """Analyze a task with the LLM and store the result.

    Failures never touch the task itself; they are logged and, while
    retries remain, retried.

    Args:
        task_id: ID of the Task to analyze

    Returns:
        dict with the analysis outcome
    """
    with session_scope() as db:
        try:
            task = db.query(Task).filter(Task.id == task_id).first()
            if not task:
                logger.warning(f"Task {task_id} not found, skipping analysis")
                return {"error": "Task not found"}

            analysis = asyncio.run(TaskAnalysisService(db).analyze(task))
            return {"success": True, "task_id": task_id, "category": analysis.category}

        except Exception as e:
            logger.error(f"AI analysis failed for task {task_id}: {e}", exc_info=True)
            db.rollback()

            if self.request.retries < self.max_retries:
                raise self.retry(exc=e, countdown=30) from e

            return {"error": str(e)}


def enqueue_task_analysis(task_id: int) -> None:
    """Submit a task for analysis without waiting on it.

    A broker outage must not fail task creation, so errors are logged and
    discarded.
    """
    try:
        analyze_task.delay(task_id)
    except Exception as e:
        logger.error(f"Could not enqueue analysis for task {task_id}: {e}")
