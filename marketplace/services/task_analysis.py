"""Advisory LLM analysis of newly submitted tasks."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from marketplace.models.task import Task
from marketplace.models.task_analysis import TaskAIAnalysis
from marketplace.services.llm import LLMService

logger = logging.getLogger(__name__)

TASK_ANALYSIS_SYSTEM_PROMPT = (
    "You review technical work orders for a freelance marketplace. "
    "Answer with a single JSON object and nothing else."
)


def get_task_analysis_prompt(title: str, description: str) -> str:
    return f"""Analyze the following technical task and return a JSON object with:
- category: string
- complexity: string (Low, Medium, High)
- recommendedPrice: number (in the context of the task)
- priorityScore: number (1-10)
- riskFlags: string[] (potential issues)

Task Title: {title}
Task Description: {description}

Return ONLY the JSON object."""


def _number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class TaskAnalysisService:
    """Runs the LLM over a task and stores the result."""

    def __init__(self, db: Session, llm_service: LLMService | None = None):
        self.db = db
        self.llm_service = llm_service or LLMService()

    async def analyze(self, task: Task) -> TaskAIAnalysis:
        """Analyze ``task`` and upsert its TaskAIAnalysis row.

        Missing or malformed fields fall back to neutral defaults; LLM and
        transport errors propagate to the caller.
        """
        analysis = await self.llm_service.complete_json(
            get_task_analysis_prompt(task.title, task.description),
            system_prompt=TASK_ANALYSIS_SYSTEM_PROMPT,
        )

        risk_flags = analysis.get("riskFlags") or []
        if not isinstance(risk_flags, list):
            risk_flags = [str(risk_flags)]

        record = (
            self.db.query(TaskAIAnalysis).filter(TaskAIAnalysis.task_id == task.id).first()
        )
        if record is None:
            record = TaskAIAnalysis(task_id=task.id)
            self.db.add(record)

        record.category = str(analysis.get("category") or "Unknown")
        record.complexity = str(analysis.get("complexity") or "Medium")
        record.recommended_price = _number(analysis.get("recommendedPrice"), 0)
        record.priority_score = int(_number(analysis.get("priorityScore"), 5))
        record.risk_flags = [str(flag) for flag in risk_flags]
        record.raw_analysis = analysis
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"AI analysis completed for task {task.id}: {record.category}")
        return record
