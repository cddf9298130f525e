"""Tests for LLM task analysis and its background job."""

import json
from contextlib import nullcontext
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from marketplace.models import Task, TaskAIAnalysis
from marketplace.services.auth import AuthService
from marketplace.services.llm import LLMService, strip_code_fences
from marketplace.services.task_analysis import TaskAnalysisService, get_task_analysis_prompt
from marketplace.tasks.task_analysis import analyze_task, enqueue_task_analysis


@pytest.fixture
def task(db):
    client = AuthService(db).register("llm@example.com", "password123", "LLM").user
    task = Task(
        title="Migrate DB",
        description="Move MySQL to Postgres",
        suggested_budget=300,
        currency="USD",
        urgency="medium",
        client_id=client.id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def _job_session(db):
    return patch("marketplace.tasks.task_analysis.session_scope", return_value=nullcontext(db))


def _llm(result):
    llm = MagicMock()
    llm.complete_json = AsyncMock(return_value=result)
    return llm


class TestStripCodeFences:
    def test_plain_json_untouched(self):
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_fenced_json(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'


class TestLLMService:
    @pytest.mark.asyncio
    async def test_complete_json_posts_chat_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            content = '```json\n{"category": "Web"}\n```'
            return httpx.Response(200, json={"message": {"content": content}})

        real_client = httpx.AsyncClient

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        service = LLMService(base_url="http://llm.test", model="test-model")
        with patch("marketplace.services.llm.httpx.AsyncClient", side_effect=client_factory):
            result = await service.complete_json("prompt", system_prompt="system")

        assert result == {"category": "Web"}
        assert seen["url"] == "http://llm.test/api/chat"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["format"] == "json"
        assert seen["body"]["stream"] is False
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_complete_json_rejects_non_object(self):
        service = LLMService(base_url="http://llm.test")
        with patch.object(service, "complete", AsyncMock(return_value="[1, 2]")):
            with pytest.raises(ValueError):
                await service.complete_json("prompt")


class TestTaskAnalysisService:
    def test_prompt_mentions_task(self):
        prompt = get_task_analysis_prompt("Fix login", "OAuth callback fails")
        assert "Task Title: Fix login" in prompt
        assert "Task Description: OAuth callback fails" in prompt

    @pytest.mark.asyncio
    async def test_analyze_stores_result(self, db, task):
        llm = _llm(
            {
                "category": "Database",
                "complexity": "High",
                "recommendedPrice": 450,
                "priorityScore": 7,
                "riskFlags": ["data loss"],
            }
        )

        record = await TaskAnalysisService(db, llm_service=llm).analyze(task)

        assert record.task_id == task.id
        assert record.category == "Database"
        assert record.complexity == "High"
        assert record.recommended_price == 450
        assert record.priority_score == 7
        assert record.risk_flags == ["data loss"]
        llm.complete_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_analyze_fills_defaults(self, db, task):
        llm = _llm({"recommendedPrice": "not a number", "riskFlags": "single flag"})

        record = await TaskAnalysisService(db, llm_service=llm).analyze(task)

        assert record.category == "Unknown"
        assert record.complexity == "Medium"
        assert record.recommended_price == 0
        assert record.priority_score == 5
        assert record.risk_flags == ["single flag"]

    @pytest.mark.asyncio
    async def test_analyze_twice_updates_single_row(self, db, task):
        await TaskAnalysisService(db, llm_service=_llm({"category": "A"})).analyze(task)
        await TaskAnalysisService(db, llm_service=_llm({"category": "B"})).analyze(task)

        rows = db.query(TaskAIAnalysis).filter(TaskAIAnalysis.task_id == task.id).all()
        assert [row.category for row in rows] == ["B"]

    @pytest.mark.asyncio
    async def test_llm_failure_propagates(self, db, task):
        llm = MagicMock()
        llm.complete_json = AsyncMock(side_effect=httpx.ConnectError("down"))

        with pytest.raises(httpx.ConnectError):
            await TaskAnalysisService(db, llm_service=llm).analyze(task)
        assert db.query(TaskAIAnalysis).count() == 0


class TestAnalyzeTaskJob:
    def test_analyzes_and_stores(self, db, task):
        task_id = task.id
        llm = _llm({"category": "Infra", "priorityScore": 9})
        with (
            _job_session(db),
            patch("marketplace.services.task_analysis.LLMService", return_value=llm),
        ):
            result = analyze_task(task_id)

        assert result == {"success": True, "task_id": task_id, "category": "Infra"}
        stored = db.query(TaskAIAnalysis).filter(TaskAIAnalysis.task_id == task_id).one()
        assert stored.priority_score == 9

    def test_missing_task(self, db):
        with _job_session(db):
            assert analyze_task(99999) == {"error": "Task not found"}

    def test_analysis_failure_leaves_task_alone(self, db, task):
        task_id = task.id
        llm = MagicMock()
        llm.complete_json = AsyncMock(side_effect=RuntimeError("model offline"))
        with (
            _job_session(db),
            patch("marketplace.services.task_analysis.LLMService", return_value=llm),
        ):
            # Called directly, a retry re-raises the original error
            with pytest.raises(RuntimeError):
                analyze_task(task_id)

        stored = db.query(Task).filter(Task.id == task_id).one()
        assert stored.status == "SUBMITTED"
        assert stored.suggested_budget == 300


class TestEnqueue:
    def test_enqueue_submits_job(self):
        with patch("marketplace.tasks.task_analysis.analyze_task") as mock_task:
            enqueue_task_analysis(42)
        mock_task.delay.assert_called_once_with(42)

    def test_enqueue_swallows_broker_errors(self):
        with patch("marketplace.tasks.task_analysis.analyze_task") as mock_task:
            mock_task.delay.side_effect = ConnectionError("no broker")
            enqueue_task_analysis(42)
