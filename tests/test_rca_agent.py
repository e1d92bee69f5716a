"""
Unit tests for the RCA agent.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from qia.agents.rca import RCAAgent
from qia.core.types import ExecutionResult, FailureRecord, NetworkRequest, RootCauseCategory


def _agent(content=None, side_effect=None):
    client = MagicMock()
    client.call = AsyncMock(return_value={"content": content}, side_effect=side_effect)
    return RCAAgent(client=client, reporter=MagicMock())


@pytest.fixture
def backend_failure():
    return FailureRecord(
        title="Cart shows items",
        file="cart.spec.ts",
        error="locator('.cart-item'): element not visible",
        full_page_screenshot_path="shots/cart.png",
        screenshot_path="results/cart.png",
        network_requests=[
            NetworkRequest(method="GET", url="/api/cart?session=abc", status=500, response_time_ms=85)
        ],
    )


class TestAnalyze:
    """Tests for RCAAgent.analyze."""

    @pytest.mark.asyncio
    async def test_uses_generated_reason_and_fix(self, backend_failure):
        agent = _agent({"reason": "The cart API returned 500.", "suggestedFix": "Fix GET /api/cart."})

        result = await agent.analyze(backend_failure)

        assert result.test_name == "Cart shows items"
        assert result.category == RootCauseCategory.BACKEND
        assert result.reason == "The cart API returned 500."
        assert result.suggested_fix == "Fix GET /api/cart."
        assert result.assign_to == "Backend Developer"
        assert result.api_log == "GET /api/cart → 500 (85ms)"
        assert result.screenshot_path == "shots/cart.png"
        agent.reporter.print_rca.assert_called_once_with(result)

    @pytest.mark.asyncio
    async def test_json_string_content_is_parsed(self, backend_failure):
        agent = _agent(json.dumps({"reason": "r", "suggestedFix": "f"}))

        result = await agent.analyze(backend_failure)

        assert (result.reason, result.suggested_fix) == ("r", "f")

    @pytest.mark.asyncio
    async def test_model_failure_uses_defaults(self, backend_failure):
        agent = _agent(side_effect=RuntimeError("API down"))

        result = await agent.analyze(backend_failure)

        assert result.category == RootCauseCategory.BACKEND
        assert result.reason == "Backend Issue detected: locator('.cart-item'): element not visible"
        assert result.suggested_fix == "Investigate API response codes and server-side error logs"

    @pytest.mark.asyncio
    async def test_malformed_reply_uses_defaults(self, backend_failure):
        agent = _agent("I think the backend is broken")

        result = await agent.analyze(backend_failure)

        assert result.suggested_fix == "Investigate API response codes and server-side error logs"

    @pytest.mark.asyncio
    async def test_partial_reply_fills_missing_field(self, backend_failure):
        agent = _agent({"reason": "Cart API 500.", "suggestedFix": ""})

        result = await agent.analyze(backend_failure)

        assert result.reason == "Cart API 500."
        assert result.suggested_fix == "Investigate API response codes and server-side error logs"

    @pytest.mark.asyncio
    async def test_missing_api_key_uses_defaults(self, backend_failure):
        agent = RCAAgent(reporter=MagicMock())

        with patch("qia.agents.base_agent.OpenAIClient", side_effect=ValueError("no key")):
            result = await agent.analyze(backend_failure)

        assert result.reason.startswith("Backend Issue detected:")

    @pytest.mark.asyncio
    async def test_category_independent_of_model(self, backend_failure):
        agent = _agent({"reason": "It is a UI issue", "suggestedFix": "x", "category": "UI Issue"})

        result = await agent.analyze(backend_failure)

        assert result.category == RootCauseCategory.BACKEND

    @pytest.mark.asyncio
    async def test_prompt_is_sanitized_and_bounded(self):
        record = FailureRecord(
            title="Login",
            file="login.spec.ts",
            error="401 with Bearer secret-token-value",
            console_errors=[f"error {i}" for i in range(8)],
        )
        agent = _agent({"reason": "r", "suggestedFix": "f"})

        await agent.analyze(record)

        kwargs = agent.client.call.call_args.kwargs
        prompt = kwargs["messages"][0]["content"]
        assert "secret-token-value" not in prompt
        assert "CONSOLE ERRORS (8)" in prompt
        assert "error 4" in prompt
        assert "error 5" not in prompt
        assert "API CALLS:\nNone captured" in prompt
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "root cause" in kwargs["system_prompt"].lower()


class TestAnalyzeResult:
    """Tests for attaching RCA to an execution result."""

    @pytest.mark.asyncio
    async def test_attaches_one_rca_per_failure(self, backend_failure):
        agent = _agent({"reason": "r", "suggestedFix": "f"})
        other = FailureRecord(title="Title shown", file="cart.spec.ts", error="element not found")
        result = ExecutionResult(file_path="cart.spec.ts", failed=2, total=2, failed_tests=[backend_failure, other])

        analyzed = await agent.analyze_result(result)

        assert [record.rca.category for record in analyzed.failed_tests] == [
            RootCauseCategory.BACKEND,
            RootCauseCategory.UI,
        ]
        assert analyzed.failed == 2
        assert result.failed_tests[0].rca is None

    @pytest.mark.asyncio
    async def test_crash_on_one_failure_continues(self, backend_failure):
        agent = _agent({"reason": "r", "suggestedFix": "f"})
        other = FailureRecord(title="Second", file="cart.spec.ts", error="x")
        result = ExecutionResult(file_path="cart.spec.ts", failed=2, total=2, failed_tests=[backend_failure, other])
        agent.reporter.print_rca.side_effect = [RuntimeError("render failed"), None]

        analyzed = await agent.analyze_result(result)

        assert analyzed.failed_tests[0].rca is None
        assert analyzed.failed_tests[1].rca is not None
