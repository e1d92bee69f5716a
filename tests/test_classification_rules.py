"""
Unit tests for the root-cause rule cascade.
"""

import itertools

import pytest

from qia.config.settings import ClassificationConfig
from qia.core.types import NetworkRequest, RootCauseCategory
from qia.evaluation.classification_rules import (
    CATEGORY_ASSIGNEES,
    CLASSIFICATION_RULES,
    DEFAULT_FIXES,
    NO_API_CALLS,
    classify_failure,
    default_reason,
    format_api_log,
    get_assignee,
)


class TestRuleTable:
    """The priority order is data and can be asserted directly."""

    def test_priority_order(self):
        assert [category for category, _, _ in CLASSIFICATION_RULES] == [
            RootCauseCategory.ENVIRONMENT,
            RootCauseCategory.BACKEND,
            RootCauseCategory.FRONTEND,
            RootCauseCategory.DATA,
        ]

    def test_every_category_has_assignee_and_fix(self):
        for category in RootCauseCategory:
            assert CATEGORY_ASSIGNEES[category]
            assert DEFAULT_FIXES[category]


class TestClassifyFailure:
    """Tests for classify_failure."""

    def test_connection_refused_is_environment(self):
        category = classify_failure("page.goto: net::ERR_CONNECTION_REFUSED at http://localhost:3000")

        assert category == RootCauseCategory.ENVIRONMENT
        assert get_assignee(category) == "DevOps / Environment Team"

    @pytest.mark.parametrize(
        "error",
        [
            "connect ECONNREFUSED 127.0.0.1:3000",
            "SSL_ERROR_BAD_CERT_DOMAIN",
            "Timeout 30000ms exceeded.",
            "Navigation timeout of 30000 ms exceeded",
            "Page crashed",
        ],
    )
    def test_environment_signatures(self, error):
        assert classify_failure(error) == RootCauseCategory.ENVIRONMENT

    def test_server_error_beats_ui_looking_text(self):
        requests = [NetworkRequest(method="GET", url="/api/cart", status=500)]

        category = classify_failure("element not visible", [], requests)

        assert category == RootCauseCategory.BACKEND

    def test_slow_response_is_backend(self):
        requests = [NetworkRequest(url="/api/search", status=200, response_time_ms=3001)]
        assert classify_failure("locator not found", [], requests) == RootCauseCategory.BACKEND

    def test_response_at_threshold_is_not_backend(self):
        requests = [NetworkRequest(url="/api/search", status=399, response_time_ms=3000)]
        assert classify_failure("locator not found", [], requests) == RootCauseCategory.UI

    def test_thresholds_come_from_config(self):
        requests = [NetworkRequest(url="/api/search", status=200, response_time_ms=1200)]
        config = ClassificationConfig(slow_response_ms=1000)
        assert classify_failure("x", [], requests, config) == RootCauseCategory.BACKEND

    def test_environment_beats_backend(self):
        requests = [NetworkRequest(url="/api/cart", status=500)]

        category = classify_failure("net::ERR_CONNECTION_REFUSED", [], requests)

        assert category == RootCauseCategory.ENVIRONMENT

    def test_any_console_error_is_frontend(self):
        assert classify_failure("element not visible", ["Failed to load resource"]) == RootCauseCategory.FRONTEND

    def test_backend_beats_frontend(self):
        requests = [NetworkRequest(url="/api/cart", status=404)]
        category = classify_failure("x", ["Uncaught TypeError: cart is null"], requests)
        assert category == RootCauseCategory.BACKEND

    @pytest.mark.parametrize(
        "error",
        [
            "expect(received).toBe(expected)\nExpected: 3\nReceived: 2",
            "Expected value to be 'Welcome'",
            "expected [1] to equal [2]",
            "Wrong total shown",
            "Price mismatch on checkout",
        ],
    )
    def test_data_signatures(self, error):
        assert classify_failure(error) == RootCauseCategory.DATA

    def test_expected_alone_is_not_data(self):
        assert classify_failure("expected element to exist") == RootCauseCategory.UI

    def test_frontend_beats_data(self):
        assert classify_failure("Expected: 3 Received: 2", ["ReferenceError: x"]) == RootCauseCategory.FRONTEND

    def test_default_is_ui(self):
        category = classify_failure("locator.click: element is not visible")

        assert category == RootCauseCategory.UI
        assert get_assignee(category) == "QA Engineer"

    def test_empty_inputs(self):
        assert classify_failure("") == RootCauseCategory.UI

    def test_pure_and_order_independent(self):
        cases = [
            ("net::ERR_FAILED", [], []),
            ("element not visible", [], [NetworkRequest(status=503)]),
            ("x", ["Uncaught"], []),
            ("expected 1 received 2", [], []),
            ("not found", [], []),
        ]
        baseline = [classify_failure(*case) for case in cases]

        for permutation in itertools.permutations(range(len(cases))):
            results = {index: classify_failure(*cases[index]) for index in permutation}
            assert [results[index] for index in range(len(cases))] == baseline


class TestDefaults:
    """Tests for the deterministic reason and API log."""

    def test_default_reason_uses_first_line(self):
        reason = default_reason("Timeout 30000ms exceeded\n  at login.spec.ts:12", RootCauseCategory.ENVIRONMENT)
        assert reason == "Environment Issue detected: Timeout 30000ms exceeded"

    def test_default_reason_truncates(self):
        reason = default_reason("x" * 500, RootCauseCategory.UI)
        assert reason == "UI Issue detected: " + "x" * 200

    def test_format_api_log_empty(self):
        assert format_api_log([]) == NO_API_CALLS

    def test_format_api_log_entries(self):
        requests = [
            NetworkRequest(method="POST", url="https://shop.test/api/login?token=abc", status=500, response_time_ms=120),
            NetworkRequest(method="GET", url="/api/me"),
        ]

        assert format_api_log(requests) == (
            "POST https://shop.test/api/login → 500 (120ms), GET /api/me → ? (?ms)"
        )

    def test_format_api_log_limit(self):
        requests = [NetworkRequest(url=f"/api/{i}", status=200) for i in range(12)]

        log = format_api_log(requests)

        assert log.count("→") == 8
        assert "/api/8 " not in log
