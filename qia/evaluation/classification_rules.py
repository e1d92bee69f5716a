"""
Deterministic root-cause classification of test failures.

The cascade is data: ``CLASSIFICATION_RULES`` is walked in order and the
first matching rule decides the category. Everything here is a pure
function of its arguments.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from qia.config.settings import ClassificationConfig
from qia.core.types import NetworkRequest, RootCauseCategory

NO_API_CALLS = "No API calls captured"
REASON_EXCERPT_CHARS = 200

# Signatures that make every other signal unreliable.
ENVIRONMENT_PATTERNS: Tuple[str, ...] = (
    "net::err",
    "econnrefused",
    "ssl",
    "timeout",
    "navigation timeout",
    "page crashed",
)

FRONTEND_CONSOLE_PATTERNS: Tuple[str, ...] = (
    "uncaught",
    "referenceerror",
    "typeerror",
    "syntaxerror",
)

# "expected" plus one of these reads as an assertion on a value.
DATA_ASSERTION_MARKERS: Tuple[str, ...] = ("received", "to be", "to equal")
DATA_PATTERNS: Tuple[str, ...] = ("wrong", "mismatch")

CATEGORY_ASSIGNEES: Dict[RootCauseCategory, str] = {
    RootCauseCategory.UI: "QA Engineer",
    RootCauseCategory.FRONTEND: "Frontend Developer",
    RootCauseCategory.BACKEND: "Backend Developer",
    RootCauseCategory.DATA: "QA Engineer / Data Team",
    RootCauseCategory.ENVIRONMENT: "DevOps / Environment Team",
}

DEFAULT_FIXES: Dict[RootCauseCategory, str] = {
    RootCauseCategory.UI: "Verify element locators and page structure match the current DOM",
    RootCauseCategory.FRONTEND: "Check browser console errors and fix JavaScript runtime issues",
    RootCauseCategory.BACKEND: "Investigate API response codes and server-side error logs",
    RootCauseCategory.DATA: "Review test data and expected values against current application state",
    RootCauseCategory.ENVIRONMENT: (
        "Check application availability, network connectivity, and SSL certificates"
    ),
}


@dataclass(frozen=True)
class FailureSignals:
    """Normalized inputs to the rule cascade."""

    error: str
    console: str
    console_count: int
    network_requests: Tuple[NetworkRequest, ...]
    config: ClassificationConfig

    @classmethod
    def build(
        cls,
        error: str,
        console_errors: Sequence[str],
        network_requests: Sequence[NetworkRequest],
        config: Optional[ClassificationConfig] = None,
    ) -> "FailureSignals":
        return cls(
            error=(error or "").lower(),
            console=" ".join(console_errors).lower(),
            console_count=len(console_errors),
            network_requests=tuple(network_requests),
            config=config or ClassificationConfig(),
        )


def is_environment_failure(signals: FailureSignals) -> bool:
    return any(pattern in signals.error for pattern in ENVIRONMENT_PATTERNS)


def is_backend_failure(signals: FailureSignals) -> bool:
    threshold_status = signals.config.backend_error_status
    slow_ms = signals.config.slow_response_ms
    return any(
        (request.status is not None and request.status >= threshold_status)
        or (request.response_time_ms is not None and request.response_time_ms > slow_ms)
        for request in signals.network_requests
    )


def is_frontend_failure(signals: FailureSignals) -> bool:
    if signals.console_count > 0:
        return True
    return any(pattern in signals.console for pattern in FRONTEND_CONSOLE_PATTERNS)


def is_data_failure(signals: FailureSignals) -> bool:
    error = signals.error
    if "expected" in error and any(marker in error for marker in DATA_ASSERTION_MARKERS):
        return True
    return any(pattern in error for pattern in DATA_PATTERNS)


Rule = Tuple[RootCauseCategory, str, Callable[[FailureSignals], bool]]

# Priority order. UI Issue is the fallthrough when nothing matches.
CLASSIFICATION_RULES: Tuple[Rule, ...] = (
    (RootCauseCategory.ENVIRONMENT, "environment_signature", is_environment_failure),
    (RootCauseCategory.BACKEND, "failing_or_slow_api_call", is_backend_failure),
    (RootCauseCategory.FRONTEND, "console_error", is_frontend_failure),
    (RootCauseCategory.DATA, "value_mismatch", is_data_failure),
)

DEFAULT_CATEGORY = RootCauseCategory.UI


def classify_failure(
    error: str,
    console_errors: Sequence[str] = (),
    network_requests: Sequence[NetworkRequest] = (),
    config: Optional[ClassificationConfig] = None,
) -> RootCauseCategory:
    """
    Assign exactly one root-cause category to a failure.

    Args:
        error: Error text reported by the runner
        console_errors: Browser console errors from evidence
        network_requests: Captured network calls from evidence
        config: Thresholds for the backend rule

    Returns:
        The category of the first matching rule, or UI Issue
    """
    signals = FailureSignals.build(error, console_errors, network_requests, config)
    for category, _name, predicate in CLASSIFICATION_RULES:
        if predicate(signals):
            return category
    return DEFAULT_CATEGORY


def get_assignee(category: RootCauseCategory) -> str:
    return CATEGORY_ASSIGNEES[category]


def default_fix(category: RootCauseCategory) -> str:
    return DEFAULT_FIXES[category]


def default_reason(error: str, category: RootCauseCategory) -> str:
    """Template reason used when no generative explanation is available."""
    lines = (error or "").strip().splitlines()
    first_line = lines[0][:REASON_EXCERPT_CHARS] if lines else "no error message"
    return f"{category.value} detected: {first_line}"


def format_request(request: NetworkRequest) -> str:
    url = request.url.split("?", 1)[0]
    status = request.status if request.status is not None else "?"
    if request.response_time_ms is None:
        elapsed = "?ms"
    else:
        value = request.response_time_ms
        elapsed = f"{int(value) if float(value).is_integer() else value}ms"
    return f"{request.method} {url} → {status} ({elapsed})"


def format_api_log(requests: Sequence[NetworkRequest], limit: int = 8) -> str:
    """Short, single-line summary of captured API calls."""
    if not requests:
        return NO_API_CALLS
    return ", ".join(format_request(request) for request in list(requests)[:limit])


def format_prompt_requests(requests: Sequence[NetworkRequest], limit: int) -> List[str]:
    """One line per request for the RCA prompt."""
    return [format_request(request) for request in list(requests)[:limit]]
