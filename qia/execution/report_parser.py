"""
Parsing of the Playwright JSON reporter output into counts and failure records.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from qia.core.types import FailureRecord
from qia.error_handling.exceptions import ReportParseError

logger = logging.getLogger(__name__)

FULL_PAGE_ATTACHMENT = "full-page-screenshot"
UNKNOWN_ERROR = "Unknown error"


class AttemptStatus(str, Enum):
    """Status of a single attempt (retry) of a test."""

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


class _ReportModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ReportAttachment(_ReportModel):
    name: str = ""
    content_type: str = Field("", alias="contentType")
    path: Optional[str] = None


class ReportError(_ReportModel):
    message: Optional[str] = None
    stack: Optional[str] = None


class ReportAttempt(_ReportModel):
    status: Optional[str] = None
    error: Optional[ReportError] = None
    attachments: List[ReportAttachment] = Field(default_factory=list)
    duration: Optional[float] = None


class ReportTest(_ReportModel):
    # expected | unexpected | flaky | skipped
    status: Optional[str] = None
    results: List[ReportAttempt] = Field(default_factory=list)


class ReportSpec(_ReportModel):
    title: str = ""
    file: Optional[str] = None
    ok: Optional[bool] = None
    tests: List[ReportTest] = Field(default_factory=list)


class ReportSuite(_ReportModel):
    title: str = ""
    file: Optional[str] = None
    specs: List[ReportSpec] = Field(default_factory=list)
    suites: List["ReportSuite"] = Field(default_factory=list)


ReportSuite.model_rebuild()


class ReportStats(_ReportModel):
    expected: int = 0
    unexpected: int = 0
    flaky: int = 0
    skipped: int = 0
    duration: Optional[float] = None


class PlaywrightReport(_ReportModel):
    suites: List[ReportSuite] = Field(default_factory=list)
    stats: Optional[ReportStats] = None
    errors: List[ReportError] = Field(default_factory=list)


@dataclass
class ParsedReport:
    """Counts and failure records extracted from one report."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    failed_tests: List[FailureRecord] = field(default_factory=list)
    from_stats: bool = False

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped


def is_report_payload(payload: Any) -> bool:
    """True for a top-level reporter object, as opposed to a log line or nested suite."""
    if not isinstance(payload, dict):
        return False
    return "stats" in payload or ("suites" in payload and "specs" not in payload)


def decode_report(raw: str) -> PlaywrightReport:
    """
    Decode the reporter's JSON object from raw runner output.

    Tooling can print banners and JSON log lines (e.g. ``[WebServer] {...}``)
    around the report, so every ``{`` is tried in order and objects that
    are not report-shaped are skipped.

    Raises:
        ReportParseError: If no report object can be decoded
    """
    if not raw or not raw.strip():
        raise ReportParseError("Runner produced no output")

    start = raw.find("{")
    if start == -1:
        raise ReportParseError("No JSON object in runner output", raw_excerpt=raw[:200])

    decoder = json.JSONDecoder()
    decode_error: Optional[json.JSONDecodeError] = None
    error_start = start

    while start != -1:
        try:
            payload, end = decoder.raw_decode(raw, start)
        except json.JSONDecodeError as e:
            if decode_error is None:
                decode_error, error_start = e, start
            start = raw.find("{", start + 1)
            continue

        if is_report_payload(payload):
            try:
                return PlaywrightReport.model_validate(payload)
            except ValidationError as e:
                raise ReportParseError(
                    "Report does not match the expected shape",
                    raw_excerpt=raw[start:start + 200],
                    cause=e,
                ) from e

        logger.debug("Skipping non-report JSON object at offset %d", start)
        start = raw.find("{", end)

    if decode_error is not None:
        raise ReportParseError(
            f"Invalid JSON report: {decode_error.msg}",
            raw_excerpt=raw[error_start:error_start + 200],
            cause=decode_error,
        ) from decode_error

    raise ReportParseError("No report object in runner output", raw_excerpt=raw[:200])


def iter_specs(suites: List[ReportSuite]) -> Iterator[ReportSpec]:
    """Depth-first walk: a suite's own specs, then its child suites."""
    for suite in suites:
        yield from suite.specs
        yield from iter_specs(suite.suites)


def final_status(test: ReportTest) -> str:
    """Status of the last recorded attempt, falling back to the test status."""
    if test.results:
        last = test.results[-1]
        if last.status:
            return last.status

    if test.status in ("expected", "flaky"):
        return AttemptStatus.PASSED.value
    if test.status == "skipped":
        return AttemptStatus.SKIPPED.value
    return AttemptStatus.FAILED.value


def _error_text(attempt: Optional[ReportAttempt], limit: int) -> str:
    if attempt is None or attempt.error is None:
        return UNKNOWN_ERROR[:limit]
    text = attempt.error.message or attempt.error.stack or UNKNOWN_ERROR
    return text[:limit]


def _screenshot_paths(attempt: Optional[ReportAttempt]) -> tuple[Optional[str], Optional[str]]:
    if attempt is None:
        return None, None

    generic = next(
        (a.path for a in attempt.attachments if a.content_type.startswith("image/") and a.path),
        None,
    )
    full_page = next(
        (a.path for a in attempt.attachments if a.name == FULL_PAGE_ATTACHMENT and a.path),
        None,
    )
    return generic, full_page


def parse_report(
    report: PlaywrightReport, target_file: str, error_excerpt_chars: int = 500
) -> ParsedReport:
    """Tally tests by last-attempt status and build a record per failure."""
    parsed = ParsedReport()

    for spec in iter_specs(report.suites):
        for test in spec.tests:
            status = final_status(test)

            if status == AttemptStatus.PASSED.value:
                parsed.passed += 1
            elif status == AttemptStatus.SKIPPED.value:
                parsed.skipped += 1
            else:
                parsed.failed += 1
                last = test.results[-1] if test.results else None
                screenshot, full_page = _screenshot_paths(last)
                parsed.failed_tests.append(
                    FailureRecord(
                        title=spec.title,
                        file=spec.file or target_file,
                        error=_error_text(last, error_excerpt_chars),
                        screenshot_path=screenshot,
                        full_page_screenshot_path=full_page,
                    )
                )

    if parsed.total == 0 and report.stats is not None:
        parsed.passed = report.stats.expected + report.stats.flaky
        parsed.failed = report.stats.unexpected
        parsed.skipped = report.stats.skipped
        parsed.from_stats = True

    if parsed.total == 0:
        first_error = next((e.message or e.stack for e in report.errors if e.message or e.stack), None)
        logger.warning(
            "Report for %s contains no tests%s",
            target_file,
            f": {first_error.splitlines()[0][:error_excerpt_chars]}" if first_error else "",
            extra={"artifact": target_file, "report_errors": len(report.errors)},
        )

    return parsed


def unparseable_result(
    target_file: str, stdout: str, stderr: str, error_excerpt_chars: int = 500
) -> ParsedReport:
    """One opaque failure standing in for a run whose report could not be read."""
    excerpt = (stderr.strip() or stdout.strip())[:error_excerpt_chars]
    record = FailureRecord(
        title=Path(target_file).name,
        file=target_file,
        error=excerpt or "Test runner produced no parseable report",
    )
    return ParsedReport(failed=1, failed_tests=[record])
