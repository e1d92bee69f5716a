"""
Core data models and types for the QIA execution, RCA and healing engine.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArtifactType(str, Enum):
    """Kind of generated test artifact."""

    UI = "ui"
    API = "api"
    VISUAL = "visual"
    SECURITY = "security"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"


class GeneratedTest(BaseModel):
    """A test artifact on disk that the runner can execute."""

    file_path: str = Field(..., description="Path of the test source file")
    type: ArtifactType = Field(ArtifactType.UI, description="Artifact category tag")
    scenario_count: int = Field(0, ge=0, description="Number of scenarios in the file")
    tags: List[str] = Field(default_factory=list)


class NetworkRequest(BaseModel):
    """One network call captured by the artifact's instrumentation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    method: str = "GET"
    url: str = ""
    status: Optional[int] = None
    response_time_ms: Optional[float] = Field(None, alias="responseTime")


class RootCauseCategory(str, Enum):
    """Closed set of failure root-cause categories."""

    UI = "UI Issue"
    FRONTEND = "Frontend Issue"
    BACKEND = "Backend Issue"
    DATA = "Data Issue"
    ENVIRONMENT = "Environment Issue"


class RootCauseResult(BaseModel):
    """Root-cause analysis for a single failed test. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    test_name: str
    category: RootCauseCategory
    reason: str
    console_errors: List[str] = Field(default_factory=list)
    api_log: str = Field(..., description="Formatted summary of captured API calls")
    suggested_fix: str
    assign_to: str = Field(..., description="Responsible role for the category")
    screenshot_path: Optional[str] = None


class FailureRecord(BaseModel):
    """A failed test extracted from the runner report.

    Console, network and DOM fields are only ever filled by evidence
    reconciliation.
    """

    title: str
    file: str
    error: str = ""
    screenshot_path: Optional[str] = Field(
        None, description="Generic image attachment from the runner"
    )
    full_page_screenshot_path: Optional[str] = Field(
        None, description="Full-page capture, preferred over the generic attachment"
    )
    console_errors: List[str] = Field(default_factory=list)
    network_requests: List[NetworkRequest] = Field(default_factory=list)
    dom_snapshot: Optional[str] = None
    rca: Optional[RootCauseResult] = None

    @property
    def screenshot(self) -> Optional[str]:
        """Best available screenshot reference."""
        return self.full_page_screenshot_path or self.screenshot_path


class HealTier(str, Enum):
    """Locator repair strategies, in the order they are tried."""

    STRUCTURAL = "structural"
    SEMANTIC = "semantic"
    GENERATIVE = "generative"


TIER_CONFIDENCE = {
    HealTier.STRUCTURAL: 0.95,
    HealTier.SEMANTIC: 0.80,
    HealTier.GENERATIVE: 0.65,
}

TIER_NUMBER = {
    HealTier.STRUCTURAL: 1,
    HealTier.SEMANTIC: 2,
    HealTier.GENERATIVE: 3,
}


class HealResult(BaseModel):
    """Outcome of healing one brittle locator."""

    original: str
    healed: str = Field(..., description="Replacement, or the original when healing failed")
    tier: HealTier
    confidence: float = Field(..., ge=0.0, le=1.0)
    attempts: int = Field(..., ge=1, le=3)
    success: bool


class HealingReport(BaseModel):
    """All heal results of one healing pass over a test file."""

    file_path: str = ""
    total_locators: int = 0
    healed: int = 0
    failed: int = 0
    results: List[HealResult] = Field(default_factory=list)
    file_rewritten: bool = False

    @classmethod
    def from_results(
        cls, file_path: str, results: List[HealResult], file_rewritten: bool
    ) -> "HealingReport":
        healed = sum(1 for result in results if result.success)
        return cls(
            file_path=file_path,
            total_locators=len(results),
            healed=healed,
            failed=len(results) - healed,
            results=results,
            file_rewritten=file_rewritten,
        )


class ExecutionResult(BaseModel):
    """Outcome of one run of one test artifact.

    A new result is produced by every run; the heal loop supersedes results
    rather than mutating them.
    """

    file_path: str
    type: ArtifactType = ArtifactType.UI
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    duration_ms: int = Field(0, ge=0)
    failed_tests: List[FailureRecord] = Field(default_factory=list)
    heal_attempts: int = Field(0, ge=0)
    ultimately_passed: bool = False
    report_parsed: bool = Field(True, description="False when runner output was unparseable")
    healing_reports: List[HealingReport] = Field(default_factory=list)


class EvidenceCapture(BaseModel):
    """Evidence JSON written by a test artifact's failure hook."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    test_name: Optional[str] = Field(None, alias="testName")
    test_slug: Optional[str] = Field(None, alias="testSlug")
    screenshot_path: Optional[str] = Field(None, alias="screenshotPath")
    console_errors: Optional[List[str]] = Field(None, alias="consoleErrors")
    network_requests: Optional[List[NetworkRequest]] = Field(None, alias="networkRequests")
    dom_snapshot: Optional[str] = Field(None, alias="domSnapshot")
