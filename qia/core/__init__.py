"""
Core module exports.
"""

from qia.core.interfaces import ExecutionService, RunnerBackend, RunnerOutput
from qia.core.types import (
    TIER_CONFIDENCE,
    TIER_NUMBER,
    ArtifactType,
    EvidenceCapture,
    ExecutionResult,
    FailureRecord,
    GeneratedTest,
    HealingReport,
    HealResult,
    HealTier,
    NetworkRequest,
    RootCauseCategory,
    RootCauseResult,
)

__all__ = [
    # Interfaces
    "RunnerBackend",
    "RunnerOutput",
    "ExecutionService",
    # Types
    "ArtifactType",
    "GeneratedTest",
    "NetworkRequest",
    "FailureRecord",
    "RootCauseCategory",
    "RootCauseResult",
    "ExecutionResult",
    "EvidenceCapture",
    "HealTier",
    "HealResult",
    "HealingReport",
    "TIER_CONFIDENCE",
    "TIER_NUMBER",
]
