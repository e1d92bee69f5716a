"""
Error handling for QIA.

Every per-artifact and per-failure operation degrades to a default value;
these exceptions describe what went wrong where that happens.
"""

from .exceptions import (
    QIAError,
    RunnerLaunchError,
    ReportParseError,
    EvidenceReadError,
    GenerativeResponseError,
    HealingError,
)

__all__ = [
    "QIAError",
    "RunnerLaunchError",
    "ReportParseError",
    "EvidenceReadError",
    "GenerativeResponseError",
    "HealingError",
]
