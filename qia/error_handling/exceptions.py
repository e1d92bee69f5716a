"""
Custom exception hierarchy for QIA error handling.

Only `RunnerLaunchError` is meant to reach the orchestrating caller. The
other errors mark recoverable conditions that are caught at the seam where
a deterministic default can be substituted.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence


class QIAError(Exception):
    """Base exception for all QIA errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class RunnerLaunchError(QIAError):
    """The external test runner could not be started at all."""

    def __init__(
        self,
        message: str,
        command: Sequence[str],
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.command = list(command)
        self.details.update({"command": " ".join(self.command)})


class ReportParseError(QIAError):
    """Runner output did not contain a usable JSON report."""

    def __init__(
        self,
        message: str,
        raw_excerpt: str = "",
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.raw_excerpt = raw_excerpt
        self.details.update({"raw_excerpt": raw_excerpt})


class EvidenceReadError(QIAError):
    """An evidence file exists but cannot be read or decoded."""

    def __init__(
        self,
        message: str,
        evidence_path: Path,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.evidence_path = evidence_path
        self.details.update({"evidence_path": str(evidence_path)})


class GenerativeResponseError(QIAError):
    """The generative collaborator returned an unusable reply."""

    def __init__(
        self,
        message: str,
        agent_name: str,
        raw_response: Any = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.agent_name = agent_name
        self.raw_response = raw_response
        self.details.update({
            "agent_name": agent_name,
            "raw_response": str(raw_response)[:200] if raw_response is not None else None
        })


class HealingError(QIAError):
    """Test artifact source could not be read or rewritten."""

    def __init__(
        self,
        message: str,
        file_path: Path,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.file_path = file_path
        self.details.update({"file_path": str(file_path)})
