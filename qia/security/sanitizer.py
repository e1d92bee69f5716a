"""
Redaction of secrets in logs and in text sent to the generative collaborator.

Test runner output, console errors and captured network URLs routinely carry
session tokens and credentials; they are scrubbed before leaving the process.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)


class RedactionMethod(Enum):
    """Methods for redacting sensitive data."""
    PLACEHOLDER = auto()   # Replace with placeholder text
    HASH = auto()          # Replace with a short stable hash
    KEEP_PREFIX = auto()   # Keep group 1 (e.g. "password="), redact the rest


@dataclass
class SensitiveDataPattern:
    """Pattern for identifying sensitive data."""

    name: str
    pattern: Pattern[str]
    redaction_method: RedactionMethod = RedactionMethod.PLACEHOLDER
    placeholder: str = "[REDACTED]"
    enabled: bool = True

    def redact(self, match: "re.Match[str]") -> str:
        if self.redaction_method == RedactionMethod.HASH:
            digest = hashlib.sha256(match.group().encode()).hexdigest()[:8]
            return f"[HASH:{digest}]"
        if self.redaction_method == RedactionMethod.KEEP_PREFIX:
            return f"{match.group(1)}{self.placeholder}"
        return self.placeholder


SENSITIVE_KEYS = ("password", "passwd", "api_key", "apikey", "token", "secret", "authorization", "cookie")


def _default_patterns() -> List[SensitiveDataPattern]:
    return [
        SensitiveDataPattern(
            name="jwt_token",
            pattern=re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
            redaction_method=RedactionMethod.HASH,
        ),
        SensitiveDataPattern(
            name="bearer_token",
            pattern=re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
            redaction_method=RedactionMethod.KEEP_PREFIX,
        ),
        SensitiveDataPattern(
            name="openai_key",
            pattern=re.compile(r"\bsk-[A-Za-z0-9_-]{16,}\b"),
        ),
        SensitiveDataPattern(
            name="url_credentials",
            pattern=re.compile(r"(https?://)[^/\s:@]+:[^/\s@]+@"),
            redaction_method=RedactionMethod.KEEP_PREFIX,
            placeholder="[CREDENTIALS]@",
        ),
        SensitiveDataPattern(
            name="query_secret",
            pattern=re.compile(
                r"([?&](?:access_token|token|api_key|apikey|key|sig|signature|password)=)[^&#\s]+",
                re.IGNORECASE,
            ),
            redaction_method=RedactionMethod.KEEP_PREFIX,
        ),
        SensitiveDataPattern(
            name="secret_assignment",
            pattern=re.compile(
                r"((?:password|passwd|pwd|api[_-]?key|secret|access[_-]?token)[\"']?\s*[:=]\s*[\"']?)[^\"'\s,;}&]+",
                re.IGNORECASE,
            ),
            redaction_method=RedactionMethod.KEEP_PREFIX,
        ),
    ]


class DataSanitizer:
    """Sanitizer for strings, nested dictionaries and log records."""

    def __init__(self, patterns: Optional[List[SensitiveDataPattern]] = None):
        self.patterns: List[SensitiveDataPattern] = patterns or _default_patterns()

    def add_pattern(self, pattern: SensitiveDataPattern) -> None:
        """Add a custom pattern."""
        self.patterns.append(pattern)

    def sanitize_string(self, text: str) -> str:
        """Apply every enabled pattern, in order, to the text."""
        if not text:
            return text

        result = text
        for pattern in self.patterns:
            if pattern.enabled:
                result = pattern.pattern.sub(pattern.redact, result)
        return result

    def sanitize_dict(self, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """
        Sanitize a dictionary recursively.

        Values under sensitive keys are replaced outright; every other string
        is pattern-sanitized.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth

        Returns:
            Sanitized copy
        """
        if max_depth <= 0:
            logger.warning("Max recursion depth reached in sanitize_dict")
            return data

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and any(marker in key.lower() for marker in SENSITIVE_KEYS):
                result[key] = "[REDACTED]" if value else value
            else:
                result[key] = self._sanitize_value(value, max_depth)
        return result

    def _sanitize_value(self, value: Any, max_depth: int) -> Any:
        if isinstance(value, str):
            return self.sanitize_string(value)
        if isinstance(value, dict):
            return self.sanitize_dict(value, max_depth - 1)
        if isinstance(value, (list, tuple)):
            return type(value)(self._sanitize_value(item, max_depth) for item in value)
        return value

    def sanitize_log_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """Sanitize a log record's message and arguments in place."""
        if isinstance(record.msg, str):
            record.msg = self.sanitize_string(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = self.sanitize_dict(record.args)
            else:
                record.args = tuple(
                    self.sanitize_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return record


_default_sanitizer = DataSanitizer()


def sanitize_string(text: str) -> str:
    """Sanitize a string using default patterns."""
    return _default_sanitizer.sanitize_string(text)
