"""
Security module exports.
"""

from qia.security.sanitizer import (
    DataSanitizer,
    RedactionMethod,
    SensitiveDataPattern,
    sanitize_string,
)

__all__ = [
    "DataSanitizer",
    "RedactionMethod",
    "SensitiveDataPattern",
    "sanitize_string",
]
