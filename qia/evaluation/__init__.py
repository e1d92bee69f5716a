"""
Failure evaluation: root-cause rule cascade and its static tables.
"""

from qia.evaluation.classification_rules import (
    CATEGORY_ASSIGNEES,
    CLASSIFICATION_RULES,
    DEFAULT_FIXES,
    NO_API_CALLS,
    classify_failure,
    default_fix,
    default_reason,
    format_api_log,
    get_assignee,
)

__all__ = [
    "CATEGORY_ASSIGNEES",
    "CLASSIFICATION_RULES",
    "DEFAULT_FIXES",
    "NO_API_CALLS",
    "classify_failure",
    "default_fix",
    "default_reason",
    "format_api_log",
    "get_assignee",
]
