"""
Test execution: runner backend, report parsing and evidence reconciliation.
"""

from qia.execution.evidence import EvidenceReconciler, slugify
from qia.execution.report_parser import (
    ParsedReport,
    PlaywrightReport,
    decode_report,
    parse_report,
    unparseable_result,
)
from qia.execution.runner import PlaywrightRunner

__all__ = [
    "EvidenceReconciler",
    "slugify",
    "ParsedReport",
    "PlaywrightReport",
    "decode_report",
    "parse_report",
    "unparseable_result",
    "PlaywrightRunner",
]
