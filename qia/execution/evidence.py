"""
Matching failure records to evidence captured by the test's own instrumentation.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from qia.core.types import EvidenceCapture, FailureRecord
from qia.error_handling.exceptions import EvidenceReadError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
FUZZY_PREFIX_CHARS = 15


def slugify(title: str) -> str:
    """Lower-case, collapse non-alphanumeric runs to '-', trim separators."""
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


class EvidenceReconciler:
    """Overlays evidence files onto failure records."""

    def __init__(self, evidence_dir: Path) -> None:
        self.evidence_dir = Path(evidence_dir)

    def find_evidence_file(self, test_title: str) -> Optional[Path]:
        """
        Locate the evidence file for a test title.

        An exactly named ``<slug>.json`` wins. Otherwise the directory is
        scanned in name order for a file whose slug is a prefix of the
        title's slug, or which starts with the first characters of it.
        """
        slug = slugify(test_title)
        if not slug:
            return None

        candidate = self.evidence_dir / f"{slug}.json"
        try:
            if candidate.is_file():
                return candidate
        except OSError as e:
            # e.g. ENAMETOOLONG for very long titles; the fuzzy scan may still match
            logger.debug(
                "Exact evidence lookup failed",
                extra={"test_title": test_title, "error": str(e)},
            )

        try:
            if not self.evidence_dir.is_dir():
                return None
            names = sorted(self.evidence_dir.glob("*.json"))
        except OSError as e:
            logger.warning(
                "Could not scan evidence directory",
                extra={"evidence_path": str(self.evidence_dir), "error": str(e)},
            )
            return None

        head = slug[:FUZZY_PREFIX_CHARS]
        for path in names:
            base = path.stem
            if base and (slug.startswith(base) or base.startswith(head)):
                return path

        return None

    def load(self, path: Path) -> EvidenceCapture:
        """
        Read and validate one evidence file.

        Raises:
            EvidenceReadError: If the file cannot be read or decoded
        """
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise EvidenceReadError(
                f"Could not read evidence file: {e}", evidence_path=path, cause=e
            ) from e

        if not isinstance(payload, dict):
            raise EvidenceReadError("Evidence root is not an object", evidence_path=path)

        try:
            return EvidenceCapture.model_validate(payload)
        except ValidationError as e:
            raise EvidenceReadError(
                "Evidence does not match the expected shape", evidence_path=path, cause=e
            ) from e

    def reconcile_record(self, record: FailureRecord) -> FailureRecord:
        """Return the record with evidence fields replaced, or unchanged on no match."""
        path = self.find_evidence_file(record.title)
        if path is None:
            return record

        try:
            evidence = self.load(path)
        except EvidenceReadError as e:
            logger.warning(
                "Ignoring unreadable evidence",
                extra={"evidence_path": str(path), "error": e.message},
            )
            return record

        update: Dict[str, Any] = {}
        if evidence.screenshot_path is not None:
            update["full_page_screenshot_path"] = evidence.screenshot_path
        if evidence.console_errors is not None:
            update["console_errors"] = list(evidence.console_errors)
        if evidence.network_requests is not None:
            update["network_requests"] = list(evidence.network_requests)
        if evidence.dom_snapshot is not None:
            update["dom_snapshot"] = evidence.dom_snapshot

        logger.debug(
            "Evidence matched",
            extra={"test_title": record.title, "evidence_path": str(path)},
        )
        return record.model_copy(update=update)

    def reconcile(self, records: List[FailureRecord]) -> List[FailureRecord]:
        return [self.reconcile_record(record) for record in records]
