"""
Unit tests for evidence reconciliation.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from qia.core.types import FailureRecord, NetworkRequest
from qia.error_handling.exceptions import EvidenceReadError
from qia.execution.evidence import EvidenceReconciler, slugify


def _write(directory, name, payload):
    path = directory / name
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def evidence_dir(tmp_path):
    directory = tmp_path / "evidence"
    directory.mkdir()
    return directory


class TestSlugify:
    """Tests for title slugs."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("User can log in", "user-can-log-in"),
            ("  SCRUM-11: Login -- valid user!  ", "scrum-11-login-valid-user"),
            ("already-a-slug", "already-a-slug"),
            ("***", ""),
        ],
    )
    def test_slugify(self, title, expected):
        assert slugify(title) == expected


class TestFindEvidenceFile:
    """Tests for exact and fuzzy evidence lookup."""

    def test_exact_match(self, evidence_dir):
        path = _write(evidence_dir, "user-can-log-in.json", {})
        _write(evidence_dir, "user-can-log-in-twice.json", {})

        assert EvidenceReconciler(evidence_dir).find_evidence_file("User can log in") == path

    def test_file_slug_is_prefix_of_title_slug(self, evidence_dir):
        path = _write(evidence_dir, "user-can-log.json", {})

        found = EvidenceReconciler(evidence_dir).find_evidence_file("User can log in @smoke")

        assert found == path

    def test_file_starts_with_title_slug_head(self, evidence_dir):
        path = _write(evidence_dir, "checkout-flow-co-retry1.json", {})

        found = EvidenceReconciler(evidence_dir).find_evidence_file("Checkout flow completes")

        assert found == path

    def test_fuzzy_scan_is_name_ordered(self, evidence_dir):
        _write(evidence_dir, "login-b.json", {})
        first = _write(evidence_dir, "login-a.json", {})

        found = EvidenceReconciler(evidence_dir).find_evidence_file("login")

        assert found == first

    def test_no_match(self, evidence_dir):
        _write(evidence_dir, "something-else.json", {})
        assert EvidenceReconciler(evidence_dir).find_evidence_file("User can log in") is None

    def test_non_json_files_ignored(self, evidence_dir):
        _write(evidence_dir, "user-can-log.png", "binary")
        assert EvidenceReconciler(evidence_dir).find_evidence_file("User can log in") is None

    def test_missing_directory(self, tmp_path):
        reconciler = EvidenceReconciler(tmp_path / "absent")
        assert reconciler.find_evidence_file("User can log in") is None

    def test_empty_slug_never_matches(self, evidence_dir):
        _write(evidence_dir, "anything.json", {})
        assert EvidenceReconciler(evidence_dir).find_evidence_file("!!!") is None

    def test_title_longer_than_file_name_limit(self, evidence_dir):
        _write(evidence_dir, "unrelated.json", {})

        found = EvidenceReconciler(evidence_dir).find_evidence_file("user can complete checkout " * 12)

        assert found is None

    def test_long_title_still_fuzzy_matched(self, evidence_dir):
        path = _write(evidence_dir, "user-can-complete-checkout.json", {})

        found = EvidenceReconciler(evidence_dir).find_evidence_file("user can complete checkout " * 12)

        assert found == path

    def test_exact_lookup_os_error_falls_back_to_scan(self, evidence_dir):
        path = _write(evidence_dir, "user-can-log.json", {})

        with patch.object(Path, "is_file", side_effect=OSError(36, "File name too long")):
            found = EvidenceReconciler(evidence_dir).find_evidence_file("User can log in")

        assert found == path

    def test_unreadable_directory_is_no_match(self, evidence_dir):
        with patch.object(Path, "glob", side_effect=PermissionError(13, "Permission denied")):
            found = EvidenceReconciler(evidence_dir).find_evidence_file("User can log in")

        assert found is None


class TestLoad:
    """Tests for reading evidence files."""

    def test_invalid_json(self, evidence_dir):
        path = _write(evidence_dir, "broken.json", "{not json")
        with pytest.raises(EvidenceReadError) as exc_info:
            EvidenceReconciler(evidence_dir).load(path)
        assert exc_info.value.evidence_path == path

    def test_non_object_root(self, evidence_dir):
        path = _write(evidence_dir, "list.json", [1, 2])
        with pytest.raises(EvidenceReadError):
            EvidenceReconciler(evidence_dir).load(path)

    def test_camel_case_fields(self, evidence_dir):
        path = _write(evidence_dir, "e.json", {
            "testName": "User can log in",
            "screenshotPath": "shots/login.png",
            "consoleErrors": ["TypeError: x is undefined"],
            "networkRequests": [{"method": "POST", "url": "/api/login", "status": 500, "responseTime": 120}],
            "domSnapshot": "<html></html>",
        })

        evidence = EvidenceReconciler(evidence_dir).load(path)

        assert evidence.test_name == "User can log in"
        assert evidence.network_requests[0].status == 500
        assert evidence.network_requests[0].response_time_ms == 120


class TestReconcile:
    """Tests for overlaying evidence onto records."""

    def test_overlay_replaces_fields(self, evidence_dir):
        _write(evidence_dir, "user-can-log-in.json", {
            "screenshotPath": "shots/login.png",
            "consoleErrors": ["Uncaught ReferenceError: foo"],
            "networkRequests": [{"method": "GET", "url": "/api/me", "status": 401}],
            "domSnapshot": "<body/>",
        })
        record = FailureRecord(
            title="User can log in",
            file="login.spec.ts",
            error="boom",
            full_page_screenshot_path="runner/full.png",
            console_errors=["stale"],
        )

        [result] = EvidenceReconciler(evidence_dir).reconcile([record])

        assert result.full_page_screenshot_path == "shots/login.png"
        assert result.console_errors == ["Uncaught ReferenceError: foo"]
        assert result.network_requests == [NetworkRequest(method="GET", url="/api/me", status=401)]
        assert result.dom_snapshot == "<body/>"
        assert result.error == "boom"
        assert record.console_errors == ["stale"]

    def test_absent_fields_left_alone(self, evidence_dir):
        _write(evidence_dir, "partial.json", {"consoleErrors": []})
        record = FailureRecord(
            title="Partial", file="p.spec.ts", full_page_screenshot_path="runner/full.png"
        )

        [result] = EvidenceReconciler(evidence_dir).reconcile([record])

        assert result.full_page_screenshot_path == "runner/full.png"
        assert result.console_errors == []

    def test_no_evidence_keeps_record(self, evidence_dir):
        record = FailureRecord(title="Nothing captured", file="n.spec.ts", screenshot_path="a.png")

        [result] = EvidenceReconciler(evidence_dir).reconcile([record])

        assert result == record

    def test_unreadable_evidence_keeps_record(self, evidence_dir):
        _write(evidence_dir, "broken.json", "{oops")
        record = FailureRecord(title="Broken", file="b.spec.ts")

        [result] = EvidenceReconciler(evidence_dir).reconcile([record])

        assert result == record

    def test_order_independent(self, evidence_dir):
        _write(evidence_dir, "alpha.json", {"consoleErrors": ["a"]})
        _write(evidence_dir, "beta.json", {"consoleErrors": ["b"]})
        records = [
            FailureRecord(title="Alpha", file="x.spec.ts"),
            FailureRecord(title="Beta", file="x.spec.ts"),
            FailureRecord(title="Gamma", file="x.spec.ts"),
        ]
        reconciler = EvidenceReconciler(evidence_dir)

        forward = reconciler.reconcile(records)
        backward = reconciler.reconcile(list(reversed(records)))

        assert forward == list(reversed(backward))
        assert [r.console_errors for r in forward] == [["a"], ["b"], []]
