"""
Executor agent: runs generated test artifacts and normalizes their results.
"""

import time
from pathlib import Path
from typing import Iterable, List, Optional

from qia.config.settings import ExecutionConfig
from qia.core.interfaces import ExecutionService, RunnerBackend
from qia.core.types import ExecutionResult, GeneratedTest
from qia.error_handling.exceptions import ReportParseError
from qia.execution.evidence import EvidenceReconciler
from qia.execution.report_parser import decode_report, parse_report, unparseable_result
from qia.execution.runner import PlaywrightRunner
from qia.monitoring.logger import get_logger, log_performance_metric
from qia.monitoring.reporter import ResultReporter

logger = get_logger(__name__)


class ExecutorAgent(ExecutionService):
    """
    Runs one test artifact at a time and returns a fresh ExecutionResult.

    Only a runner that cannot be launched at all raises; unreadable output
    becomes a single synthetic failure.
    """

    def __init__(
        self,
        config: Optional[ExecutionConfig] = None,
        runner: Optional[RunnerBackend] = None,
        reconciler: Optional[EvidenceReconciler] = None,
        reporter: Optional[ResultReporter] = None,
    ) -> None:
        self.config = config or ExecutionConfig()
        self.runner = runner or PlaywrightRunner(self.config)
        self.reconciler = reconciler or EvidenceReconciler(
            self.config.resolve(self.config.evidence_dir)
        )
        self.reporter = reporter or ResultReporter()

    def _ensure_directories(self) -> None:
        for directory in (
            self.config.results_dir,
            self.config.screenshots_dir,
            self.config.evidence_dir,
        ):
            self.config.resolve(directory).mkdir(parents=True, exist_ok=True)

    async def execute(self, artifact: GeneratedTest) -> ExecutionResult:
        logger.info(f"Running: {Path(artifact.file_path).name}")
        self._ensure_directories()

        start = time.monotonic()
        output = await self.runner.run(Path(artifact.file_path))
        duration_ms = int((time.monotonic() - start) * 1000)

        report_parsed = True
        try:
            report = decode_report(output.stdout)
            parsed = parse_report(
                report, artifact.file_path, self.config.error_excerpt_chars
            )
        except ReportParseError as e:
            logger.warning(
                "Could not parse JSON report, treating run as one failure",
                extra={"artifact": artifact.file_path, "error": e.message},
            )
            report_parsed = False
            parsed = unparseable_result(
                artifact.file_path,
                output.stdout,
                output.stderr,
                self.config.error_excerpt_chars,
            )

        failed_tests = parsed.failed_tests
        if report_parsed:
            failed_tests = self.reconciler.reconcile(failed_tests)

        result = ExecutionResult(
            file_path=artifact.file_path,
            type=artifact.type,
            passed=parsed.passed,
            failed=parsed.failed,
            skipped=parsed.skipped,
            total=parsed.total,
            duration_ms=duration_ms,
            failed_tests=failed_tests,
            heal_attempts=0,
            ultimately_passed=parsed.failed == 0,
            report_parsed=report_parsed,
        )

        log_performance_metric(
            "artifact_execution",
            duration_ms,
            context={
                "artifact": artifact.file_path,
                "exit_code": output.exit_code,
                "failed": result.failed,
            },
        )
        self.reporter.print_artifact_result(result)
        return result

    async def execute_all(self, artifacts: Iterable[GeneratedTest]) -> List[ExecutionResult]:
        """Execute artifacts sequentially, in input order."""
        artifacts = list(artifacts)
        logger.info(f"Executing {len(artifacts)} test file(s)")

        results: List[ExecutionResult] = []
        for artifact in artifacts:
            results.append(await self.execute(artifact))

        self.reporter.print_execution_summary(results)
        return results
