"""
Quality pipeline: execute, reconcile, classify and heal a batch of artifacts.
"""

from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from qia.agents.executor import ExecutorAgent
from qia.agents.healer import HealerAgent
from qia.agents.rca import RCAAgent
from qia.config.settings import HealingConfig, Settings
from qia.core.types import ExecutionResult, GeneratedTest
from qia.error_handling.exceptions import HealingError, RunnerLaunchError
from qia.monitoring.logger import get_logger
from qia.monitoring.reporter import ResultReporter

logger = get_logger(__name__)


class PipelineOutcome(BaseModel):
    """Final results of one pipeline run, one per artifact in input order."""

    results: List[ExecutionResult] = Field(default_factory=list)

    @property
    def total_passed(self) -> int:
        return sum(result.passed for result in self.results)

    @property
    def total_failed(self) -> int:
        return sum(result.failed for result in self.results)

    @property
    def total_skipped(self) -> int:
        return sum(result.skipped for result in self.results)

    @property
    def all_passed(self) -> bool:
        return all(result.failed == 0 for result in self.results)


class QualityPipeline:
    """
    Drives artifacts through the execution, RCA and healing agents.

    Artifacts are processed one at a time in input order. A fault while
    classifying or healing one artifact never stops the others; only a
    runner that cannot be launched aborts the run.
    """

    def __init__(
        self,
        executor: ExecutorAgent,
        rca_agent: RCAAgent,
        healer: HealerAgent,
        healing_config: Optional[HealingConfig] = None,
        reporter: Optional[ResultReporter] = None,
    ) -> None:
        self.executor = executor
        self.rca_agent = rca_agent
        self.healer = healer
        self.healing_config = healing_config or HealingConfig()
        self.reporter = reporter or ResultReporter()

    @classmethod
    def from_settings(
        cls, settings: Settings, reporter: Optional[ResultReporter] = None
    ) -> "QualityPipeline":
        """Build the pipeline and its agents from application settings."""
        reporter = reporter or ResultReporter()
        healing_config = settings.healing_config()
        rca_model = settings.get_agent_model_config("rca_agent")
        healer_model = settings.get_agent_model_config("healer_agent")

        return cls(
            executor=ExecutorAgent(config=settings.execution_config(), reporter=reporter),
            rca_agent=RCAAgent(
                config=settings.classification_config(),
                reporter=reporter,
                model=rca_model.model,
                temperature=rca_model.temperature,
                max_tokens=rca_model.max_tokens,
            ),
            healer=HealerAgent(
                config=healing_config,
                reporter=reporter,
                model=healer_model.model,
                temperature=healer_model.temperature,
                max_tokens=healer_model.max_tokens,
            ),
            healing_config=healing_config,
            reporter=reporter,
        )

    async def _heal(
        self,
        artifact: GeneratedTest,
        result: ExecutionResult,
        max_attempts: Optional[int],
    ) -> ExecutionResult:
        try:
            healed = await self.healer.heal_and_rerun(
                artifact, result, self.executor, max_attempts=max_attempts
            )
        except RunnerLaunchError:
            raise
        except HealingError as e:
            logger.error(
                "Healing aborted, keeping pre-heal result",
                extra={"artifact": artifact.file_path, "error": e.message},
            )
            return result
        except Exception:
            logger.exception(
                "Unexpected healing fault, keeping pre-heal result",
                extra={"artifact": artifact.file_path},
            )
            return result

        if healed.heal_attempts > 0 and healed.failed_tests:
            healed = await self.rca_agent.analyze_result(healed)
        return healed

    async def _heal_passing(
        self, artifact: GeneratedTest, result: ExecutionResult
    ) -> ExecutionResult:
        try:
            report = await self.healer.heal_file(artifact.file_path)
        except HealingError as e:
            logger.warning(
                "Proactive healing skipped",
                extra={"artifact": artifact.file_path, "error": e.message},
            )
            return result
        return result.model_copy(
            update={"healing_reports": [*result.healing_reports, report]}
        )

    async def run(
        self,
        artifacts: Iterable[GeneratedTest],
        heal: bool = True,
        max_heal_attempts: Optional[int] = None,
    ) -> PipelineOutcome:
        """
        Run the full pipeline over a batch of artifacts.

        Args:
            artifacts: Test artifacts, processed in order
            heal: Whether failing artifacts go through the heal loop
            max_heal_attempts: Override for the configured heal bound

        Returns:
            Outcome with the latest result for every artifact

        Raises:
            RunnerLaunchError: If the test runner cannot be started
        """
        artifacts = list(artifacts)
        results = await self.executor.execute_all(artifacts)

        classified: List[ExecutionResult] = []
        for result in results:
            if result.failed_tests:
                result = await self.rca_agent.analyze_result(result)
            classified.append(result)

        final: List[ExecutionResult] = []
        for artifact, result in zip(artifacts, classified):
            if heal and result.failed > 0:
                result = await self._heal(artifact, result, max_heal_attempts)
            elif heal and self.healing_config.heal_passing_artifacts:
                result = await self._heal_passing(artifact, result)
            final.append(result)

        outcome = PipelineOutcome(results=final)
        logger.info(
            "Pipeline finished",
            extra={
                "artifacts": len(final),
                "passed": outcome.total_passed,
                "failed": outcome.total_failed,
                "all_passed": outcome.all_passed,
            },
        )
        return outcome
