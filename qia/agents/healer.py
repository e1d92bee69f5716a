"""
Healer agent: three-tier locator repair and the bounded heal-and-rerun loop.

Tier 1 rewrites class/id tokens as test-id lookups, tier 2 turns quoted
text into a role, label or text query, tier 3 asks the model. Tiers are
tried in that order and the first success wins.
"""

from pathlib import Path
from typing import List, Optional

from qia.agents.base_agent import BaseAgent
from qia.config.agent_prompts import HEALER_SYSTEM_PROMPT, LOCATOR_HEALING_PROMPT
from qia.config.settings import HealingConfig
from qia.core.interfaces import ExecutionService
from qia.core.types import (
    TIER_CONFIDENCE,
    TIER_NUMBER,
    ExecutionResult,
    GeneratedTest,
    HealingReport,
    HealResult,
    HealTier,
)
from qia.error_handling.exceptions import HealingError
from qia.healing.locator_patterns import (
    BrittleLocator,
    apply_replacement,
    clean_generated_locator,
    detect_brittle_locators,
    lines_around,
    semantic_replacement,
    structural_replacement,
)
from qia.monitoring.logger import get_logger
from qia.monitoring.reporter import ResultReporter
from qia.security.sanitizer import DataSanitizer

logger = get_logger(__name__)


class HealerAgent(BaseAgent):
    """Repairs brittle locators in test source and re-runs until clean or exhausted."""

    def __init__(
        self,
        name: str = "HealerAgent",
        config: Optional[HealingConfig] = None,
        reporter: Optional[ResultReporter] = None,
        sanitizer: Optional[DataSanitizer] = None,
        **kwargs,
    ) -> None:
        super().__init__(name=name, system_prompt=HEALER_SYSTEM_PROMPT, **kwargs)
        self.config = config or HealingConfig()
        self.reporter = reporter or ResultReporter()
        self.sanitizer = sanitizer or DataSanitizer()

    def _success(self, locator: BrittleLocator, healed: str, tier: HealTier) -> HealResult:
        return HealResult(
            original=locator.expression,
            healed=healed,
            tier=tier,
            confidence=TIER_CONFIDENCE[tier],
            attempts=TIER_NUMBER[tier],
            success=True,
        )

    def _heal_structural(self, locator: BrittleLocator) -> Optional[str]:
        return structural_replacement(locator)

    def _heal_semantic(self, locator: BrittleLocator, source: str) -> Optional[str]:
        surrounding = lines_around(source, locator.expression, 0) or locator.expression
        return semantic_replacement(locator, surrounding)

    async def _heal_generative(self, locator: BrittleLocator, source: str) -> Optional[str]:
        context = lines_around(source, locator.expression, self.config.context_lines)
        prompt = LOCATOR_HEALING_PROMPT.format(
            broken=locator.expression,
            context=self.sanitizer.sanitize_string(context),
            preferred=self.config.preferred_locator_strategy,
            test_id_attribute=self.config.test_id_attribute,
        )

        try:
            response = await self.call_openai(messages=self.build_messages(prompt))
        except Exception as e:
            logger.warning(
                "Locator model call failed",
                extra={"locator": locator.expression, "error": str(e)},
            )
            return None

        content = response.get("content")
        healed = clean_generated_locator(
            content if isinstance(content, str) else "",
            prefix=self.config.locator_prefix,
            max_length=self.config.max_expression_length,
        )
        if healed is None:
            logger.info(
                "Rejected generated locator",
                extra={"locator": locator.expression, "reply": str(content)[:200]},
            )
        return healed

    async def heal_locator(self, locator: BrittleLocator, source: str) -> HealResult:
        """
        Heal one locator, trying tiers in order and stopping at the first success.

        Args:
            locator: Brittle locator to repair
            source: Current in-memory source of the test file

        Returns:
            Heal result; on failure ``healed`` is the unchanged original
        """
        healed = self._heal_structural(locator)
        if healed:
            return self._success(locator, healed, HealTier.STRUCTURAL)

        healed = self._heal_semantic(locator, source)
        if healed:
            return self._success(locator, healed, HealTier.SEMANTIC)

        healed = await self._heal_generative(locator, source)
        if healed:
            return self._success(locator, healed, HealTier.GENERATIVE)

        return HealResult(
            original=locator.expression,
            healed=locator.expression,
            tier=HealTier.GENERATIVE,
            confidence=0.0,
            attempts=TIER_NUMBER[HealTier.GENERATIVE],
            success=False,
        )

    def _read_source(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise HealingError(f"Could not read test source: {e}", file_path=path, cause=e) from e

    def _write_source(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise HealingError(f"Could not rewrite test source: {e}", file_path=path, cause=e) from e

    async def heal_file(self, file_path: str) -> HealingReport:
        """
        Run one healing pass over a test file.

        The source is read once, every heal is applied in memory, and the
        file is written once at the end only if something changed.

        Raises:
            HealingError: If the file cannot be read or written
        """
        path = Path(file_path)
        logger.info(f"Scanning for brittle locators: {file_path}")

        original = self._read_source(path)
        locators = detect_brittle_locators(original)

        if not locators:
            logger.info("No brittle locators detected")
            return HealingReport.from_results(file_path, [], file_rewritten=False)

        logger.info(f"Found {len(locators)} locator(s) to heal")

        results: List[HealResult] = []
        content = original
        for locator in locators:
            result = await self.heal_locator(locator, content)
            results.append(result)
            if result.success:
                content = apply_replacement(content, result.original, result.healed)
            self.reporter.print_heal_result(result)

        rewritten = content != original
        if rewritten:
            self._write_source(path, content)

        report = HealingReport.from_results(file_path, results, file_rewritten=rewritten)
        self.reporter.print_healing_report(report)
        return report

    async def heal_and_rerun(
        self,
        artifact: GeneratedTest,
        result: ExecutionResult,
        executor: ExecutionService,
        max_attempts: Optional[int] = None,
    ) -> ExecutionResult:
        """
        Heal and re-execute until the artifact passes or attempts run out.

        Each cycle is one healing pass followed by one execution. A result
        that still fails after the last cycle is returned as is.

        Args:
            artifact: Test artifact being healed
            result: Failing result that starts the loop
            executor: Service used to re-run the artifact
            max_attempts: Override for the configured bound

        Returns:
            Latest execution result, superseding ``result``
        """
        limit = self.config.max_heal_attempts if max_attempts is None else max_attempts
        current = result
        reports: List[HealingReport] = list(result.healing_reports)
        attempt = 0

        while current.failed > 0 and attempt < limit:
            attempt += 1
            logger.info(f"Heal attempt {attempt}/{limit} for: {artifact.file_path}")

            reports.append(await self.heal_file(artifact.file_path))

            logger.info("Re-running after heal")
            rerun = await executor.execute(artifact)
            current = rerun.model_copy(
                update={"heal_attempts": attempt, "healing_reports": list(reports)}
            )

            if current.failed == 0:
                logger.info(f"All tests passing after {attempt} heal attempt(s)")
                break

        return current.model_copy(update={"ultimately_passed": current.failed == 0})
