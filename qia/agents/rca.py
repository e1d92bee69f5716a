"""
Root Cause Analysis agent: deterministic category plus a generated explanation.
"""

from typing import Dict, Optional, Tuple

from qia.agents.base_agent import BaseAgent
from qia.config.agent_prompts import RCA_ANALYSIS_PROMPT, RCA_SYSTEM_PROMPT
from qia.config.settings import ClassificationConfig
from qia.core.types import ExecutionResult, FailureRecord, RootCauseCategory, RootCauseResult
from qia.error_handling.exceptions import GenerativeResponseError
from qia.evaluation.classification_rules import (
    classify_failure,
    default_fix,
    default_reason,
    format_api_log,
    format_prompt_requests,
    get_assignee,
)
from qia.monitoring.logger import get_logger
from qia.monitoring.reporter import ResultReporter
from qia.security.sanitizer import DataSanitizer

logger = get_logger(__name__)

PROMPT_ERROR_CHARS = 1000
NONE_CAPTURED = "None captured"


class RCAAgent(BaseAgent):
    """
    Classifies failures and asks the model for a one-sentence reason and fix.

    The category never depends on the model. Any problem obtaining or reading
    the model's reply falls back to the static templates for the category.
    """

    def __init__(
        self,
        name: str = "RCAAgent",
        config: Optional[ClassificationConfig] = None,
        reporter: Optional[ResultReporter] = None,
        sanitizer: Optional[DataSanitizer] = None,
        **kwargs,
    ) -> None:
        super().__init__(name=name, system_prompt=RCA_SYSTEM_PROMPT, **kwargs)
        self.config = config or ClassificationConfig()
        self.reporter = reporter or ResultReporter()
        self.sanitizer = sanitizer or DataSanitizer()

    def classify(self, record: FailureRecord) -> RootCauseCategory:
        return classify_failure(
            record.error,
            record.console_errors,
            record.network_requests,
            self.config,
        )

    def build_prompt(self, record: FailureRecord, category: RootCauseCategory) -> str:
        console_lines = record.console_errors[: self.config.prompt_console_limit]
        request_lines = format_prompt_requests(
            record.network_requests, self.config.prompt_network_limit
        )
        prompt = RCA_ANALYSIS_PROMPT.format(
            test_name=record.title,
            error=record.error[:PROMPT_ERROR_CHARS],
            category=category.value,
            console_count=len(record.console_errors),
            console_errors="\n".join(console_lines) or NONE_CAPTURED,
            api_calls="\n".join(request_lines) or NONE_CAPTURED,
        )
        return self.sanitizer.sanitize_string(prompt)

    async def _explain(
        self, record: FailureRecord, category: RootCauseCategory
    ) -> Tuple[str, str]:
        fallback_reason = default_reason(record.error, category)
        fallback_fix = default_fix(category)

        try:
            response = await self.call_openai(
                messages=self.build_messages(self.build_prompt(record, category)),
                response_format={"type": "json_object"},
            )
            payload: Dict = self.parse_json_content(response)
        except GenerativeResponseError as e:
            logger.warning(
                "Unusable RCA response, using defaults",
                extra={"test_title": record.title, "error": e.message},
            )
            return fallback_reason, fallback_fix
        except Exception as e:
            logger.warning(
                "RCA model call failed, using defaults",
                extra={"test_title": record.title, "error": str(e)},
            )
            return fallback_reason, fallback_fix

        reason = payload.get("reason")
        fix = payload.get("suggestedFix")
        if not isinstance(reason, str) or not reason.strip():
            reason = fallback_reason
        if not isinstance(fix, str) or not fix.strip():
            fix = fallback_fix
        return reason.strip(), fix.strip()

    async def analyze(self, record: FailureRecord) -> RootCauseResult:
        """
        Produce the root-cause result for one failure.

        Args:
            record: Failure record, already reconciled with evidence

        Returns:
            Immutable root-cause result
        """
        category = self.classify(record)
        logger.info(f"Analyzing failure: {record.title!r} -> {category.value}")

        reason, fix = await self._explain(record, category)

        result = RootCauseResult(
            test_name=record.title,
            category=category,
            reason=reason,
            console_errors=list(record.console_errors),
            api_log=format_api_log(record.network_requests, self.config.api_log_limit),
            suggested_fix=fix,
            assign_to=get_assignee(category),
            screenshot_path=record.screenshot,
        )

        self.reporter.print_rca(result)
        return result

    async def analyze_result(self, result: ExecutionResult) -> ExecutionResult:
        """Attach a root-cause result to every failure of an execution result."""
        analyzed = []
        for record in result.failed_tests:
            try:
                rca = await self.analyze(record)
            except Exception:
                logger.exception(
                    "RCA failed for test, leaving it unclassified",
                    extra={"test_title": record.title},
                )
                analyzed.append(record)
                continue
            analyzed.append(record.model_copy(update={"rca": rca}))

        return result.model_copy(update={"failed_tests": analyzed})
