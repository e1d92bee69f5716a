"""
Console rendering of execution, RCA and healing results.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from qia.core.types import (
    TIER_NUMBER,
    ExecutionResult,
    HealingReport,
    HealResult,
    RootCauseResult,
)
from qia.evaluation.classification_rules import NO_API_CALLS


class ResultReporter:
    """Read-only rich renderer for the QIA data model."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_artifact_result(self, result: ExecutionResult) -> None:
        """One status line per artifact, followed by its failures."""
        icon = "[green]✓[/green]" if result.failed == 0 else "[red]✗[/red]"
        name = Path(result.file_path).name
        self.console.print(
            f"  {icon} {escape(name)}: {result.passed} passed, {result.failed} failed, "
            f"{result.skipped} skipped ({round(result.duration_ms / 1000)}s)"
        )

        for failure in result.failed_tests:
            self.console.print(f"    [red]✗ {escape(failure.title)}[/red]", markup=True)
            if failure.error:
                self.console.print(f"      [dim]{escape(failure.error.splitlines()[0])}[/dim]")
            if failure.screenshot:
                self.console.print(f"      [dim]Screenshot: {escape(failure.screenshot)}[/dim]")
            if failure.console_errors:
                self.console.print(
                    f"      [dim]Console errors: {len(failure.console_errors)}[/dim]"
                )

    def print_execution_summary(self, results: Iterable[ExecutionResult]) -> None:
        """Batch totals across all executed artifacts."""
        results = list(results)
        table = Table(title="Execution Summary", show_header=True, header_style="bold")
        table.add_column("Artifact")
        table.add_column("Passed", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")
        table.add_column("Skipped", justify="right", style="yellow")
        table.add_column("Heal attempts", justify="right")

        for result in results:
            table.add_row(
                Path(result.file_path).name,
                str(result.passed),
                str(result.failed),
                str(result.skipped),
                str(result.heal_attempts),
            )

        total_duration = sum(result.duration_ms for result in results)
        table.caption = (
            f"{sum(r.passed for r in results)} passed, "
            f"{sum(r.failed for r in results)} failed, "
            f"{sum(r.skipped for r in results)} skipped in {round(total_duration / 1000)}s"
        )
        self.console.print(table)

    def print_rca(self, rca: RootCauseResult) -> None:
        lines: List[str] = [
            f"[red]Category:[/red]  {rca.category.value}",
            f"[white]Reason:[/white]    {escape(rca.reason)}",
            f"[yellow]Fix:[/yellow]       {escape(rca.suggested_fix)}",
            f"[dim]Assign to: {rca.assign_to}[/dim]",
        ]
        if rca.console_errors:
            lines.append(f"[dim]Console:   {escape(rca.console_errors[0])}[/dim]")
        if rca.api_log != NO_API_CALLS:
            lines.append(f"[dim]API:       {escape(rca.api_log[:100])}[/dim]")

        self.console.print(
            Panel("\n".join(lines), title=f"RCA: {escape(rca.test_name)}", border_style="red")
        )

    def print_heal_result(self, result: HealResult) -> None:
        if result.success:
            self.console.print(
                f"  [green]\\[HEALED-T{TIER_NUMBER[result.tier]}][/green] "
                f"{escape(result.original)} → {escape(result.healed)}",
                markup=True,
                highlight=False,
            )
        else:
            self.console.print(
                f"  [red]\\[FAILED][/red] Could not heal: {escape(result.original)}",
                highlight=False,
            )

    def print_healing_report(self, report: HealingReport) -> None:
        self.console.print(
            f"\n  [dim]Healing: {report.healed}/{report.total_locators} fixed, "
            f"{report.failed} failed[/dim]"
        )
