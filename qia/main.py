"""
QIA - Quality Intelligence Agent
Main entry point for the application.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from qia import __version__
from qia.agents.healer import HealerAgent
from qia.config.settings import Settings, get_settings
from qia.core.types import ArtifactType, GeneratedTest
from qia.error_handling import HealingError, RunnerLaunchError
from qia.evaluation.classification_rules import classify_failure, default_fix, get_assignee
from qia.monitoring.logger import get_logger, setup_logging
from qia.monitoring.reporter import ResultReporter
from qia.orchestration.pipeline import PipelineOutcome, QualityPipeline

console = Console()
logger = get_logger("main")


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="qia",
        description=f"QIA - Quality Intelligence Agent v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run generated tests, classify failures and heal broken locators
  qia -t tests/ui/login.spec.ts tests/ui/cart.spec.ts

  # Run without the heal loop
  qia -t tests/api/users.spec.ts --type api --no-heal

  # One healing pass over a test file, no execution
  qia --heal tests/ui/login.spec.ts

  # Classify an error message offline
  qia --classify "net::ERR_CONNECTION_REFUSED at http://localhost:3000"

  # Test your OpenAI API configuration
  qia --test-api
        """,
    )

    # Input options
    input_group = parser.add_mutually_exclusive_group()
    input_group.add_argument(
        "-t", "--test",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Test artifact(s) to execute, classify and heal",
    )
    input_group.add_argument(
        "--heal",
        type=Path,
        metavar="FILE",
        help="Run one locator healing pass over a test file without executing it",
    )
    input_group.add_argument(
        "--classify",
        metavar="ERROR_TEXT",
        help="Classify an error message with the rule cascade (no model call)",
    )

    # Utility commands
    input_group.add_argument(
        "--test-api",
        action="store_true",
        help="Test OpenAI API key configuration",
    )
    input_group.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    # Execution options
    parser.add_argument(
        "--type",
        choices=[artifact_type.value for artifact_type in ArtifactType],
        default=ArtifactType.UI.value,
        help="Artifact type of the test files (default: ui)",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        help="Directory the test runner is launched in",
    )
    parser.add_argument(
        "--max-heal-attempts",
        type=int,
        help="Maximum heal-and-rerun cycles per artifact",
    )
    parser.add_argument(
        "--no-heal",
        action="store_true",
        help="Skip the heal-and-rerun loop",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose structured logging output (JSON)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write the final results as JSON to this file",
    )

    return parser


def apply_overrides(settings: Settings, parsed_args: argparse.Namespace) -> Settings:
    """Return settings with command line overrides applied."""
    update: Dict[str, Any] = {"log_format": "json" if parsed_args.verbose else "text"}

    if parsed_args.debug:
        update["log_level"] = "DEBUG"
    if parsed_args.project_root is not None:
        update["project_root"] = parsed_args.project_root
    if parsed_args.max_heal_attempts is not None:
        if parsed_args.max_heal_attempts < 0:
            raise ValueError("--max-heal-attempts must be zero or more")
        update["max_heal_attempts"] = parsed_args.max_heal_attempts

    return settings.model_copy(update=update)


def outcome_to_dict(outcome: PipelineOutcome) -> Dict[str, Any]:
    return {
        "all_passed": outcome.all_passed,
        "passed": outcome.total_passed,
        "failed": outcome.total_failed,
        "skipped": outcome.total_skipped,
        "results": [result.model_dump(mode="json") for result in outcome.results],
    }


def write_output(outcome: PipelineOutcome, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(outcome_to_dict(outcome), indent=2), encoding="utf-8")
    console.print(f"[green]Results saved to:[/green] {escape(str(output_path))}")


async def run_tests(
    settings: Settings,
    test_files: List[Path],
    artifact_type: ArtifactType,
    heal: bool = True,
    output_path: Optional[Path] = None,
) -> int:
    """Execute, classify and heal test artifacts. Exit code 0 only if all pass."""
    missing = [path for path in test_files if not path.exists()]
    if missing:
        for path in missing:
            console.print(f"[red]Error: Test file not found: {escape(str(path))}[/red]")
        return 1

    artifacts = [
        GeneratedTest(file_path=str(path), type=artifact_type) for path in test_files
    ]

    console.print(Panel.fit(
        f"[bold]QIA[/bold] executing {len(artifacts)} test file(s)\n"
        f"Heal loop: {'on' if heal else 'off'} "
        f"(max {settings.max_heal_attempts} attempt(s))",
        border_style="cyan",
    ))

    pipeline = QualityPipeline.from_settings(settings, reporter=ResultReporter(console))

    try:
        outcome = await pipeline.run(artifacts, heal=heal)
    except RunnerLaunchError as e:
        console.print(f"\n[red]Error: {escape(e.message)}[/red]")
        return 1

    if heal:
        pipeline.reporter.print_execution_summary(outcome.results)

    if output_path:
        write_output(outcome, output_path)

    if outcome.all_passed:
        console.print("\n[bold green]All tests passed.[/bold green]")
        return 0

    console.print(
        f"\n[bold red]{outcome.total_failed} test(s) still failing "
        f"after healing.[/bold red]" if heal else
        f"\n[bold red]{outcome.total_failed} test(s) failing.[/bold red]"
    )
    return 1


async def heal_once(settings: Settings, file_path: Path) -> int:
    """Run one healing pass over a file. Exit code 0 when every locator healed."""
    model_config = settings.get_agent_model_config("healer_agent")
    healer = HealerAgent(
        config=settings.healing_config(),
        reporter=ResultReporter(console),
        model=model_config.model,
        temperature=model_config.temperature,
        max_tokens=model_config.max_tokens,
    )

    try:
        report = await healer.heal_file(str(file_path))
    except HealingError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        return 1

    if report.total_locators == 0:
        console.print("[green]No brittle locators found.[/green]")
    return 0 if report.failed == 0 else 1


def classify_text(error_text: str) -> int:
    """Classify an error message offline and print the category."""
    category = classify_failure(error_text)
    console.print(Panel(
        f"[red]Category:[/red]  {category.value}\n"
        f"[yellow]Fix:[/yellow]       {default_fix(category)}\n"
        f"[dim]Assign to: {get_assignee(category)}[/dim]",
        title="Classification",
        border_style="cyan",
    ))
    return 0


async def check_api_connection() -> int:
    """Test OpenAI API connection."""
    console.print("\n[bold cyan]Testing OpenAI API Connection[/bold cyan]")

    try:
        from qia.models.openai_client import OpenAIClient

        console.print("[cyan]Testing API key...[/cyan]")
        client = OpenAIClient(model=get_settings().openai_model)
        response = await client.call(
            messages=[{"role": "user", "content": "Say 'API test successful' and nothing else."}],
        )

        if "API test successful" in str(response["content"]):
            console.print("[green]✓ OpenAI API connection successful![/green]")
            console.print(f"[dim]Model: {response['model']}[/dim]")
            console.print(f"[dim]Usage: {response['usage']['total_tokens']} tokens[/dim]")
            return 0
        else:
            console.print("[red]✗ Unexpected API response[/red]")
            return 1

    except Exception as e:
        console.print(f"[red]✗ API test failed: {escape(str(e))}[/red]")
        console.print("\n[yellow]Please check:[/yellow]")
        console.print("1. Your OPENAI_API_KEY environment variable is set")
        console.print("2. Your API key has sufficient credits")
        return 1


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]QIA - Quality Intelligence Agent[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    console.print("Python: [dim]3.10+[/dim]")
    return 0


async def async_main(args: Optional[list[str]] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    # Handle utility commands first
    if parsed_args.version:
        return show_version()

    if parsed_args.test_api:
        return await check_api_connection()

    if parsed_args.classify is not None:
        return classify_text(parsed_args.classify)

    settings = apply_overrides(get_settings(), parsed_args)

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
    )

    if parsed_args.heal:
        return await heal_once(settings, parsed_args.heal)

    if parsed_args.test:
        return await run_tests(
            settings,
            parsed_args.test,
            ArtifactType(parsed_args.type),
            heal=not parsed_args.no_heal,
            output_path=parsed_args.output,
        )

    parser.print_help()
    return 1


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for QIA.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
