"""
Subprocess backend for the Playwright test runner.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List

from qia.config.settings import ExecutionConfig
from qia.core.interfaces import RunnerBackend, RunnerOutput
from qia.error_handling.exceptions import RunnerLaunchError

logger = logging.getLogger(__name__)


class PlaywrightRunner(RunnerBackend):
    """Runs one test file with the JSON reporter and captures its output."""

    def __init__(self, config: ExecutionConfig) -> None:
        self.config = config

    def build_command(self, artifact_path: Path) -> List[str]:
        return [
            *self.config.playwright_command,
            str(artifact_path),
            f"--output={self.config.results_dir}",
            f"--config={self.config.playwright_config}",
            "--reporter=json",
        ]

    async def run(self, artifact_path: Path) -> RunnerOutput:
        command = self.build_command(artifact_path)
        env = {**os.environ, "CI": "false"}

        logger.debug(
            "Launching test runner",
            extra={"command": " ".join(command), "cwd": str(self.config.project_root)},
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.config.project_root),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RunnerLaunchError(
                f"Could not launch test runner: {e}", command=command, cause=e
            ) from e

        stdout, stderr = await process.communicate()
        exit_code = process.returncode if process.returncode is not None else 1

        logger.debug(
            "Test runner finished",
            extra={"exit_code": exit_code, "stdout_bytes": len(stdout)},
        )

        return RunnerOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=exit_code,
        )
