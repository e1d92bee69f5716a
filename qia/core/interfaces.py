"""
Core interfaces and abstract base classes for QIA.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from qia.core.types import ExecutionResult, GeneratedTest


@dataclass(frozen=True)
class RunnerOutput:
    """Raw output of one test runner invocation."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def exited_ok(self) -> bool:
        return self.exit_code == 0


class RunnerBackend(ABC):
    """Abstract seam over the external test runner process."""

    @abstractmethod
    async def run(self, artifact_path: Path) -> RunnerOutput:
        """
        Run one test artifact in machine-readable reporting mode.

        A non-zero exit code is returned normally, since it usually means
        that tests failed. Implementations raise RunnerLaunchError only when
        the runner cannot be started.

        Args:
            artifact_path: Test file to execute

        Returns:
            Captured runner output
        """
        pass


class ExecutionService(ABC):
    """Anything that can execute an artifact and produce an ExecutionResult."""

    @abstractmethod
    async def execute(self, artifact: GeneratedTest) -> ExecutionResult:
        """
        Execute a test artifact.

        Args:
            artifact: Test artifact to run

        Returns:
            A fresh execution result, never None
        """
        pass
