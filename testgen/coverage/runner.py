"""Test runner invocation - one generated test file, coverage for one source."""

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from testgen.config import Settings
from testgen.errors import RunnerInvocationFailed


@dataclass
class RunResult:
    """Outcome of one runner process."""
    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CoverageRunner(Protocol):
    """Anything that can run a test file and leave a coverage summary behind."""

    def run(self, test_path: Path, source_path: Path) -> RunResult:
        """Run ``test_path`` collecting coverage for ``source_path``.

        Raises:
            RunnerInvocationFailed: if the runner cannot be spawned or exits non-zero
        """
        ...


class JestRunner:
    """Runs Jest through ``npx`` in the project root.

    Blocks until the process exits; there is no timeout unless
    ``runner_timeout`` is configured.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.log = structlog.get_logger().bind(component="jest_runner")

    def command(self, test_path: Path, source_path: Path) -> list[str]:
        root = self.settings.root_dir.resolve()
        return [
            *self.settings.runner_command,
            _relative(test_path, root),
            "--coverage",
            "--collectCoverageFrom",
            _relative(source_path, root),
            "--coverageReporters=json-summary",
            "--coverageReporters=lcov",
            "--coverageDirectory",
            str(self.settings.coverage_path),
        ]

    def run(self, test_path: Path, source_path: Path) -> RunResult:
        cmd = self.command(test_path, source_path)
        self.log.info("Running tests with coverage", test=str(test_path))
        start = time.perf_counter()

        try:
            result = subprocess.run(
                cmd,
                cwd=self.settings.root_dir,
                capture_output=True,
                text=True,
                timeout=self.settings.runner_timeout,
            )
        except subprocess.TimeoutExpired as e:
            self.log.error("Test runner timeout", timeout_seconds=self.settings.runner_timeout)
            raise RunnerInvocationFailed(f"test runner timed out after {self.settings.runner_timeout}s") from e
        except FileNotFoundError as e:
            self.log.error("Test runner not found", command=cmd[0])
            raise RunnerInvocationFailed(f"test runner not found: {cmd[0]}") from e
        except OSError as e:
            raise RunnerInvocationFailed(f"could not start test runner: {e}") from e

        run = RunResult(
            command=cmd,
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            duration_ms=(time.perf_counter() - start) * 1000,
        )

        if not run.ok:
            self.log.warning(
                "Test runner failed",
                return_code=run.exit_code,
                stderr=run.stderr[-500:] if run.stderr else None,
            )
            raise RunnerInvocationFailed(
                f"test runner exited with status {run.exit_code}",
                exit_code=run.exit_code,
            )

        self.log.info("Test run completed", duration_ms=round(run.duration_ms))
        return run


def _relative(path: Path, root: Path) -> str:
    resolved = Path(path).resolve()
    try:
        return resolved.relative_to(root).as_posix()
    except ValueError:
        return resolved.as_posix()
