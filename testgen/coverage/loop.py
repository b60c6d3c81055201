"""Coverage Feedback Loop - measure pass 1, enrich once if coverage is low.

    INITIAL --(runner ok, coverage read, coverage < threshold, pass 2 written)--> REFINED

Any runner or coverage failure leaves the loop in INITIAL with the error
recorded; the pass-1 file stays in place. The second run after refinement is
best effort and never changes the state.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog

from testgen.errors import CoverageUnreadable, RunnerInvocationFailed

from .reader import CoverageReader
from .runner import CoverageRunner


class LoopState(str, Enum):
    """Feedback loop states."""
    INITIAL = "initial"
    REFINED = "refined"


@dataclass
class LoopResult:
    """What the loop did for one file."""
    state: LoopState = LoopState.INITIAL
    initial_coverage: float | None = None
    refined_coverage: float | None = None
    runner_invocations: int = 0
    error: str | None = None
    refinement_error: str | None = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "initial_coverage": self.initial_coverage,
            "refined_coverage": self.refined_coverage,
            "runner_invocations": self.runner_invocations,
            "error": self.error,
            "refinement_error": self.refinement_error,
        }


class CoverageFeedbackLoop:
    """Runs a written pass-1 test file and triggers pass 2 below the threshold.

    Usage:
        loop = CoverageFeedbackLoop(JestRunner(settings), reader, threshold=50.0)
        result = loop.run(test_path, source_path, regenerate=write_pass_two)
    """

    def __init__(self, runner: CoverageRunner, reader: CoverageReader, threshold: float = 50.0):
        self.runner = runner
        self.reader = reader
        self.threshold = threshold
        self.log = structlog.get_logger().bind(component="coverage_loop")

    def run(self, test_path: Path, source_path: Path, regenerate: Callable[[], bool]) -> LoopResult:
        """Measure, and refine once if needed.

        Args:
            test_path: The written pass-1 test file
            source_path: The source file whose coverage is read back
            regenerate: Writes pass-2 content to ``test_path``; returns False
                if the write was refused

        Returns:
            LoopResult (never raises for runner or coverage failures)
        """
        result = LoopResult()

        try:
            result.initial_coverage = self._measure(test_path, source_path, result)
        except (RunnerInvocationFailed, CoverageUnreadable) as e:
            result.error = str(e)
            self.log.warning("Coverage measurement failed, keeping pass 1", error=str(e))
            return result

        if result.initial_coverage >= self.threshold:
            self.log.info(
                "Coverage sufficient",
                coverage=result.initial_coverage,
                threshold=self.threshold,
            )
            return result

        self.log.info(
            "Coverage below threshold, generating pass 2",
            coverage=result.initial_coverage,
            threshold=self.threshold,
        )
        if not regenerate():
            result.error = "pass-2 content was not written"
            return result
        result.state = LoopState.REFINED

        try:
            result.refined_coverage = self._measure(test_path, source_path, result)
            self.log.info("Refined coverage", coverage=result.refined_coverage)
        except (RunnerInvocationFailed, CoverageUnreadable) as e:
            result.refinement_error = str(e)
            self.log.info("Refinement run failed", error=str(e))

        return result

    def _measure(self, test_path: Path, source_path: Path, result: LoopResult) -> float:
        self.reader.reset()
        result.runner_invocations += 1
        self.runner.run(test_path, source_path)
        return self.reader.read(source_path).lines_percent
