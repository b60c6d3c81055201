"""Coverage feedback - run generated tests and read back line coverage."""

from .loop import CoverageFeedbackLoop, LoopResult, LoopState
from .reader import CoverageReader, FileCoverage
from .runner import CoverageRunner, JestRunner, RunResult

__all__ = [
    "CoverageFeedbackLoop",
    "LoopResult",
    "LoopState",
    "CoverageReader",
    "FileCoverage",
    "CoverageRunner",
    "JestRunner",
    "RunResult",
]
