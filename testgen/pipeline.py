"""Batch orchestration - one source file at a time, start to finish.

Per file: load -> placement check -> analyze -> pass 1 write -> coverage loop.
A hand-written test is detected before analysis, so a protected file is never
touched and the runner is never invoked for it. Every per-file error ends as
a FileResult; only EnvironmentUnavailable propagates and aborts the batch.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from testgen.analyzers import ComponentAnalyzer, ComponentInfo
from testgen.config import Settings
from testgen.coverage import CoverageFeedbackLoop, CoverageReader, CoverageRunner, JestRunner, LoopResult
from testgen.errors import EnvironmentUnavailable, SourceUnreadable
from testgen.generator import GenerationContext, GenerationPass, ScaffoldGenerator
from testgen.indexer import SourceLoader
from testgen.placement import Placement, PlacementPolicy
from testgen.utils.logging import LogContext, log_operation


class Outcome(str, Enum):
    """Reported result of processing one file."""
    GENERATED = "generated"
    SKIPPED_MANUAL = "skipped-existing-manual-test"
    SKIPPED_NO_COMPONENTS = "skipped-no-components"
    FAILED_UNREADABLE = "failed-unreadable"


@dataclass
class FileResult:
    """Outcome of one source file."""
    path: Path
    outcome: Outcome
    target: Path | None = None
    components: list[str] = field(default_factory=list)
    coverage: LoopResult | None = None
    message: str | None = None

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "outcome": self.outcome.value,
            "target": str(self.target) if self.target else None,
            "components": self.components,
            "coverage": self.coverage.to_dict() if self.coverage else None,
            "message": self.message,
        }


@dataclass
class BatchReport:
    """Per-file results of one invocation."""
    results: list[FileResult] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def counts(self) -> dict[str, int]:
        counts = {outcome.value: 0 for outcome in Outcome}
        for result in self.results:
            counts[result.outcome.value] += 1
        return counts

    @property
    def failed(self) -> list[FileResult]:
        return [r for r in self.results if r.outcome is Outcome.FAILED_UNREADABLE]

    def to_dict(self) -> dict:
        return {
            "total": len(self.results),
            "counts": self.counts,
            "duration_ms": round(self.duration_ms, 2),
            "results": [r.to_dict() for r in self.results],
        }

    def save(self, path: str | Path) -> Path:
        """Write the report as JSON."""
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        return output


class ScaffoldPipeline:
    """Processes a batch of source files sequentially.

    The loader (parser + type index) is created once and shared by every file.

    Usage:
        pipeline = ScaffoldPipeline(settings)
        report = pipeline.run_batch(select_files("all", settings))
    """

    def __init__(
        self,
        settings: Settings,
        loader: SourceLoader | None = None,
        runner: CoverageRunner | None = None,
    ):
        self.settings = settings
        self.loader = loader or SourceLoader(settings)
        self.analyzer = ComponentAnalyzer(self.loader.types)
        self.placement = PlacementPolicy(settings)
        self.runner = runner or JestRunner(settings)
        self.reader = CoverageReader(settings.coverage_path, settings.root_dir)
        self.log = structlog.get_logger().bind(component="pipeline")

    def run_batch(self, paths: list[Path]) -> BatchReport:
        """Process every path in order; a per-file failure never stops the batch."""
        report = BatchReport()
        start = time.perf_counter()

        with log_operation("generate_batch", logger=self.log, files=len(paths)) as op:
            for path in paths:
                report.results.append(self.process_file(path))
            op.update(report.counts)

        report.duration_ms = (time.perf_counter() - start) * 1000
        return report

    def process_file(self, path: str | Path) -> FileResult:
        """Generate (and refine) the scaffold for one source file.

        Never raises for a per-file problem; anything unexpected becomes a
        failed result. EnvironmentUnavailable is re-raised.
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.settings.root_dir / path

        with LogContext(file=str(path)):
            try:
                return self._process(path)
            except EnvironmentUnavailable:
                raise
            except Exception as e:
                self.log.error("Unexpected error while processing file", error=repr(e), exc_info=True)
                return FileResult(
                    path=path,
                    outcome=Outcome.FAILED_UNREADABLE,
                    message=f"unexpected error: {e!r}",
                )

    def _process(self, path: Path) -> FileResult:
        try:
            parsed = self.loader.load(path)
        except SourceUnreadable as e:
            self.log.warning("Source unreadable", reason=e.reason)
            return FileResult(path=path, outcome=Outcome.FAILED_UNREADABLE, message=str(e))

        placement = self.placement.check(path)
        if not placement.allowed:
            self.log.info("Hand-written test present, skipping", target=str(placement.target_path))
            return FileResult(path=path, outcome=Outcome.SKIPPED_MANUAL, target=placement.target_path)

        components = self.analyzer.analyze(parsed)
        if not components:
            self.log.info("No components found")
            return FileResult(path=path, outcome=Outcome.SKIPPED_NO_COMPONENTS)

        context = GenerationContext.from_settings(
            self.settings,
            self.placement.module_specifier(placement.target_path, path),
        )
        generator = ScaffoldGenerator(context)
        names = [c.name for c in components]

        try:
            written = self.placement.write(placement, generator.generate(components, GenerationPass.MINIMAL))
        except OSError as e:
            self.log.error("Could not write test file", target=str(placement.target_path), error=str(e))
            return FileResult(
                path=path,
                outcome=Outcome.FAILED_UNREADABLE,
                target=placement.target_path,
                components=names,
                message=f"could not write {placement.target_path}: {e}",
            )
        if not written:
            return FileResult(path=path, outcome=Outcome.SKIPPED_MANUAL, target=placement.target_path)

        self.log.info("Generated test scaffold", target=str(placement.target_path), components=names)
        result = FileResult(
            path=path,
            outcome=Outcome.GENERATED,
            target=placement.target_path,
            components=names,
        )

        if self.settings.coverage_enabled:
            result.coverage = self._refine(placement, path, generator, components)
        return result

    def _refine(
        self,
        placement: Placement,
        source_path: Path,
        generator: ScaffoldGenerator,
        components: list[ComponentInfo],
    ) -> LoopResult:
        def write_enriched() -> bool:
            try:
                return self.placement.write(placement, generator.generate(components, GenerationPass.ENRICHED))
            except OSError as e:
                self.log.error("Could not write pass 2", error=str(e))
                return False

        loop = CoverageFeedbackLoop(self.runner, self.reader, threshold=self.settings.coverage_threshold)
        return loop.run(placement.target_path, source_path, regenerate=write_enriched)
