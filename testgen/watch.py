"""Watch mode - regenerate scaffolds as component sources change.

Only added and modified sources under the source directory are processed,
one at a time and in path order within each debounced burst of changes.
Files present at startup are left alone until they change. Test files the
generator writes are filtered out, so a write never triggers another run.
"""

import time
from collections.abc import Callable, Iterable
from pathlib import Path

import structlog
from watchfiles import Change, DefaultFilter, watch

from testgen.config import Settings
from testgen.discovery import is_source_file
from testgen.pipeline import BatchReport, FileResult, ScaffoldPipeline

ChangeSet = set[tuple[Change, str]]


class SourceChangeFilter(DefaultFilter):
    """Accepts added or modified component sources below the source directory."""

    def __init__(self, settings: Settings):
        super().__init__()
        self.settings = settings

    def __call__(self, change: Change, path: str) -> bool:
        if change == Change.deleted:
            return False
        if not super().__call__(change, path):
            return False
        return is_source_file(self._relative(path), self.settings)

    def _relative(self, path: str) -> Path:
        try:
            return Path(path).resolve().relative_to(self.settings.source_root.resolve())
        except ValueError:
            return Path(path)


class SourceWatcher:
    """Feeds changed sources to the pipeline until the watch ends.

    Usage:
        watcher = SourceWatcher(pipeline, settings, on_result=print)
        report = watcher.run()

    ``changes`` replaces the filesystem watch with any iterable of change
    sets (as yielded by ``watchfiles.watch``).
    """

    def __init__(
        self,
        pipeline: ScaffoldPipeline,
        settings: Settings,
        changes: Iterable[ChangeSet] | None = None,
        on_result: Callable[[FileResult], None] | None = None,
    ):
        self.pipeline = pipeline
        self.settings = settings
        self.filter = SourceChangeFilter(settings)
        self.on_result = on_result
        self._changes = changes
        self.log = structlog.get_logger().bind(component="watcher")

    def changes(self) -> Iterable[ChangeSet]:
        if self._changes is not None:
            return self._changes
        return watch(
            self.settings.source_root,
            watch_filter=self.filter,
            debounce=self.settings.watch_debounce_ms,
            raise_interrupt=False,
        )

    def select(self, changes: ChangeSet) -> list[Path]:
        """Sources of one burst worth processing, de-duplicated and sorted."""
        return sorted({Path(path) for change, path in changes if self.filter(change, path)})

    def run(self) -> BatchReport:
        """Process bursts until the change source is exhausted or interrupted."""
        report = BatchReport()
        root = self.settings.source_root
        if self._changes is None and not root.is_dir():
            self.log.warning("Source directory not found", path=str(root))
            return report

        start = time.perf_counter()
        self.log.info("Watching for changes", path=str(root))
        try:
            for changes in self.changes():
                paths = self.select(changes)
                if not paths:
                    continue
                # Sources and the types they import may have changed on disk.
                self.pipeline.loader.clear()
                for path in paths:
                    self.log.info("Source changed", path=str(path))
                    result = self.pipeline.process_file(path)
                    report.results.append(result)
                    if self.on_result:
                        self.on_result(result)
        except KeyboardInterrupt:
            self.log.info("Watch interrupted")

        report.duration_ms = (time.perf_counter() - start) * 1000
        self.log.info("Watch stopped", processed=len(report.results))
        return report
