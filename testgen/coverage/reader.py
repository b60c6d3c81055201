"""Coverage report reading.

Jest is asked for two reporters: ``json-summary`` (primary) and ``lcov``
(fallback). Only the line-coverage percentage of the one source file under
test is of interest.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from testgen.errors import CoverageUnreadable

SUMMARY_FILE = "coverage-summary.json"
LCOV_FILE = "lcov.info"


@dataclass
class FileCoverage:
    """Line coverage data for a single file."""
    path: str
    lines_total: int = 0
    lines_covered: int = 0
    lines_percent: float | None = 0.0
    uncovered_lines: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "lines_total": self.lines_total,
            "lines_covered": self.lines_covered,
            "lines_percent": self.lines_percent,
            "uncovered_lines": self.uncovered_lines,
        }


class CoverageReader:
    """Reads the coverage artifacts the runner leaves in ``coverage_dir``.

    The directory is shared by every run in a batch; ``reset`` removes the
    previous run's artifacts so a failed run can never be read as fresh data.
    """

    def __init__(self, coverage_dir: Path, root_dir: Path):
        self.coverage_dir = Path(coverage_dir)
        self.root_dir = Path(root_dir).resolve()

    @property
    def summary_path(self) -> Path:
        return self.coverage_dir / SUMMARY_FILE

    @property
    def lcov_path(self) -> Path:
        return self.coverage_dir / LCOV_FILE

    def reset(self) -> None:
        """Delete stale coverage artifacts.

        Raises:
            CoverageUnreadable: if an artifact exists but cannot be removed
        """
        for path in (self.summary_path, self.lcov_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise CoverageUnreadable(f"Could not remove stale coverage artifact {path}: {e}") from e

    def read(self, source_path: Path) -> FileCoverage:
        """Coverage of one source file.

        Raises:
            CoverageUnreadable: if no report exists, a report is malformed, or
                the file has no entry
        """
        if self.summary_path.is_file():
            files = self.parse_summary(self._read_text(self.summary_path))
        elif self.lcov_path.is_file():
            files = self.parse_lcov(self._read_text(self.lcov_path))
        else:
            raise CoverageUnreadable(f"no coverage report in {self.coverage_dir}")

        coverage = self._match(files, source_path)
        if coverage is None:
            raise CoverageUnreadable(f"coverage report has no entry for {source_path}")
        if coverage.lines_percent is None:
            raise CoverageUnreadable(f"non-numeric line coverage for {source_path}")
        return coverage

    def _read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CoverageUnreadable(f"could not read {path}: {e}") from e

    def parse_summary(self, report_data: str) -> dict[str, FileCoverage]:
        """Parse Istanbul ``json-summary`` output (the ``total`` entry is skipped)."""
        try:
            data = json.loads(report_data)
        except json.JSONDecodeError as e:
            raise CoverageUnreadable(f"malformed coverage summary: {e}") from e
        if not isinstance(data, dict):
            raise CoverageUnreadable("malformed coverage summary: expected an object")

        files = {}
        for file_path, file_data in data.items():
            if file_path == "total" or not isinstance(file_data, dict):
                continue
            lines = file_data.get("lines")
            if not isinstance(lines, dict):
                continue
            pct = lines.get("pct")
            # Istanbul writes "Unknown" when a file has no executable lines
            numeric = isinstance(pct, (int, float)) and not isinstance(pct, bool)
            files[file_path] = FileCoverage(
                path=file_path,
                lines_total=int(lines.get("total", 0) or 0),
                lines_covered=int(lines.get("covered", 0) or 0),
                lines_percent=float(pct) if numeric else None,
            )
        return files

    def parse_lcov(self, report_data: str) -> dict[str, FileCoverage]:
        """Parse LCOV coverage report format."""
        files = {}
        current: FileCoverage | None = None

        try:
            for line in report_data.split("\n"):
                line = line.strip()

                if line.startswith("SF:"):
                    current = FileCoverage(path=line[3:])

                elif current is None:
                    continue

                elif line.startswith("DA:"):
                    # Line data: DA:line_number,hit_count
                    parts = line[3:].split(",")
                    if len(parts) >= 2 and int(parts[1]) == 0:
                        current.uncovered_lines.append(int(parts[0]))

                elif line.startswith("LF:"):
                    current.lines_total = int(line[3:])

                elif line.startswith("LH:"):
                    current.lines_covered = int(line[3:])

                elif line == "end_of_record":
                    current.lines_percent = (
                        round(current.lines_covered / current.lines_total * 100, 2)
                        if current.lines_total > 0 else 0.0
                    )
                    files[current.path] = current
                    current = None
        except ValueError as e:
            raise CoverageUnreadable(f"malformed lcov report: {e}") from e

        return files

    def _match(self, files: dict[str, FileCoverage], source_path: Path) -> FileCoverage | None:
        """Find the entry for ``source_path`` by resolved path, then by relative suffix."""
        source = Path(source_path)
        if not source.is_absolute():
            source = self.root_dir / source
        source = source.resolve()

        for file_path, coverage in files.items():
            candidate = Path(file_path)
            if not candidate.is_absolute():
                candidate = self.root_dir / candidate
            if candidate.resolve() == source:
                return coverage

        try:
            relative = source.relative_to(self.root_dir).as_posix()
        except ValueError:
            return None
        for file_path, coverage in files.items():
            if file_path.replace("\\", "/").endswith(relative):
                return coverage
        return None
