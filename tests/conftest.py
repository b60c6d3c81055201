"""Shared fixtures for scaffold generator tests."""

import json
import os
from pathlib import Path

import pytest

from testgen.config import Settings
from testgen.errors import RunnerInvocationFailed

# Check if tree-sitter and the TSX grammar are available
try:
    import tree_sitter  # noqa: F401
    import tree_sitter_typescript  # noqa: F401
    TREE_SITTER_AVAILABLE = True
except ImportError:
    TREE_SITTER_AVAILABLE = False


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "requires_tree_sitter: mark test as requiring tree-sitter"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests that require tree-sitter when it's not installed."""
    if TREE_SITTER_AVAILABLE:
        return

    skip_tree_sitter = pytest.mark.skip(
        reason="tree-sitter not installed. Install with: pip install tree-sitter tree-sitter-typescript"
    )

    for item in items:
        if "requires_tree_sitter" in item.keywords:
            item.add_marker(skip_tree_sitter)


@pytest.fixture
def tree_sitter_available():
    """Fixture that returns whether tree-sitter is available."""
    return TREE_SITTER_AVAILABLE


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TESTGEN_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("TESTGEN_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings(tmp_path):
    """Settings rooted at an empty temporary project, coverage loop disabled."""
    return Settings(root_dir=tmp_path, coverage_enabled=False)


@pytest.fixture
def write_source(tmp_path):
    """Write a file below the temporary project root and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content.lstrip("\n"), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def parser():
    """A real tree-sitter parser (only use from requires_tree_sitter tests)."""
    from testgen.indexer import TreeSitterParser

    return TreeSitterParser()


@pytest.fixture
def analyze(parser):
    """Analyze inline TSX source and return its components."""
    from testgen.analyzers import ComponentAnalyzer

    def _analyze(source: str, file_path: str = "/virtual/Component.tsx"):
        parsed = parser.parse_content(source, file_path)
        return ComponentAnalyzer().analyze(parsed)

    return _analyze


class FakeRunner:
    """Stands in for Jest: records invocations and writes a coverage summary.

    Each run pops the next entry of ``percentages``; an entry may be a float
    (written as that file's line pct), an exception instance (raised), or
    None (nothing written).
    """

    def __init__(self, coverage_dir: Path, percentages: list | None = None):
        self.coverage_dir = Path(coverage_dir)
        self.percentages = list(percentages or [])
        self.calls: list[tuple[Path, Path]] = []
        self.snapshots: list[str] = []

    def run(self, test_path: Path, source_path: Path):
        self.calls.append((Path(test_path), Path(source_path)))
        if Path(test_path).exists():
            self.snapshots.append(Path(test_path).read_text(encoding="utf-8"))

        outcome = self.percentages.pop(0) if self.percentages else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            self.coverage_dir.mkdir(parents=True, exist_ok=True)
            summary = {
                "total": {"lines": {"total": 10, "covered": 5, "skipped": 0, "pct": 50}},
                str(Path(source_path).resolve()): {
                    "lines": {"total": 20, "covered": int(outcome / 5), "skipped": 0, "pct": outcome},
                },
            }
            (self.coverage_dir / "coverage-summary.json").write_text(json.dumps(summary))
        return None


@pytest.fixture
def fake_runner_factory(tmp_path):
    """Build a FakeRunner writing into the project's coverage directory."""

    def _factory(*percentages) -> FakeRunner:
        return FakeRunner(tmp_path / "coverage", list(percentages))

    return _factory


@pytest.fixture
def failing_runner_factory(tmp_path):
    """A FakeRunner that raises RunnerInvocationFailed on every call."""

    def _factory(times: int = 2) -> FakeRunner:
        return FakeRunner(
            tmp_path / "coverage",
            [RunnerInvocationFailed("test runner exited with status 1", exit_code=1) for _ in range(times)],
        )

    return _factory
