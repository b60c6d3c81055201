"""Input selection - which source files a batch processes.

Three modes:
- all:     every component source under the source directory
- file:    exactly one explicit path (not filtered, so a bad path is reported)
- changed: an explicit list, or git's modified + untracked files
"""

import re
import subprocess
from pathlib import Path

import structlog

from testgen.config import Settings

logger = structlog.get_logger()

TEST_FILE_PATTERN = re.compile(r"\.(test|spec)\.")


def is_test_file(path: str | Path, settings: Settings) -> bool:
    """True for ``*.test.*`` / ``*.spec.*`` files and anything inside a tests directory."""
    parts = Path(path).parts
    if settings.tests_dir_name in parts or "__test__" in parts:
        return True
    return bool(TEST_FILE_PATTERN.search(Path(path).name))


def is_source_file(path: str | Path, settings: Settings) -> bool:
    """A recognised, non-test component source outside ignored directories."""
    path = Path(path)
    if path.suffix.lower() not in settings.source_extensions:
        return False
    if any(part in settings.ignore_dirs for part in path.parts[:-1]):
        return False
    return not is_test_file(path, settings)


def scan_source_files(settings: Settings) -> list[Path]:
    """All component sources under ``src_dir``, sorted."""
    root = settings.source_root
    if not root.is_dir():
        logger.warning("Source directory not found", path=str(root))
        return []

    files = []
    for path in root.rglob("*"):
        if path.is_file() and is_source_file(path.relative_to(root), settings):
            files.append(path)
    return sorted(files)


def filter_candidates(paths: list[str | Path], settings: Settings) -> list[Path]:
    """Keep recognised non-test sources, resolved against the project root, de-duplicated."""
    selected = []
    seen = set()
    for raw in paths:
        path = Path(raw)
        if not path.is_absolute():
            path = settings.root_dir / path
        try:
            checked = path.resolve().relative_to(settings.root_dir.resolve())
        except ValueError:
            checked = path
        if not is_source_file(checked, settings):
            continue
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            selected.append(path)
    return selected


def git_changed_files(settings: Settings) -> list[str]:
    """Modified and untracked files reported by git, relative to the project root.

    A git failure is logged and yields an empty list.
    """
    commands = [
        ["git", "diff", "--name-only", "--relative", "--diff-filter=ACMTU"],
        ["git", "ls-files", "--others", "--exclude-standard"],
    ]
    changed: list[str] = []

    for cmd in commands:
        try:
            result = subprocess.run(
                cmd,
                cwd=settings.root_dir,
                capture_output=True,
                text=True,
            )
        except (FileNotFoundError, OSError) as e:
            logger.warning("git unavailable", error=str(e))
            return []

        if result.returncode != 0:
            logger.warning(
                "git command failed",
                command=" ".join(cmd),
                return_code=result.returncode,
                stderr=result.stderr[:500] if result.stderr else None,
            )
            return []

        changed.extend(line.strip() for line in result.stdout.splitlines() if line.strip())

    return list(dict.fromkeys(changed))


def select_files(
    mode: str,
    settings: Settings,
    paths: list[str] | None = None,
) -> list[Path]:
    """Resolve the batch input for a selection mode.

    Args:
        mode: "all", "file" or "changed"
        settings: Generator settings
        paths: The explicit path (file mode) or paths (changed mode)

    Returns:
        Paths to process, in processing order
    """
    if mode == "all":
        return scan_source_files(settings)

    if mode == "file":
        if not paths or len(paths) != 1:
            raise ValueError("file mode takes exactly one path")
        path = Path(paths[0])
        return [path if path.is_absolute() else settings.root_dir / path]

    if mode == "changed":
        candidates = list(paths) if paths else git_changed_files(settings)
        return filter_candidates(candidates, settings)

    raise ValueError(f"unknown selection mode: {mode}")
