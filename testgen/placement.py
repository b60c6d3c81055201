"""File Placement Policy - where generated tests go and whether they may be written.

A file at the target path that does not start with the generated marker is a
hand-written test. It is never modified: the decision is taken from the file's
current bytes and re-checked immediately before every write.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog

from testgen.config import Settings

TEST_SUFFIX = ".test.tsx"


class WriteDecision(str, Enum):
    """Outcome of checking a target path."""
    CREATE = "create"
    OVERWRITE_GENERATED = "overwrite-generated"
    REFUSE_MANUAL = "refuse-manual"


@dataclass(frozen=True)
class Placement:
    """Target of one source file plus the write decision for it."""
    source_path: Path
    target_path: Path
    decision: WriteDecision

    @property
    def allowed(self) -> bool:
        return self.decision is not WriteDecision.REFUSE_MANUAL


class PlacementPolicy:
    """Maps sources to test files and guards hand-written tests.

    Usage:
        policy = PlacementPolicy(settings)
        placement = policy.check("src/components/Button.tsx")
        if placement.allowed:
            policy.write(placement, content)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.log = structlog.get_logger().bind(component="placement")

    def target_path(self, source_path: str | Path) -> Path:
        """``<dir>/<tests dir>/<stem>.test.tsx`` next to the source (pure)."""
        source = Path(source_path)
        return source.parent / self.settings.tests_dir_name / f"{source.stem}{TEST_SUFFIX}"

    def is_generated(self, path: Path) -> bool:
        """True when the file's first non-blank line carries the generated marker.

        Unreadable files count as hand-written.
        """
        try:
            with open(path, encoding="utf-8") as f:
                for line in f:
                    if line.strip():
                        return self.settings.generated_marker in line
        except (OSError, UnicodeDecodeError) as e:
            self.log.warning("Existing test file unreadable, treating as manual", path=str(path), error=str(e))
            return False
        return False

    def check(self, source_path: str | Path) -> Placement:
        """Decide whether the test file for ``source_path`` may be written."""
        target = self.target_path(source_path)
        if not target.exists():
            decision = WriteDecision.CREATE
        elif self.is_generated(target):
            decision = WriteDecision.OVERWRITE_GENERATED
        else:
            decision = WriteDecision.REFUSE_MANUAL
        return Placement(source_path=Path(source_path), target_path=target, decision=decision)

    def write(self, placement: Placement, content: str) -> bool:
        """Write generated content if the target is (still) not a manual test.

        Returns:
            True if the file was written

        Raises:
            ValueError: if ``content`` does not itself start with the marker
        """
        first_line = next((line for line in content.splitlines() if line.strip()), "")
        if self.settings.generated_marker not in first_line:
            raise ValueError("generated content must start with the generated marker")

        current = self.check(placement.source_path)
        if not current.allowed:
            self.log.info("Refusing to overwrite manual test", path=str(current.target_path))
            return False

        current.target_path.parent.mkdir(parents=True, exist_ok=True)
        current.target_path.write_text(content, encoding="utf-8")
        self.log.debug("Wrote test file", path=str(current.target_path), decision=current.decision.value)
        return True

    def module_specifier(self, target_path: Path, source_path: Path) -> str:
        """Relative import of the source module from the test file, without extension."""
        relative = os.path.relpath(Path(source_path).with_suffix(""), Path(target_path).parent)
        relative = relative.replace(os.sep, "/")
        return relative if relative.startswith(".") else f"./{relative}"
