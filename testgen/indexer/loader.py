"""Source Loader - one parsing context per batch.

The loader owns the tree-sitter parser, a parse cache and the batch-wide
``TypeIndex``. It is constructed once per invocation and handed to every
stage that needs parsed sources, so cross-file type references resolve
against the same set of modules for every file in the batch.
"""

import logging
from pathlib import Path

from testgen.config import Settings
from testgen.errors import SourceUnreadable

from .tree_sitter_parser import ParsedFile, TreeSitterParser
from .type_index import TypeIndex

logger = logging.getLogger(__name__)

# Extensions tried, in order, when following an extensionless import
MODULE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx")


class SourceLoader:
    """Parsing context shared by all files of one batch.

    Usage:
        loader = SourceLoader(settings)
        parsed = loader.load("src/components/Button.tsx")
        members = loader.types.members(type_node, parsed.file_path)

    A fake parser can be passed in tests; the default one raises
    EnvironmentUnavailable when the grammars cannot be loaded.
    """

    def __init__(self, settings: Settings, parser: TreeSitterParser | None = None):
        self.settings = settings
        self.parser = parser or TreeSitterParser()
        self.types = TypeIndex(self.resolve_module)
        self._cache: dict[str, ParsedFile] = {}

    def load(self, file_path: str | Path) -> ParsedFile:
        """Load a component source file.

        Raises:
            SourceUnreadable: if the path is missing, has an unrecognised
                extension or cannot be parsed
        """
        path = Path(file_path)
        if not path.is_absolute():
            path = self.settings.root_dir / path

        if path.suffix.lower() not in self.settings.source_extensions:
            raise SourceUnreadable(
                str(file_path),
                f"unsupported extension '{path.suffix}' (expected one of {', '.join(self.settings.source_extensions)})",
            )
        if not path.is_file():
            raise SourceUnreadable(str(file_path), "file does not exist")

        return self._parse(path)

    def _parse(self, path: Path) -> ParsedFile:
        key = str(path.resolve())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        parsed = self.parser.parse_file(key)
        for error in parsed.errors:
            logger.warning(f"{key}: {error}")

        self._cache[key] = parsed
        self.types.register(parsed)
        return parsed

    def resolve_module(self, specifier: str, from_file: str) -> ParsedFile | None:
        """Parse the module an import specifier points at, or None for packages."""
        base = self._specifier_base(specifier, from_file)
        if base is None:
            return None

        for candidate in self._candidates(base):
            if candidate.is_file():
                try:
                    return self._parse(candidate)
                except SourceUnreadable as e:
                    logger.debug(f"Could not follow import '{specifier}': {e}")
                    return None
        return None

    def _specifier_base(self, specifier: str, from_file: str) -> Path | None:
        if specifier.startswith("."):
            return Path(from_file).parent / specifier
        for prefix, replacement in self.settings.path_aliases.items():
            if specifier.startswith(prefix):
                return self.settings.root_dir / replacement / specifier[len(prefix):]
        return None

    def _candidates(self, base: Path) -> list[Path]:
        candidates = []
        if base.suffix:
            candidates.append(base)
        candidates.extend(base.with_name(base.name + ext) for ext in MODULE_EXTENSIONS)
        candidates.extend(base / f"index{ext}" for ext in MODULE_EXTENSIONS)
        return candidates

    def clear(self) -> None:
        """Drop cached parses and type registrations.

        The TypeIndex instance is kept so analyzers holding it see the reset.
        """
        self._cache.clear()
        self.types.clear()
