"""Tree-sitter Parser - Fast, error-tolerant parsing for TSX/JSX sources.

Tree-sitter advantages for this tool:
- Milliseconds parsing, no Node.js process needed
- Error-tolerant (handles broken/incomplete code)
- Field names on children (``name``, ``body``, ``condition``...) make
  structural queries over JSX and type declarations straightforward

The parse tree is converted into our own ``ASTNode`` tree so analysis code
never touches the binding objects directly.
"""

import hashlib
import logging
import time
from collections.abc import Generator, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from testgen.errors import EnvironmentUnavailable, SourceUnreadable

logger = logging.getLogger(__name__)


class Language(Enum):
    """Supported source languages."""
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"
    JSX = "jsx"
    UNKNOWN = "unknown"


# File extension to language mapping
EXTENSION_MAP = {
    ".ts": Language.TYPESCRIPT,
    ".mts": Language.TYPESCRIPT,
    ".cts": Language.TYPESCRIPT,
    ".tsx": Language.TSX,
    ".js": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".jsx": Language.JSX,
}

# Languages whose sources may contain markup
MARKUP_LANGUAGES = {Language.TSX, Language.JSX}


@dataclass(eq=False)
class ASTNode:
    """Represents a node in the Abstract Syntax Tree."""
    type: str
    text: str
    start_line: int
    end_line: int
    start_column: int
    end_column: int
    start_byte: int
    end_byte: int
    is_named: bool = True
    field_name: str | None = None
    children: list["ASTNode"] = field(default_factory=list, repr=False)
    parent: "ASTNode | None" = field(default=None, repr=False)

    @property
    def parent_type(self) -> str | None:
        return self.parent.type if self.parent else None

    @property
    def line_count(self) -> int:
        """Number of lines this node spans."""
        return self.end_line - self.start_line + 1

    @property
    def named_children(self) -> list["ASTNode"]:
        return [c for c in self.children if c.is_named]

    def child_by_field(self, name: str) -> "ASTNode | None":
        """First child attached under the given grammar field."""
        for child in self.children:
            if child.field_name == name:
                return child
        return None

    def has_child_type(self, node_type: str) -> bool:
        return any(c.type == node_type for c in self.children)

    def find_children(self, *node_types: str) -> list["ASTNode"]:
        """Find all direct children of the given types."""
        return [c for c in self.children if c.type in node_types]

    def find_descendants(self, *node_types: str) -> Generator["ASTNode", None, None]:
        """Find all descendants of the given types (pre-order)."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if node.type in node_types:
                yield node
            stack.extend(reversed(node.children))

    def ancestors(self) -> Iterator["ASTNode"]:
        """Walk the parent chain, nearest first."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent


@dataclass
class ParsedFile:
    """Result of parsing a source file."""
    file_path: str
    language: Language
    content: str
    content_hash: str
    root: ASTNode | None
    errors: list[str] = field(default_factory=list)
    parse_time_ms: float = 0.0

    @property
    def has_errors(self) -> bool:
        """Check if parsing had errors."""
        return len(self.errors) > 0

    @property
    def line_count(self) -> int:
        """Total lines in the file."""
        return self.content.count("\n") + 1

    @property
    def is_markup(self) -> bool:
        return self.language in MARKUP_LANGUAGES

    def top_level_statements(self) -> list[ASTNode]:
        """Statements directly under the program node."""
        if not self.root:
            return []
        return self.root.named_children

    def get_imports(self) -> list[ASTNode]:
        """Extract all top-level import statements."""
        return [s for s in self.top_level_statements() if s.type == "import_statement"]


class TreeSitterParser:
    """Parser for TypeScript/JavaScript (with JSX) sources using tree-sitter.

    Usage:
        parser = TreeSitterParser()
        parsed = parser.parse_file("src/components/Button.tsx")
        jsx = list(parsed.root.find_descendants("jsx_element"))

    Raises EnvironmentUnavailable when tree-sitter or the TypeScript grammars
    cannot be loaded; nothing can be analyzed correctly without them.
    """

    def __init__(self):
        """Initialize parser with tree-sitter bindings."""
        self._parsers: dict[Language, object] = {}

        try:
            import tree_sitter
            import tree_sitter_typescript
        except ImportError as e:
            logger.error(
                "tree-sitter not installed. Install with: "
                "pip install tree-sitter tree-sitter-typescript"
            )
            raise EnvironmentUnavailable(f"tree-sitter is not available: {e}") from e

        try:
            tsx = tree_sitter.Language(tree_sitter_typescript.language_tsx())
            typescript = tree_sitter.Language(tree_sitter_typescript.language_typescript())
            # The TSX grammar also covers plain JavaScript with JSX.
            self._parsers = {
                Language.TSX: tree_sitter.Parser(tsx),
                Language.JSX: tree_sitter.Parser(tsx),
                Language.JAVASCRIPT: tree_sitter.Parser(tsx),
                Language.TYPESCRIPT: tree_sitter.Parser(typescript),
            }
        except Exception as e:
            logger.error(f"Could not load TypeScript grammars: {e}")
            raise EnvironmentUnavailable(f"Could not load TypeScript grammars: {e}") from e

        logger.debug("Tree-sitter initialized successfully")

    def detect_language(self, file_path: str) -> Language:
        """Detect language from file extension."""
        ext = Path(file_path).suffix.lower()
        return EXTENSION_MAP.get(ext, Language.UNKNOWN)

    def parse_file(self, file_path: str) -> ParsedFile:
        """Parse a source file.

        Args:
            file_path: Path to source file

        Returns:
            ParsedFile with AST and metadata

        Raises:
            SourceUnreadable: if the file is missing, unreadable, of an
                unknown language, or does not parse at all
        """
        path = Path(file_path)
        if not path.is_file():
            raise SourceUnreadable(str(file_path), "file does not exist")

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnreadable(str(file_path), f"could not read file: {e}") from e

        parsed = self.parse_content(content, str(file_path))
        if parsed.root is None:
            raise SourceUnreadable(str(file_path), "; ".join(parsed.errors) or "parse failed")
        return parsed

    def parse_content(
        self,
        content: str,
        file_path: str = "<string>.tsx",
    ) -> ParsedFile:
        """Parse content directly (without reading file).

        Args:
            content: Source code content
            file_path: File path used for language detection and context

        Returns:
            ParsedFile with AST (``root`` is None when nothing could be parsed)
        """
        start = time.perf_counter()

        language = self.detect_language(file_path)
        content_hash = hashlib.sha256(content.encode()).hexdigest()[:16]
        root, errors = self._parse_with_tree_sitter(content, language)

        elapsed = (time.perf_counter() - start) * 1000

        return ParsedFile(
            file_path=file_path,
            language=language,
            content=content,
            content_hash=content_hash,
            root=root,
            errors=errors,
            parse_time_ms=elapsed,
        )

    def _parse_with_tree_sitter(
        self,
        content: str,
        language: Language,
    ) -> tuple[ASTNode | None, list[str]]:
        """Parse using tree-sitter."""
        parser = self._parsers.get(language)
        if parser is None:
            return None, [f"Unsupported language: {language.value}"]

        source = content.encode("utf-8")
        try:
            tree = parser.parse(source)
        except Exception as e:
            logger.error(f"Tree-sitter parsing failed: {e}")
            return None, [str(e)]

        if tree.root_node.type == "ERROR":
            return None, ["Source could not be parsed"]

        errors = []
        for error_node in self._find_errors(tree.root_node):
            line = error_node.start_point[0] + 1
            errors.append(f"Syntax error at line {line}")

        try:
            return self._convert_tree(tree.root_node, source), errors
        except (RecursionError, MemoryError) as e:
            logger.error(f"Could not convert parse tree: {e!r}")
            return None, [f"Parse tree could not be converted: {e!r}"]

    def _convert_tree(self, root, source: bytes) -> ASTNode:
        """Convert the tree-sitter tree to our ASTNode tree.

        Walks with a TreeCursor and an explicit stack so deeply nested
        expressions never hit the interpreter's recursion limit.
        """
        converted_root = self._convert_node(root, source, None, None)
        stack = [(root, converted_root)]
        while stack:
            node, converted = stack.pop()
            cursor = node.walk()
            if not cursor.goto_first_child():
                continue
            while True:
                child = self._convert_node(cursor.node, source, converted, cursor.field_name)
                converted.children.append(child)
                if cursor.node.child_count:
                    stack.append((cursor.node, child))
                if not cursor.goto_next_sibling():
                    break
        return converted_root

    @staticmethod
    def _convert_node(node, source: bytes, parent: ASTNode | None, field_name: str | None) -> ASTNode:
        return ASTNode(
            type=node.type,
            text=source[node.start_byte:node.end_byte].decode("utf-8", errors="replace"),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            start_column=node.start_point[1],
            end_column=node.end_point[1],
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            is_named=node.is_named,
            field_name=field_name,
            parent=parent,
        )

    def _find_errors(self, root) -> Generator:
        """Find all ERROR and MISSING nodes in the tree (pre-order)."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                yield node
            elif node.has_error:
                stack.extend(reversed(node.children))
