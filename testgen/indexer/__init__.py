"""Source indexing - tree-sitter parsing and structural type resolution.

This module provides:
- Tree-sitter parsing for TSX/JSX and TypeScript sources
- A batch-wide type index resolving interfaces, aliases and imports
- The loader context shared by every stage of one batch
"""

from .loader import SourceLoader
from .tree_sitter_parser import ASTNode, Language, ParsedFile, TreeSitterParser
from .type_index import MemberInfo, TypeIndex

__all__ = [
    # Tree-sitter parsing
    "TreeSitterParser",
    "ParsedFile",
    "ASTNode",
    "Language",
    # Type resolution
    "TypeIndex",
    "MemberInfo",
    # Loader context
    "SourceLoader",
]
