"""Test scaffold generator for React components.

Parses TSX/JSX sources with tree-sitter, infers each exported component's
props, interactive elements and conditional renders, and writes Jest +
Testing Library scaffolds next to the source. A coverage run decides whether
a richer second pass is written.
"""

__version__ = "0.1.0"
