"""Tests for the tree-sitter parser module."""

import pytest

from testgen.errors import SourceUnreadable
from testgen.indexer.tree_sitter_parser import (
    EXTENSION_MAP,
    Language,
    TreeSitterParser,
)

pytestmark = pytest.mark.requires_tree_sitter


def _raise_recursion_error(*args, **kwargs):
    raise RecursionError("maximum recursion depth exceeded")


class TestTreeSitterParser:
    """Test TreeSitterParser functionality."""

    @pytest.fixture
    def parser(self):
        """Create a TreeSitterParser instance."""
        return TreeSitterParser()

    @pytest.fixture
    def sample_component(self):
        """Sample TSX component for testing."""
        return '''import React from "react";

interface Props {
    name: string;
    onClick?: () => void;
}

export const Greeting: React.FC<Props> = ({ name, onClick }) => {
    return (
        <div data-testid="greeting">
            <span>{name}</span>
            <button onClick={onClick}>Click me</button>
        </div>
    );
};
'''

    def test_detect_language(self, parser):
        """Test language detection from file extensions."""
        assert parser.detect_language("Button.tsx") == Language.TSX
        assert parser.detect_language("Button.jsx") == Language.JSX
        assert parser.detect_language("types.ts") == Language.TYPESCRIPT
        assert parser.detect_language("styles.css") == Language.UNKNOWN

    def test_extension_map(self):
        """Test that markup-capable extensions are mapped."""
        assert EXTENSION_MAP[".tsx"] == Language.TSX
        assert EXTENSION_MAP[".jsx"] == Language.JSX

    def test_parse_content(self, parser, sample_component):
        """Test parsing TSX content."""
        parsed = parser.parse_content(sample_component, "Greeting.tsx")

        assert parsed.root is not None
        assert parsed.root.type == "program"
        assert parsed.language == Language.TSX
        assert parsed.is_markup
        assert not parsed.has_errors
        assert len(parsed.content_hash) == 16

    def test_top_level_statements(self, parser, sample_component):
        """Test top-level statement access."""
        parsed = parser.parse_content(sample_component, "Greeting.tsx")
        types = [s.type for s in parsed.top_level_statements()]

        assert types == ["import_statement", "interface_declaration", "export_statement"]
        assert len(parsed.get_imports()) == 1

    def test_field_access(self, parser, sample_component):
        """Test field-name based child lookup."""
        parsed = parser.parse_content(sample_component, "Greeting.tsx")
        interface = parsed.top_level_statements()[1]

        assert interface.child_by_field("name").text == "Props"
        assert interface.child_by_field("body").type == "interface_body"

    def test_find_descendants_and_ancestors(self, parser, sample_component):
        """Test tree navigation in both directions."""
        parsed = parser.parse_content(sample_component, "Greeting.tsx")
        button = next(
            node for node in parsed.root.find_descendants("jsx_element")
            if node.child_by_field("open_tag").child_by_field("name").text == "button"
        )

        ancestor_types = [a.type for a in button.ancestors()]
        assert "arrow_function" in ancestor_types
        assert ancestor_types[-1] == "program"
        assert button.start_line == 12

    def test_syntax_errors_are_recorded(self, parser):
        """Test that partial syntax errors still yield a tree."""
        parsed = parser.parse_content("export const A = () => <div>;\n", "Broken.tsx")

        assert parsed.root is not None
        assert parsed.has_errors
        assert parsed.errors[0].startswith("Syntax error at line")

    def test_parse_file(self, parser, tmp_path, sample_component):
        """Test parsing from a file."""
        path = tmp_path / "Greeting.tsx"
        path.write_text(sample_component)

        parsed = parser.parse_file(str(path))

        assert parsed.file_path == str(path)
        assert parsed.line_count == sample_component.count("\n") + 1

    def test_deeply_nested_expression(self, parser):
        """Test a tree far deeper than the interpreter's recursion limit."""
        terms = 3000
        source = "const s = " + " + ".join(['"a"'] * terms) + ";\n"

        parsed = parser.parse_content(source, "Deep.tsx")

        assert parsed.root is not None
        assert not parsed.has_errors
        strings = list(parsed.root.find_descendants("string"))
        assert len(strings) == terms
        assert strings[0].start_column < strings[-1].start_column

    def test_unconvertible_tree_is_unreadable(self, parser, tmp_path, monkeypatch):
        """Test that a tree that cannot be converted surfaces as SourceUnreadable."""
        path = tmp_path / "Deep.tsx"
        path.write_text("export const A = () => <div />;\n")
        monkeypatch.setattr(parser, "_convert_tree", _raise_recursion_error)

        with pytest.raises(SourceUnreadable, match="could not be converted"):
            parser.parse_file(str(path))

    def test_parse_missing_file(self, parser, tmp_path):
        """Test that a missing file raises SourceUnreadable."""
        with pytest.raises(SourceUnreadable):
            parser.parse_file(str(tmp_path / "Missing.tsx"))

    def test_parse_unknown_language(self, parser):
        """Test that unsupported languages yield no tree."""
        parsed = parser.parse_content("body { color: red; }", "styles.css")

        assert parsed.root is None
        assert parsed.errors
