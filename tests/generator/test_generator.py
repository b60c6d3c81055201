"""Tests for the test scaffold generator."""

import pytest

from testgen.analyzers.base import (
    ComponentInfo,
    ConditionalElementInfo,
    ElementKind,
    ExportKind,
    InteractiveElementInfo,
    PropInfo,
    SelectorInfo,
    SelectorStrategy,
)
from testgen.config import GENERATED_MARKER
from testgen.generator import GenerationContext, GenerationPass, ScaffoldGenerator, generate_tests
from testgen.generator.interactions import is_typeable
from testgen.generator.render import query_for
from testgen.generator.templates import ImportBlock, object_literal, regex_literal


@pytest.fixture
def list_component():
    """ExpenseList with a loading guard, a delete button and a search input."""
    return ComponentInfo(
        name="ExpenseList",
        export_kind=ExportKind.DEFAULT,
        file_path="src/components/ExpenseList.tsx",
        start_line=1,
        end_line=30,
        props=(
            PropInfo("title", "string", is_required=True, is_callback=False, is_boolean=False),
            PropInfo("isLoading", "boolean", is_required=False, is_callback=False, is_boolean=True),
            PropInfo("onDelete", "(id: string) => void", is_required=True, is_callback=True, is_boolean=False),
        ),
        interactive_elements=(
            InteractiveElementInfo(
                selector=SelectorInfo(SelectorStrategy.ACCESSIBLE_LABEL, "Delete transaction"),
                kind=ElementKind.BUTTON,
                tag="button",
                handler_props=("onDelete",),
            ),
            InteractiveElementInfo(
                selector=SelectorInfo(SelectorStrategy.PLACEHOLDER, "Search..."),
                kind=ElementKind.INPUT,
                tag="input",
            ),
        ),
        conditional_elements=(
            ConditionalElementInfo(
                selector=SelectorInfo(SelectorStrategy.TEST_ID, "spinner"),
                required_props=("isLoading",),
            ),
        ),
    )


@pytest.fixture
def static_component():
    """A named export with no props and no interactive markup."""
    return ComponentInfo(
        name="Logo",
        export_kind=ExportKind.NAMED,
        file_path="src/components/ExpenseList.tsx",
        start_line=32,
        end_line=34,
    )


@pytest.fixture
def generator():
    return ScaffoldGenerator(GenerationContext(module_specifier="../ExpenseList"))


class TestScaffoldGenerator:
    """Test generated file text."""

    def test_marker_is_first_line(self, generator, list_component):
        text = generator.generate([list_component])
        assert text.splitlines()[0] == GENERATED_MARKER
        assert text.endswith("});\n")

    def test_minimal_pass_scenarios(self, generator, list_component):
        """Test pass 1: rendering checks and snapshot only."""
        text = generator.generate([list_component], GenerationPass.MINIMAL)

        assert 'it("renders without crashing"' in text
        assert 'it("renders with default props"' in text
        assert 'screen.getByRole("button", { name: /Delete transaction/i })' in text
        assert "screen.getByPlaceholderText(/Search\\.\\.\\./i)" in text
        assert 'it("matches snapshot"' in text
        assert "Conditional rendering" not in text
        assert "userEvent" not in text

    def test_enriched_pass_scenarios(self, generator, list_component):
        """Test pass 2 adds conditionals, variants and interactions in order."""
        text = generator.generate([list_component], GenerationPass.ENRICHED)

        order = [
            text.index('describe("Rendering"'),
            text.index('describe("Conditional rendering"'),
            text.index('describe("Prop variants"'),
            text.index('describe("User interactions"'),
            text.index('describe("Snapshot"'),
        ]
        assert order == sorted(order)

        assert "renderUI({ isLoading: true });" in text
        assert 'expect(screen.getByTestId("spinner")).toBeInTheDocument();' in text
        assert "renderUI({ isLoading: false });" in text
        assert "expect(defaultProps.onDelete).toHaveBeenCalled();" in text
        assert 'await user.type(input, "test value");' in text
        assert 'expect(input).toHaveValue("test value");' in text
        assert 'import userEvent from "@testing-library/user-event";' in text

    def test_default_props_block(self, generator, list_component):
        """Test every required prop appears with a synthesized value."""
        text = generator.generate([list_component])

        assert "type Props = React.ComponentProps<typeof ExpenseList>;" in text
        assert '    title: "test-value",' in text
        assert "    onDelete: jest.fn()," in text
        assert "isLoading:" not in text.split("as unknown as Props")[0]
        assert "jest.clearAllMocks();" in text

    def test_imports(self, generator, list_component, static_component):
        text = generator.generate([list_component, static_component])
        header = text.split("\n\n")[0]

        assert 'import * as React from "react";' in header
        assert 'import { render, screen } from "@testing-library/react";' in header
        assert 'import ExpenseList, { Logo } from "../ExpenseList";' in header

    def test_component_without_props(self, generator, static_component):
        text = generator.generate([static_component])

        assert "const renderUI = () =>" in text
        assert "render(<Logo />);" in text
        assert "defaultProps" not in text

    def test_custom_render_helper(self, list_component):
        context = GenerationContext(
            module_specifier="../ExpenseList",
            render_helper_module="@/test-utils/renderWithProviders",
            render_helper_name="renderWithProviders",
        )

        text = generate_tests([list_component], context)

        assert 'import { renderWithProviders } from "@/test-utils/renderWithProviders";' in text
        assert "renderWithProviders(<ExpenseList {...defaultProps} {...props} />)" in text
        assert 'import { screen } from "@testing-library/react";' in text

    def test_variants_can_be_disabled(self, list_component):
        context = GenerationContext(module_specifier="../ExpenseList", variants_enabled=False)
        text = generate_tests([list_component], context, GenerationPass.ENRICHED)
        assert "Prop variants" not in text

    def test_deterministic(self, generator, list_component):
        first = generator.generate([list_component], GenerationPass.ENRICHED)
        second = generator.generate([list_component], GenerationPass.ENRICHED)
        assert first == second


class TestQueries:
    """Test selector to query mapping."""

    @pytest.mark.parametrize("selector,kind,expected", [
        (SelectorInfo(SelectorStrategy.TEST_ID, "row"), ElementKind.GENERIC, 'screen.getByTestId("row")'),
        (SelectorInfo(SelectorStrategy.VISIBLE_TEXT, "Save"), ElementKind.BUTTON,
         'screen.getByRole("button", { name: /Save/i })'),
        (SelectorInfo(SelectorStrategy.ACCESSIBLE_LABEL, "Amount"), ElementKind.INPUT,
         "screen.getByLabelText(/Amount/i)"),
        (SelectorInfo(SelectorStrategy.VISIBLE_TEXT, "Total"), ElementKind.GENERIC, "screen.getByText(/Total/i)"),
        (SelectorInfo(SelectorStrategy.STRUCTURAL_ROLE, "checkbox", role="checkbox"), ElementKind.INPUT,
         'screen.getAllByRole("checkbox")[0]'),
    ])
    def test_query_for(self, selector, kind, expected):
        assert query_for(selector, kind) == expected

    def test_is_typeable(self):
        def element(tag, input_type=None):
            selector = SelectorInfo(SelectorStrategy.STRUCTURAL_ROLE, "textbox", role="textbox")
            return InteractiveElementInfo(selector, ElementKind.INPUT, tag, input_type=input_type)

        assert is_typeable(element("input"))
        assert is_typeable(element("input", "email"))
        assert is_typeable(element("textarea"))
        assert not is_typeable(element("input", "checkbox"))
        assert not is_typeable(element("select"))


class TestTemplates:
    """Test text building blocks."""

    def test_regex_literal_escapes(self):
        assert regex_literal("Total ($)") == r"/Total \(\$\)/i"
        assert regex_literal("a/b") == r"/a\/b/i"

    def test_object_literal(self):
        assert object_literal([], 0) == "{}"
        assert object_literal([("a", "1"), ("b", "true")], 1) == "{\n    a: 1,\n    b: true,\n  }"

    def test_import_block_merges(self):
        block = ImportBlock()
        block.add("@testing-library/react", items=["render"])
        block.add("@testing-library/react", items=["screen", "render"])
        block.add("empty", items=[])

        assert block.render() == 'import { render, screen } from "@testing-library/react";'
