"""Render scenarios: the component preamble, rendering checks, conditional
renders, boolean prop variants and the snapshot."""

from testgen.analyzers.base import (
    ComponentInfo,
    ElementKind,
    InteractiveElementInfo,
    SelectorInfo,
    SelectorStrategy,
)

from .mocks import STUB, build_default_props, falsy_literal, prop_key, truthy_literal
from .templates import INDENT, inline_object, it_block, object_literal, quote, regex_literal


def query_for(selector: SelectorInfo, kind: ElementKind = ElementKind.GENERIC) -> str:
    """Testing Library query expression locating an element."""
    value = selector.value
    strategy = selector.strategy

    if strategy is SelectorStrategy.TEST_ID:
        return f"screen.getByTestId({quote(value)})"
    if strategy in (SelectorStrategy.ACCESSIBLE_LABEL, SelectorStrategy.VISIBLE_TEXT) and kind is ElementKind.BUTTON:
        return f'screen.getByRole("button", {{ name: {regex_literal(value)} }})'
    if strategy is SelectorStrategy.ACCESSIBLE_LABEL:
        return f"screen.getByLabelText({regex_literal(value)})"
    if strategy is SelectorStrategy.VISIBLE_TEXT:
        return f"screen.getByText({regex_literal(value)})"
    if strategy is SelectorStrategy.PLACEHOLDER:
        return f"screen.getByPlaceholderText({regex_literal(value)})"
    return f"screen.getAllByRole({quote(selector.role or value)})[0]"


def unique_elements(elements: list[InteractiveElementInfo]) -> list[InteractiveElementInfo]:
    """First element per distinct selector, in source order."""
    seen = set()
    unique = []
    for element in elements:
        if element.selector not in seen:
            seen.add(element.selector)
            unique.append(element)
    return unique


def preamble(component: ComponentInfo, render_function: str, depth: int) -> list[str]:
    """``Props`` type, ``defaultProps``, ``renderUI`` and mock reset for one component."""
    pad = INDENT * depth
    name = component.name

    if not component.props:
        return [
            f"{pad}const renderUI = () =>",
            f"{pad}{INDENT}{render_function}(<{name} />);",
        ]

    entries = [(prop_key(prop), value) for prop, value in build_default_props(component)]
    lines = [
        f"{pad}type Props = React.ComponentProps<typeof {name}>;",
        "",
        f"{pad}const defaultProps = {object_literal(entries, depth)} as unknown as Props;",
        "",
        f"{pad}const renderUI = (props: Partial<Props> = {{}}) =>",
        f"{pad}{INDENT}{render_function}(<{name} {{...defaultProps}} {{...props}} />);",
    ]
    if any(value == STUB for _, value in entries):
        lines.extend([
            "",
            f"{pad}beforeEach(() => {{",
            f"{pad}{INDENT}jest.clearAllMocks();",
            f"{pad}}});",
        ])
    return lines


def rendering_cases(component: ComponentInfo, depth: int, max_presence_checks: int) -> list[list[str]]:
    """Render without crashing, render with defaults, and presence checks."""
    cases = [
        it_block("renders without crashing", ["renderUI();"], depth),
        it_block(
            "renders with default props",
            ["const { container } = renderUI();", "expect(container).toBeInTheDocument();"],
            depth,
        ),
    ]

    for title, elements, kind in (
        ("renders buttons", component.buttons, ElementKind.BUTTON),
        ("renders inputs", component.inputs, ElementKind.INPUT),
    ):
        checked = unique_elements(elements)[:max_presence_checks]
        if checked:
            body = ["renderUI();"]
            body.extend(f"expect({query_for(e.selector, kind)}).toBeInTheDocument();" for e in checked)
            cases.append(it_block(title, body, depth))

    return cases


def conditional_cases(component: ComponentInfo, depth: int) -> list[list[str]]:
    """One render per conditional element with its gating props forced."""
    cases = []
    for element in component.conditional_elements:
        overrides = [
            (prop_key(name), truthy_literal(component.prop(name))) for name in element.required_props
        ]
        overrides.extend(
            (prop_key(name), falsy_literal(component.prop(name))) for name in element.falsy_props
        )
        conditions = [f"{name} is truthy" for name in element.required_props]
        conditions.extend(f"{name} is falsy" for name in element.falsy_props)

        title = f"renders '{element.selector.value}' when {' and '.join(conditions)}"
        body = [
            f"renderUI({inline_object(overrides)});",
            f"expect({query_for(element.selector, element.kind)}).toBeInTheDocument();",
        ]
        cases.append(it_block(title, body, depth))
    return cases


def variant_cases(component: ComponentInfo, depth: int) -> list[list[str]]:
    """One true/false render pair per boolean prop."""
    cases = []
    for prop in component.boolean_props:
        key = prop_key(prop.name)
        body = [
            f"const {{ unmount }} = renderUI({{ {key}: true }});",
            "unmount();",
            f"renderUI({{ {key}: false }});",
        ]
        cases.append(it_block(f"renders with {prop.name} true and false", body, depth))
    return cases


def snapshot_case(depth: int) -> list[str]:
    return it_block(
        "matches snapshot",
        ["const { container } = renderUI();", "expect(container.firstChild).toMatchSnapshot();"],
        depth,
    )
