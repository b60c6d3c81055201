"""Interaction scenarios: simulated clicks and typing through user-event."""

from testgen.analyzers.base import ComponentInfo, ElementKind, InteractiveElementInfo

from .mocks import IDENTIFIER
from .render import query_for, unique_elements
from .templates import it_block, quote

TEXT_INPUT_TYPES = ("", "text", "email", "password", "search", "tel", "url")
TYPED_TEXT = "test value"
TYPED_NUMBER = "42"


def _stub(name: str) -> str:
    return f"defaultProps.{name}" if IDENTIFIER.match(name) else f"defaultProps[{quote(name)}]"


def _handler_assertions(element: InteractiveElementInfo) -> list[str]:
    return [f"expect({_stub(name)}).toHaveBeenCalled();" for name in element.handler_props]


def click_case(element: InteractiveElementInfo, depth: int) -> list[str]:
    body = [
        "const user = userEvent.setup();",
        "renderUI();",
        f"await user.click({query_for(element.selector, element.kind)});",
    ]
    body.extend(_handler_assertions(element))
    return it_block(f"handles click on '{element.selector.value}'", body, depth, is_async=True)


def typing_case(element: InteractiveElementInfo, depth: int) -> list[str]:
    is_number = (element.input_type or "").lower() == "number"
    typed = TYPED_NUMBER if is_number else TYPED_TEXT

    body = [
        "const user = userEvent.setup();",
        "renderUI();",
        f"const input = {query_for(element.selector, element.kind)};",
        f"await user.type(input, {quote(typed)});",
    ]
    if not element.controlled:
        expected = typed if is_number else quote(typed)
        body.append(f"expect(input).toHaveValue({expected});")
    body.extend(_handler_assertions(element))
    return it_block(f"handles typing into '{element.selector.value}'", body, depth, is_async=True)


def is_typeable(element: InteractiveElementInfo) -> bool:
    """Text-entry inputs get typed into; checkboxes, radios, selects and the rest get clicked."""
    if element.tag == "textarea":
        return True
    if element.tag != "input":
        return False
    return (element.input_type or "").lower() in TEXT_INPUT_TYPES + ("number",)


def interaction_cases(component: ComponentInfo, depth: int) -> list[list[str]]:
    """One interaction per distinct button selector, then per distinct input selector."""
    cases = [click_case(button, depth) for button in unique_elements(component.buttons)]
    for element in unique_elements(component.inputs):
        if element.kind is ElementKind.INPUT and is_typeable(element):
            cases.append(typing_case(element, depth))
        else:
            cases.append(click_case(element, depth))
    return cases
