"""Selector Strategy - how a generated test finds a rendered element.

``derive_selector`` is total: whatever attributes a node carries it returns a
``SelectorInfo``, falling back to a structural role query. Priority:

    test-id > accessible-label > visible-text (buttons) > placeholder (inputs) > role
"""

from .base import ElementKind, SelectorInfo, SelectorStrategy

TEST_ID_ATTRIBUTES = ("data-testid", "dataTestId")

# Implicit ARIA roles for <input type=...>
INPUT_TYPE_ROLES = {
    "checkbox": "checkbox",
    "radio": "radio",
    "number": "spinbutton",
    "range": "slider",
}


class AttributeBag:
    """Attributes of one markup node.

    ``values`` holds statically known values: the literal string of
    ``attr="x"`` / ``attr={"x"}``, or ``True`` for a bare ``attr``. Attributes
    bound to an expression are only recorded by name in ``dynamic``.
    Lookups never raise on a missing key.
    """

    def __init__(
        self,
        values: dict[str, str | bool] | None = None,
        dynamic: set[str] | None = None,
    ):
        self.values: dict[str, str | bool] = dict(values or {})
        self.dynamic: set[str] = set(dynamic or ())

    def get(self, name: str) -> str | bool | None:
        return self.values.get(name)

    def text(self, *names: str) -> str | None:
        """First non-blank string value among ``names``, stripped."""
        for name in names:
            value = self.values.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    def has(self, name: str) -> bool:
        return name in self.values or name in self.dynamic

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __repr__(self) -> str:
        return f"AttributeBag(values={self.values!r}, dynamic={sorted(self.dynamic)!r})"


def normalize_text(text: str | None) -> str:
    """Collapse whitespace the way rendered text content would."""
    if not text:
        return ""
    return " ".join(text.split())


def structural_role(
    element_kind: ElementKind,
    tag: str | None = None,
    input_type: str | None = None,
    explicit_role: str | None = None,
) -> str:
    """Role used when no attribute or text signal exists."""
    if explicit_role:
        return explicit_role
    if element_kind is ElementKind.BUTTON:
        return "button"
    if element_kind is ElementKind.INPUT:
        if tag == "select":
            return "combobox"
        return INPUT_TYPE_ROLES.get((input_type or "").lower(), "textbox")
    return "generic"


def derive_selector(
    attributes: AttributeBag | None,
    text_content: str | None,
    element_kind: ElementKind,
    tag: str | None = None,
    label: str | None = None,
) -> SelectorInfo:
    """Derive the most stable query strategy for one markup node.

    Args:
        attributes: Static attributes of the node
        text_content: Visible text directly inside the node
        element_kind: Button-like, input-like or generic
        tag: Tag name, used to refine the structural role of inputs
        label: Text of a ``<label htmlFor>`` associated with the node

    Returns:
        SelectorInfo (never None)
    """
    attributes = attributes or AttributeBag()

    test_id = attributes.text(*TEST_ID_ATTRIBUTES)
    if test_id:
        return SelectorInfo(SelectorStrategy.TEST_ID, test_id)

    accessible_label = attributes.text("aria-label") or normalize_text(label)
    if accessible_label:
        return SelectorInfo(SelectorStrategy.ACCESSIBLE_LABEL, accessible_label)

    text = normalize_text(text_content)
    if text and element_kind in (ElementKind.BUTTON, ElementKind.GENERIC):
        return SelectorInfo(SelectorStrategy.VISIBLE_TEXT, text)

    placeholder = attributes.text("placeholder")
    if placeholder and element_kind in (ElementKind.INPUT, ElementKind.GENERIC):
        return SelectorInfo(SelectorStrategy.PLACEHOLDER, placeholder)

    role = structural_role(
        element_kind,
        tag=tag,
        input_type=attributes.text("type"),
        explicit_role=attributes.text("role"),
    )
    return SelectorInfo(SelectorStrategy.STRUCTURAL_ROLE, role, role=role)
