"""Analysis data model shared by the analyzer, the selector strategy and the generator.

All records are frozen: a ``ComponentInfo`` is built once per analyzed file
and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum

from testgen.indexer.type_index import TypeKind, split_union  # noqa: F401


class ExportKind(str, Enum):
    """How a component is reachable from outside its module."""
    DEFAULT = "default"
    NAMED = "named"


class ElementKind(str, Enum):
    """Classification of a markup node."""
    BUTTON = "button"
    INPUT = "input"
    GENERIC = "generic"


class SelectorStrategy(str, Enum):
    """Ways a test can locate a rendered element, most stable first."""
    TEST_ID = "test-id"
    ACCESSIBLE_LABEL = "accessible-label"
    VISIBLE_TEXT = "visible-text"
    PLACEHOLDER = "placeholder"
    STRUCTURAL_ROLE = "structural-role"


@dataclass(frozen=True)
class SelectorInfo:
    """A strategy for finding a rendered element during a test."""
    strategy: SelectorStrategy
    value: str
    role: str | None = None

    @property
    def is_structural(self) -> bool:
        return self.strategy is SelectorStrategy.STRUCTURAL_ROLE

    def to_dict(self) -> dict:
        data = {"strategy": self.strategy.value, "value": self.value}
        if self.role:
            data["role"] = self.role
        return data


@dataclass(frozen=True)
class PropInfo:
    """One prop accepted by a component."""
    name: str
    type: str
    is_required: bool
    is_callback: bool
    is_boolean: bool
    kind: TypeKind | None = None

    def __post_init__(self):
        if self.kind is None:
            object.__setattr__(self, "kind", TypeKind.from_text(self.type))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "required": self.is_required,
            "callback": self.is_callback,
            "boolean": self.is_boolean,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class InteractiveElementInfo:
    """A button-like or input-like markup node reduced to how a test finds and drives it."""
    selector: SelectorInfo
    kind: ElementKind
    tag: str
    input_type: str | None = None
    handler_props: tuple[str, ...] = ()
    controlled: bool = False
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "selector": self.selector.to_dict(),
            "kind": self.kind.value,
            "tag": self.tag,
            "input_type": self.input_type,
            "handler_props": list(self.handler_props),
            "controlled": self.controlled,
            "line": self.line,
        }


@dataclass(frozen=True)
class ConditionalElementInfo:
    """A markup node rendered only when some props are truthy (or falsy)."""
    selector: SelectorInfo
    required_props: tuple[str, ...]
    falsy_props: tuple[str, ...] = ()
    kind: ElementKind = ElementKind.GENERIC
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "selector": self.selector.to_dict(),
            "required_props": list(self.required_props),
            "falsy_props": list(self.falsy_props),
            "kind": self.kind.value,
            "line": self.line,
        }


@dataclass(frozen=True)
class ComponentInfo:
    """One exported UI-component-like declaration found in a file."""
    name: str
    export_kind: ExportKind
    file_path: str
    start_line: int
    end_line: int
    props: tuple[PropInfo, ...] = ()
    interactive_elements: tuple[InteractiveElementInfo, ...] = ()
    conditional_elements: tuple[ConditionalElementInfo, ...] = ()
    local_name: str | None = field(default=None, compare=False)

    @property
    def buttons(self) -> list[InteractiveElementInfo]:
        return [e for e in self.interactive_elements if e.kind is ElementKind.BUTTON]

    @property
    def inputs(self) -> list[InteractiveElementInfo]:
        return [e for e in self.interactive_elements if e.kind is ElementKind.INPUT]

    @property
    def boolean_props(self) -> list[PropInfo]:
        return [p for p in self.props if p.is_boolean]

    def prop(self, name: str) -> PropInfo | None:
        return next((p for p in self.props if p.name == name), None)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "export": self.export_kind.value,
            "file_path": self.file_path,
            "lines": f"{self.start_line}-{self.end_line}",
            "props": [p.to_dict() for p in self.props],
            "interactive_elements": [e.to_dict() for e in self.interactive_elements],
            "conditional_elements": [c.to_dict() for c in self.conditional_elements],
        }
