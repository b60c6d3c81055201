"""Mock Value Synthesizer - stand-in literals for props.

Rules are checked in order; the first match wins:

    children / node    -> <div />
    string             -> first string literal of the union, else "test-value"
    number             -> first numeric literal of the union, else 1
    boolean            -> true   (also is/has/show/can/should names of unknown type)
    callable           -> jest.fn()   (also on<Capitalized> names)
    array              -> []
    object             -> {}
    name ending in id  -> "test-id"
    anything else      -> undefined

Every function here is pure: the same prop always yields the same text.
"""

import json
import re

from testgen.analyzers.base import ComponentInfo, PropInfo, TypeKind, split_union

BOOLEAN_NAME = re.compile(r"^(is|has|show|can|should)[A-Z_]")
ID_NAME = re.compile(r"id$", re.IGNORECASE)
IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
NUMBER_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")

PLACEHOLDER_NODE = "<div />"
STUB = "jest.fn()"
FALSY_LITERALS = ("false", '""', "0", "null", "undefined")


def _first_literal(prop: PropInfo, kind: TypeKind) -> str | None:
    for member in split_union(prop.type):
        if kind is TypeKind.STRING and len(member) >= 2 and member[0] == member[-1] and member[0] in "'\"":
            return json.dumps(member[1:-1])
        if kind is TypeKind.NUMBER and NUMBER_LITERAL.match(member):
            return member
    return None


def mock_for(prop: PropInfo) -> str:
    """Literal source text standing in for one prop."""
    kind = prop.kind
    name = prop.name

    if name == "children" or kind is TypeKind.NODE:
        return PLACEHOLDER_NODE
    if kind is TypeKind.STRING:
        return _first_literal(prop, kind) or '"test-value"'
    if kind is TypeKind.NUMBER:
        return _first_literal(prop, kind) or "1"
    if kind is TypeKind.BOOLEAN or (kind is TypeKind.UNKNOWN and BOOLEAN_NAME.match(name)):
        return "true"
    if kind is TypeKind.CALLABLE or prop.is_callback:
        return STUB
    if kind is TypeKind.ARRAY:
        return "[]"
    if kind is TypeKind.OBJECT:
        return "{}"
    if ID_NAME.search(name):
        return '"test-id"'
    return "undefined"


def truthy_literal(prop: PropInfo | None) -> str:
    """A value that makes a gating prop truthy."""
    if prop is None:
        return "true"
    value = mock_for(prop)
    if value in FALSY_LITERALS:
        return "1" if prop.kind is TypeKind.NUMBER else "true"
    return value


def falsy_literal(prop: PropInfo | None) -> str:
    """A value that makes a gating prop falsy."""
    if prop is None:
        return "undefined"
    if prop.kind is TypeKind.BOOLEAN or (prop.kind is TypeKind.UNKNOWN and BOOLEAN_NAME.match(prop.name)):
        return "false"
    if prop.kind is TypeKind.STRING:
        return '""'
    if prop.kind is TypeKind.NUMBER:
        return "0"
    if prop.kind is TypeKind.NODE:
        return "null"
    return "undefined"


def build_default_props(component: ComponentInfo) -> list[tuple[str, str]]:
    """Entries of the ``defaultProps`` object: every required prop plus a stub per callback."""
    entries = []
    for prop in component.props:
        if prop.is_callback:
            entries.append((prop.name, STUB))
        elif prop.is_required:
            entries.append((prop.name, mock_for(prop)))
    return entries


def prop_key(name: str) -> str:
    """Object-literal key for a prop name (quoted when not an identifier)."""
    return name if IDENTIFIER.match(name) else json.dumps(name)
