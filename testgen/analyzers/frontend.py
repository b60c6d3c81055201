"""Component Analyzer - React component discovery over TSX/JSX syntax trees.

Understands:
- Exported function / arrow components (direct exports and export lists)
- Prop contracts from inline types, interfaces, aliases and ``React.FC<P>``
- Button-like and input-like markup and how a test can find it
- Markup gated by ternaries or ``&&`` guards over props

Only syntax is inspected; nothing is executed. Components wrapped in
``forwardRef`` / ``memo`` calls are not recognised and yield no entry.
"""

import logging
import re
from dataclasses import dataclass, field

from testgen.indexer import ASTNode, ParsedFile, TypeIndex
from testgen.indexer.type_index import COMPONENT_TYPE_NAMES, unwrap_type

from .base import (
    ComponentInfo,
    ConditionalElementInfo,
    ElementKind,
    ExportKind,
    InteractiveElementInfo,
    PropInfo,
    TypeKind,
    split_union,
)
from .selectors import AttributeBag, derive_selector, normalize_text

logger = logging.getLogger(__name__)

COMPONENT_NAME = re.compile(r"^[A-Z]")
CALLBACK_NAME = re.compile(r"^on[A-Z]")
UNDEFINED_TYPE = re.compile(r"\bundefined\b")

MARKUP_NODES = ("jsx_element", "jsx_self_closing_element")
FUNCTION_NODES = ("arrow_function", "function_expression", "function")
INPUT_TAGS = ("input", "textarea", "select")
BUTTON_INPUT_TYPES = ("submit", "button", "reset")
HANDLER_ATTRIBUTES = ("onClick", "onChange", "onInput", "onSubmit")


@dataclass
class _Candidate:
    """A top-level capitalized function that might be a component."""
    local_name: str
    function: ASTNode
    statement: ASTNode
    variable_type: ASTNode | None = None
    export_kind: ExportKind | None = None
    export_name: str | None = None


@dataclass
class _ExportTable:
    """Exports declared separately from the declarations they expose."""
    default_local: str | None = None
    named: dict[str, list[str]] = field(default_factory=dict)


class _PropScope:
    """How props are referred to inside one component body."""

    def __init__(self, props: list[PropInfo], aliases: dict[str, str], param_name: str | None, function: ASTNode):
        self.prop_names = {p.name for p in props}
        self.callbacks = {p.name for p in props if p.is_callback}
        self.aliases = {local: prop for local, prop in aliases.items() if prop in self.prop_names}
        self.param_name = param_name
        self.local_functions = _local_functions(function)

    def references(self, node: ASTNode | None) -> list[str]:
        """Prop names referenced anywhere inside ``node``, in source order."""
        found: list[str] = []
        if node is not None:
            self._collect(node, found)
        return found

    def _collect(self, node: ASTNode, found: list[str]) -> None:
        if node.type == "identifier":
            if node.text in self.aliases:
                found.append(self.aliases[node.text])
            return
        if node.type == "member_expression" and self.param_name:
            obj = node.child_by_field("object")
            prop = node.child_by_field("property")
            if obj is not None and obj.type == "identifier" and obj.text == self.param_name:
                if prop is not None and prop.text in self.prop_names:
                    found.append(prop.text)
                return
        for child in node.named_children:
            self._collect(child, found)

    def callback_refs(self, node: ASTNode | None, follow_locals: bool = True) -> list[str]:
        """Callback props a handler expression invokes, following one local function hop."""
        if node is None:
            return []
        refs = [name for name in self.references(node) if name in self.callbacks]
        if follow_locals:
            identifiers = [node] if node.type == "identifier" else list(node.find_descendants("identifier"))
            for ident in identifiers:
                target = self.local_functions.get(ident.text)
                if target is not None and ident.text not in self.aliases:
                    refs.extend(self.callback_refs(target, follow_locals=False))
        return refs


class ComponentAnalyzer:
    """Analyzer for React components in TSX/JSX sources.

    Usage:
        analyzer = ComponentAnalyzer(loader.types)
        components = analyzer.analyze(loader.load("src/components/Button.tsx"))
    """

    def __init__(self, types: TypeIndex | None = None):
        self.types = types or TypeIndex()

    def analyze(self, parsed: ParsedFile) -> list[ComponentInfo]:
        """Find every exported component in a parsed file, in declaration order."""
        if parsed.root is None:
            return []
        self.types.register(parsed)

        candidates, exports = self._collect_candidates(parsed)
        components: list[ComponentInfo] = []

        for candidate in candidates:
            if not self._resolve_export(candidate, exports):
                logger.debug(f"{candidate.local_name} is not exported, skipping")
                continue
            component = self._analyze_candidate(candidate, parsed)
            if component is None:
                logger.debug(f"{candidate.local_name} renders no markup, skipping")
                continue
            components.append(component)

        return components

    # =========================================================================
    # CANDIDATES & EXPORTS
    # =========================================================================

    def _collect_candidates(self, parsed: ParsedFile) -> tuple[list[_Candidate], _ExportTable]:
        candidates: list[_Candidate] = []
        exports = _ExportTable()

        for statement in parsed.top_level_statements():
            exported = None
            declaration = statement

            if statement.type == "export_statement":
                if statement.child_by_field("source") is not None:
                    continue
                is_default = statement.has_child_type("default")
                declaration = statement.child_by_field("declaration")
                if declaration is None:
                    self._record_export_list(statement, is_default, exports)
                    continue
                exported = ExportKind.DEFAULT if is_default else ExportKind.NAMED

            for candidate in self._declared_functions(declaration, statement):
                if COMPONENT_NAME.match(candidate.local_name):
                    candidate.export_kind = exported
                    candidates.append(candidate)

        return candidates, exports

    def _record_export_list(self, statement: ASTNode, is_default: bool, exports: _ExportTable) -> None:
        value = statement.child_by_field("value")
        if is_default and value is not None and value.type == "identifier":
            exports.default_local = value.text

        for clause in statement.find_children("export_clause"):
            for spec in clause.find_children("export_specifier"):
                name = spec.child_by_field("name")
                if name is None:
                    continue
                alias = spec.child_by_field("alias")
                exported_name = alias.text if alias is not None else name.text
                if exported_name == "default":
                    exports.default_local = name.text
                else:
                    exports.named.setdefault(name.text, []).append(exported_name)

    def _declared_functions(self, declaration: ASTNode, statement: ASTNode) -> list[_Candidate]:
        if declaration.type == "function_declaration":
            name = declaration.child_by_field("name")
            return [_Candidate(name.text, declaration, statement)] if name is not None else []

        found = []
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            for declarator in declaration.find_children("variable_declarator"):
                name = declarator.child_by_field("name")
                value = _unwrap_expression(declarator.child_by_field("value"))
                if name is None or name.type != "identifier" or value is None:
                    continue
                if value.type in FUNCTION_NODES:
                    found.append(_Candidate(
                        local_name=name.text,
                        function=value,
                        statement=statement,
                        variable_type=declarator.child_by_field("type"),
                    ))
        return found

    def _resolve_export(self, candidate: _Candidate, exports: _ExportTable) -> bool:
        if candidate.export_kind is not None:
            candidate.export_name = candidate.local_name
            return True
        if exports.default_local == candidate.local_name:
            candidate.export_kind = ExportKind.DEFAULT
            candidate.export_name = candidate.local_name
            return True
        for exported_name in exports.named.get(candidate.local_name, []):
            if COMPONENT_NAME.match(exported_name):
                candidate.export_kind = ExportKind.NAMED
                candidate.export_name = exported_name
                return True
        return False

    # =========================================================================
    # COMPONENT ANALYSIS
    # =========================================================================

    def _analyze_candidate(self, candidate: _Candidate, parsed: ParsedFile) -> ComponentInfo | None:
        body = candidate.function.child_by_field("body")
        if body is None:
            return None

        markup = [body] if body.type in MARKUP_NODES else []
        markup.extend(body.find_descendants(*MARKUP_NODES))
        if not markup:
            return None

        props, aliases, param_name = self._resolve_props(candidate, parsed.file_path)
        scope = _PropScope(props, aliases, param_name, candidate.function)
        labels = _label_texts(markup)

        interactive: list[InteractiveElementInfo] = []
        conditional: list[ConditionalElementInfo] = []
        seen_conditional = set()

        for node in markup:
            opening = _opening(node)
            tag = _tag(opening)
            if not tag:
                # Fragments have nothing to query
                continue
            attributes = _attributes(opening)
            kind = _element_kind(tag, attributes)

            if tag == "input" and kind is ElementKind.BUTTON:
                text = attributes.text("value")
            else:
                text = _text_content(node, deep=kind is ElementKind.BUTTON)
            label = _associated_label(node, attributes, labels) if kind is ElementKind.INPUT else None
            selector = derive_selector(attributes, text, kind, tag=tag, label=label)

            guard = _find_guard(node, candidate.function, scope)
            if guard is not None:
                truthy, falsy, guard_node = guard
                if kind is ElementKind.GENERIC and (selector.is_structural or not _is_guard_root(node, guard_node)):
                    continue
                key = (selector, truthy, falsy)
                if key not in seen_conditional:
                    seen_conditional.add(key)
                    conditional.append(ConditionalElementInfo(
                        selector=selector,
                        required_props=truthy,
                        falsy_props=falsy,
                        kind=kind,
                        line=node.start_line,
                    ))
                continue

            if kind is ElementKind.GENERIC:
                continue

            interactive.append(InteractiveElementInfo(
                selector=selector,
                kind=kind,
                tag=tag,
                input_type=(attributes.text("type") or None) if kind is ElementKind.INPUT else None,
                handler_props=_handler_props(node, opening, attributes, kind, scope),
                controlled=attributes.has("value") or attributes.has("checked"),
                line=node.start_line,
            ))

        return ComponentInfo(
            name=candidate.export_name or candidate.local_name,
            export_kind=candidate.export_kind,
            file_path=parsed.file_path,
            start_line=candidate.statement.start_line,
            end_line=candidate.statement.end_line,
            props=tuple(props),
            interactive_elements=tuple(interactive),
            conditional_elements=tuple(conditional),
            local_name=candidate.local_name,
        )

    # =========================================================================
    # PROPS
    # =========================================================================

    def _resolve_props(
        self,
        candidate: _Candidate,
        file_path: str,
    ) -> tuple[list[PropInfo], dict[str, str], str | None]:
        """Resolve the first parameter into props.

        Returns:
            (props, local alias -> prop name, parameter name when not destructured)
        """
        param = _first_parameter(candidate.function)
        pattern = type_node = None
        if param is not None:
            if param.type in ("required_parameter", "optional_parameter"):
                pattern = param.child_by_field("pattern")
                type_node = param.child_by_field("type")
            else:
                pattern = param

        if type_node is None:
            type_node = _component_type_argument(candidate.variable_type)

        members = self.types.members(type_node, file_path) if type_node is not None else []
        names, defaults, aliases = _pattern_bindings(pattern)
        param_name = pattern.text if pattern is not None and pattern.type == "identifier" else None

        props = [
            _make_prop(m.name, m.type_text, m.optional, m.name in defaults, m.kind)
            for m in members
        ]
        known = {p.name for p in props}
        for name in names:
            if name not in known:
                props.append(_make_prop(name, "any", False, name in defaults, TypeKind.UNKNOWN))
                known.add(name)

        return props, aliases, param_name


def _make_prop(name: str, type_text: str, optional: bool, has_default: bool, kind: TypeKind) -> PropInfo:
    includes_undefined = bool(UNDEFINED_TYPE.search(type_text))
    return PropInfo(
        name=name,
        type=type_text,
        is_required=not (has_default or optional or includes_undefined),
        is_callback=kind is TypeKind.CALLABLE or bool(CALLBACK_NAME.match(name)),
        is_boolean=split_union(type_text) == ["boolean"],
        kind=kind,
    )


def _unwrap_expression(node: ASTNode | None) -> ASTNode | None:
    while node is not None and node.type in ("parenthesized_expression", "as_expression", "satisfies_expression"):
        inner = node.named_children
        node = inner[0] if inner else None
    return node


def _first_parameter(function: ASTNode) -> ASTNode | None:
    params = function.child_by_field("parameters")
    if params is None:
        return function.child_by_field("parameter")
    for child in params.named_children:
        if child.type != "comment":
            return child
    return None


def _component_type_argument(variable_type: ASTNode | None) -> ASTNode | None:
    """``P`` of ``const X: React.FC<P> = ...``."""
    node = unwrap_type(variable_type)
    if node is None or node.type != "generic_type":
        return None
    name = node.child_by_field("name") or node.named_children[0]
    if name.text.split(".")[-1] not in COMPONENT_TYPE_NAMES:
        return None
    arguments = node.find_children("type_arguments")
    if not arguments or not arguments[0].named_children:
        return None
    return arguments[0].named_children[0]


def _pattern_bindings(pattern: ASTNode | None) -> tuple[list[str], set[str], dict[str, str]]:
    """Destructured prop names, the ones with defaults, and local binding -> prop name."""
    names: list[str] = []
    defaults: set[str] = set()
    aliases: dict[str, str] = {}
    if pattern is None or pattern.type != "object_pattern":
        return names, defaults, aliases

    for child in pattern.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            names.append(child.text)
            aliases[child.text] = child.text
        elif child.type == "object_assignment_pattern":
            left = child.child_by_field("left")
            if left is not None:
                names.append(left.text)
                defaults.add(left.text)
                aliases[left.text] = left.text
        elif child.type == "pair_pattern":
            key = child.child_by_field("key")
            value = child.child_by_field("value")
            if key is None:
                continue
            prop = key.text.strip("'\"")
            names.append(prop)
            if value is not None and value.type == "assignment_pattern":
                defaults.add(prop)
                value = value.child_by_field("left")
            if value is not None and value.type == "identifier":
                aliases[value.text] = prop
    return names, defaults, aliases


def _local_functions(function: ASTNode) -> dict[str, ASTNode]:
    """Handlers declared inside a component body (``const handleX = () => ...``)."""
    body = function.child_by_field("body")
    if body is None:
        return {}

    found: dict[str, ASTNode] = {}
    for declarator in body.find_descendants("variable_declarator"):
        name = declarator.child_by_field("name")
        value = _unwrap_expression(declarator.child_by_field("value"))
        if name is None or value is None:
            continue
        if value.type == "call_expression":
            callee = value.child_by_field("function")
            args = value.child_by_field("arguments")
            if callee is not None and callee.text.split(".")[-1] == "useCallback" and args and args.named_children:
                value = args.named_children[0]
        if value.type in FUNCTION_NODES:
            found[name.text] = value
    for declaration in body.find_descendants("function_declaration"):
        name = declaration.child_by_field("name")
        if name is not None:
            found[name.text] = declaration
    return found


# =============================================================================
# MARKUP HELPERS
# =============================================================================

def _opening(node: ASTNode) -> ASTNode:
    if node.type == "jsx_element":
        return node.child_by_field("open_tag") or node.named_children[0]
    return node


def _tag(opening: ASTNode) -> str:
    name = opening.child_by_field("name")
    return name.text if name is not None else ""


def _static_value(node: ASTNode) -> str | bool | None:
    """Literal value of an attribute, or None when it is an expression."""
    if node.type == "string":
        return node.text[1:-1]
    if node.type != "jsx_expression":
        return None

    inner = node.named_children
    if len(inner) != 1:
        return None
    value = inner[0]
    if value.type == "string":
        return value.text[1:-1]
    if value.type == "template_string" and not value.find_children("template_substitution"):
        return value.text[1:-1]
    if value.type == "number":
        return value.text
    if value.type in ("true", "false"):
        return value.type == "true"
    return None


def _attributes(opening: ASTNode) -> AttributeBag:
    values: dict[str, str | bool] = {}
    dynamic: set[str] = set()
    for attr in opening.find_children("jsx_attribute"):
        parts = attr.named_children
        if not parts:
            continue
        name = parts[0].text
        if len(parts) == 1:
            values[name] = True
            continue
        literal = _static_value(parts[1])
        if literal is None:
            dynamic.add(name)
        else:
            values[name] = literal
    return AttributeBag(values, dynamic)


def _element_kind(tag: str, attributes: AttributeBag) -> ElementKind:
    input_type = (attributes.text("type") or "").lower()
    if tag == "button" or attributes.text("role") == "button":
        return ElementKind.BUTTON
    if tag == "input" and input_type in BUTTON_INPUT_TYPES:
        return ElementKind.BUTTON
    if tag in INPUT_TAGS:
        if tag == "input" and input_type == "hidden":
            return ElementKind.GENERIC
        return ElementKind.INPUT
    return ElementKind.GENERIC


def _text_content(node: ASTNode, deep: bool = False) -> str:
    """Static text inside an element; ``deep`` includes nested elements."""
    if node.type != "jsx_element":
        return ""
    parts = []
    for child in node.children:
        if child.type == "jsx_text":
            parts.append(child.text)
        elif child.type == "jsx_expression":
            literal = _static_value(child)
            if isinstance(literal, str):
                parts.append(literal)
        elif deep and child.type == "jsx_element":
            parts.append(_text_content(child, deep=True))
    return normalize_text(" ".join(parts))


def _label_texts(markup: list[ASTNode]) -> dict[str, str]:
    """``htmlFor`` target id -> label text."""
    labels = {}
    for node in markup:
        opening = _opening(node)
        if _tag(opening) != "label":
            continue
        target = _attributes(opening).text("htmlFor", "for")
        text = _text_content(node, deep=True)
        if target and text:
            labels[target] = text
    return labels


def _associated_label(node: ASTNode, attributes: AttributeBag, labels: dict[str, str]) -> str | None:
    element_id = attributes.text("id")
    if element_id and element_id in labels:
        return labels[element_id]
    for ancestor in node.ancestors():
        if ancestor.type == "jsx_element" and _tag(_opening(ancestor)) == "label":
            return _text_content(ancestor) or None
    return None


def _handler_props(
    node: ASTNode,
    opening: ASTNode,
    attributes: AttributeBag,
    kind: ElementKind,
    scope: _PropScope,
) -> tuple[str, ...]:
    found: list[str] = []
    for attr in opening.find_children("jsx_attribute"):
        parts = attr.named_children
        if len(parts) >= 2 and parts[0].text in HANDLER_ATTRIBUTES:
            found.extend(scope.callback_refs(parts[1]))

    if not found and kind is ElementKind.BUTTON and (attributes.text("type") or "").lower() == "submit":
        for ancestor in node.ancestors():
            if ancestor.type == "jsx_element" and _tag(_opening(ancestor)) == "form":
                for attr in _opening(ancestor).find_children("jsx_attribute"):
                    parts = attr.named_children
                    if len(parts) >= 2 and parts[0].text == "onSubmit":
                        found.extend(scope.callback_refs(parts[1]))
                break

    return tuple(dict.fromkeys(found))


# =============================================================================
# CONDITIONAL RENDERING
# =============================================================================

def _find_guard(
    node: ASTNode,
    boundary: ASTNode,
    scope: _PropScope,
) -> tuple[tuple[str, ...], tuple[str, ...], ASTNode] | None:
    """Nearest ternary / ``&&`` guard above ``node`` that references props.

    Returns:
        (props that must be truthy, props that must be falsy, guard node),
        or None when the first guard found references no props or no guard
        exists below the component function
    """
    child = node
    for ancestor in node.ancestors():
        if ancestor is boundary:
            return None

        if ancestor.type == "ternary_expression" and child.field_name in ("consequence", "alternative"):
            condition = ancestor.child_by_field("condition")
            return _guard_result(condition, child.field_name == "alternative", scope, ancestor)

        if ancestor.type == "binary_expression" and child.field_name == "right":
            operator = ancestor.child_by_field("operator")
            if operator is not None and operator.text == "&&":
                return _guard_result(ancestor.child_by_field("left"), False, scope, ancestor)

        child = ancestor
    return None


def _guard_result(
    condition: ASTNode | None,
    negated: bool,
    scope: _PropScope,
    guard: ASTNode,
) -> tuple[tuple[str, ...], tuple[str, ...], ASTNode] | None:
    truthy: list[str] = []
    falsy: list[str] = []

    def visit(expr: ASTNode | None, neg: bool) -> None:
        if expr is None:
            return
        if expr.type == "parenthesized_expression":
            for inner in expr.named_children:
                visit(inner, neg)
            return
        if expr.type == "unary_expression":
            operator = expr.child_by_field("operator")
            if operator is not None and operator.text == "!":
                visit(expr.child_by_field("argument"), not neg)
                return
        if expr.type == "binary_expression":
            operator = expr.child_by_field("operator")
            if operator is not None and operator.text in ("&&", "||", "??"):
                visit(expr.child_by_field("left"), neg)
                visit(expr.child_by_field("right"), neg)
                return
        (falsy if neg else truthy).extend(scope.references(expr))

    visit(condition, negated)
    truthy = list(dict.fromkeys(truthy))
    falsy = [name for name in dict.fromkeys(falsy) if name not in truthy]
    if not truthy and not falsy:
        return None
    return tuple(truthy), tuple(falsy), guard


def _is_guard_root(node: ASTNode, guard: ASTNode) -> bool:
    """True when no other element (fragments aside) sits between ``node`` and its guard."""
    for ancestor in node.ancestors():
        if ancestor is guard:
            return True
        if ancestor.type in MARKUP_NODES and _tag(_opening(ancestor)):
            return False
    return True
