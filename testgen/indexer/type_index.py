"""Type Index - structural type resolution over parsed TypeScript modules.

There is no TypeScript checker in the loop. Instead every parsed module
registers its ``interface`` / ``type`` declarations and its imports, and
named type references are resolved:

1. in the module that references them,
2. through the module's imports (relative or aliased specifiers, following
   ``export ... from`` barrels), loading imported modules on demand,
3. across every module registered in the batch.

That is enough to turn a component's props annotation into an ordered member
list with optionality, a printable type and a structural ``TypeKind``.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from .tree_sitter_parser import ASTNode, ParsedFile

logger = logging.getLogger(__name__)

_STRING_LITERAL = re.compile(r"""^(['"`]).*\1$""")
_NUMBER_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")


def split_union(type_text: str) -> list[str]:
    """Split a type's text on top-level ``|``, dropping ``undefined`` and ``null`` members."""
    members: list[str] = []
    depth = 0
    quote = ""
    current = []
    prev = ""
    for ch in type_text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = ""
            prev = ch
            continue
        if ch in "'\"`":
            quote = ch
        elif ch in "(<{[":
            depth += 1
        elif ch in ")}]" or (ch == ">" and prev != "="):
            depth -= 1
        elif ch == "|" and depth == 0:
            members.append("".join(current).strip())
            current = []
            prev = ch
            continue
        prev = ch
        current.append(ch)
    members.append("".join(current).strip())
    return [m for m in members if m and m not in ("undefined", "null")]


class TypeKind(str, Enum):
    """Structural shape of a prop type, as far as it can be told statically."""
    NODE = "node"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    CALLABLE = "callable"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"

    @classmethod
    def from_text(cls, type_text: str) -> "TypeKind":
        """Classify a type from its textual rendering alone."""
        text = " ".join(type_text.split())
        lowered = text.lower()
        if any(token in lowered for token in ("reactnode", "reactelement", "jsx.element")):
            return cls.NODE
        if "=>" in text:
            return cls.CALLABLE

        members = split_union(text)
        if not members:
            return cls.UNKNOWN
        kinds = {cls._member_kind(m) for m in members}
        for kind in (cls.STRING, cls.NUMBER, cls.BOOLEAN, cls.ARRAY, cls.OBJECT):
            if kind in kinds:
                return kind
        return cls.UNKNOWN

    @classmethod
    def _member_kind(cls, member: str) -> "TypeKind":
        lowered = member.lower()
        if lowered == "string" or _STRING_LITERAL.match(member):
            return cls.STRING
        if lowered == "number" or _NUMBER_LITERAL.match(member):
            return cls.NUMBER
        if lowered in ("boolean", "true", "false"):
            return cls.BOOLEAN
        if member.endswith("[]") or lowered.startswith(("array<", "readonlyarray<")):
            return cls.ARRAY
        if lowered in ("object", "date") or member.startswith("{") or lowered.startswith("record<"):
            return cls.OBJECT
        return cls.UNKNOWN


ModuleResolver = Callable[[str, str], ParsedFile | None]

NODE_TYPE_NAMES = {"ReactNode", "ReactElement", "ReactChild", "ReactFragment", "ReactPortal", "Element"}
ARRAY_TYPE_NAMES = {"Array", "ReadonlyArray"}
OBJECT_TYPE_NAMES = {
    "Record", "Partial", "Required", "Readonly", "Pick", "Omit", "Map", "Set",
    "Date", "Promise", "CSSProperties", "RefObject", "MutableRefObject",
}
CALLABLE_TYPE_NAMES = {"Function", "Dispatch", "VoidFunction"}

# Wrappers whose first type argument carries the component props
COMPONENT_TYPE_NAMES = {"FC", "FunctionComponent", "VFC", "VoidFunctionComponent", "ComponentType"}

_DECLARATION_TYPES = ("interface_declaration", "type_alias_declaration")
_OBJECT_LIKE = ("object_type", "interface_body", "intersection_type")


@dataclass
class MemberInfo:
    """One property of a resolved object type."""
    name: str
    type_text: str
    optional: bool
    kind: TypeKind


@dataclass
class ModuleTypes:
    """Type-level symbols of one module."""
    file_path: str
    declarations: dict[str, ASTNode] = field(default_factory=dict)
    imports: dict[str, tuple[str, str]] = field(default_factory=dict)  # local -> (specifier, imported)
    reexports: dict[str, tuple[str, str]] = field(default_factory=dict)  # exported -> (specifier, original)
    star_reexports: list[str] = field(default_factory=list)


def unwrap_type(node: ASTNode | None) -> ASTNode | None:
    """Strip ``: T`` annotations and parentheses around a type node."""
    while node is not None and node.type in ("type_annotation", "parenthesized_type", "readonly_type"):
        inner = node.named_children
        if not inner:
            return None
        node = inner[0]
    return node


def normalize_type_text(text: str) -> str:
    return " ".join(text.split()).rstrip(";,").strip()


def _string_value(node: ASTNode) -> str:
    return node.text[1:-1] if node.type == "string" and len(node.text) >= 2 else node.text


def literal_names(node: ASTNode | None) -> list[str]:
    """String literal members of a ``'a' | 'b'`` type, e.g. the keys of ``Pick``."""
    node = unwrap_type(node)
    if node is None:
        return []
    if node.type == "union_type":
        return [name for child in node.named_children for name in literal_names(child)]
    if node.type == "literal_type":
        return [_string_value(c) for c in node.named_children if c.type == "string"]
    return []


class TypeIndex:
    """Batch-wide registry of type declarations.

    Usage:
        index = TypeIndex(resolver)
        index.register(parsed)
        members = index.members(props_type_node, parsed.file_path)
    """

    def __init__(self, resolver: ModuleResolver | None = None):
        self._resolver = resolver
        self._modules: dict[str, ModuleTypes] = {}

    def __contains__(self, file_path: str) -> bool:
        return file_path in self._modules

    def clear(self) -> None:
        """Forget every registered module."""
        self._modules.clear()

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, parsed: ParsedFile) -> ModuleTypes:
        """Record the declarations, imports and re-exports of a parsed module."""
        existing = self._modules.get(parsed.file_path)
        if existing is not None:
            return existing

        module = ModuleTypes(file_path=parsed.file_path)
        self._modules[parsed.file_path] = module

        for statement in parsed.top_level_statements():
            if statement.type == "import_statement":
                self._register_import(module, statement)
                continue

            declaration = statement
            if statement.type == "export_statement":
                source = statement.child_by_field("source")
                if source is not None:
                    self._register_reexport(module, statement, _string_value(source))
                    continue
                declaration = statement.child_by_field("declaration")

            if declaration is not None and declaration.type in _DECLARATION_TYPES:
                name = declaration.child_by_field("name")
                if name is not None:
                    module.declarations.setdefault(name.text, declaration)

        return module

    def _register_import(self, module: ModuleTypes, statement: ASTNode) -> None:
        source = statement.child_by_field("source")
        if source is None:
            return
        specifier = _string_value(source)
        for clause in statement.find_children("import_clause"):
            for child in clause.named_children:
                if child.type == "identifier":
                    module.imports[child.text] = (specifier, "default")
                elif child.type == "namespace_import":
                    for ident in child.find_children("identifier"):
                        module.imports[ident.text] = (specifier, "*")
                elif child.type == "named_imports":
                    for spec in child.find_children("import_specifier"):
                        name = spec.child_by_field("name")
                        alias = spec.child_by_field("alias")
                        if name is not None:
                            local = alias.text if alias is not None else name.text
                            module.imports[local] = (specifier, name.text)

    def _register_reexport(self, module: ModuleTypes, statement: ASTNode, specifier: str) -> None:
        clauses = statement.find_children("export_clause")
        if not clauses:
            if any(c.type == "*" for c in statement.children):
                module.star_reexports.append(specifier)
            return
        for spec in clauses[0].find_children("export_specifier"):
            name = spec.child_by_field("name")
            alias = spec.child_by_field("alias")
            if name is not None:
                exported = alias.text if alias is not None else name.text
                module.reexports[exported] = (specifier, name.text)

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, name: str, file_path: str) -> tuple[ASTNode, str] | None:
        """Find the declaration of a type name as seen from ``file_path``.

        Returns:
            (declaration node, file it lives in), or None
        """
        found = self._lookup_in_module(name, file_path, set())
        if found is not None:
            return found

        origin = self._modules.get(file_path)
        if origin is not None and name in origin.imports:
            # Imported from a package (or an unresolvable path): not ours to guess
            return None
        for path, module in self._modules.items():
            if name in module.declarations:
                return module.declarations[name], path
        return None

    def _lookup_in_module(self, name: str, file_path: str, visited: set) -> tuple[ASTNode, str] | None:
        if (name, file_path) in visited:
            return None
        visited.add((name, file_path))

        module = self._modules.get(file_path)
        if module is None:
            return None
        if name in module.declarations:
            return module.declarations[name], file_path

        if name in module.imports:
            specifier, imported = module.imports[name]
            target = self._resolve(specifier, file_path)
            if target is not None and imported not in ("*", "default"):
                return self._lookup_in_module(imported, target, visited)
            return None

        if name in module.reexports:
            specifier, original = module.reexports[name]
            target = self._resolve(specifier, file_path)
            if target is not None:
                return self._lookup_in_module(original, target, visited)

        for specifier in module.star_reexports:
            target = self._resolve(specifier, file_path)
            if target is not None:
                found = self._lookup_in_module(name, target, visited)
                if found is not None:
                    return found
        return None

    def _lookup_qualified(self, qualifier: str, name: str, file_path: str) -> tuple[ASTNode, str] | None:
        """Resolve ``ns.Name`` where ``ns`` is a namespace import."""
        module = self._modules.get(file_path)
        if module is not None and qualifier in module.imports:
            specifier, imported = module.imports[qualifier]
            if imported == "*":
                target = self._resolve(specifier, file_path)
                if target is not None:
                    return self._lookup_in_module(name, target, set())
        return None

    def _resolve(self, specifier: str, from_file: str) -> str | None:
        if self._resolver is None:
            return None
        parsed = self._resolver(specifier, from_file)
        if parsed is None:
            return None
        self.register(parsed)
        return parsed.file_path

    def _lookup_reference(self, node: ASTNode, file_path: str) -> tuple[ASTNode, str] | None:
        if node.type == "nested_type_identifier":
            parts = node.text.split(".")
            found = self._lookup_qualified(parts[0], parts[-1], file_path) if len(parts) == 2 else None
            return found
        return self.lookup(node.text, file_path)

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def members(self, type_node: ASTNode | None, file_path: str, _seen: frozenset = frozenset()) -> list[MemberInfo]:
        """Ordered properties of an object-like type."""
        node = unwrap_type(type_node)
        if node is None:
            return []

        if node.type in ("object_type", "interface_body"):
            return self._object_members(node, file_path)

        if node.type == "intersection_type":
            merged: list[MemberInfo] = []
            for part in node.named_children:
                merged = _merge_members(merged, self.members(part, file_path, _seen))
            return merged

        if node.type == "union_type":
            return self._union_members(node, file_path, _seen)

        if node.type in ("type_identifier", "nested_type_identifier"):
            return self._reference_members(node, file_path, _seen)

        if node.type == "generic_type":
            return self._generic_members(node, file_path, _seen)

        return []

    def _reference_members(self, node: ASTNode, file_path: str, seen: frozenset) -> list[MemberInfo]:
        found = self._lookup_reference(node, file_path)
        if found is None:
            return []
        declaration, decl_file = found
        key = (decl_file, declaration.start_byte)
        if key in seen:
            return []
        return self._declaration_members(declaration, decl_file, seen | {key})

    def _generic_members(self, node: ASTNode, file_path: str, seen: frozenset) -> list[MemberInfo]:
        name_node = node.child_by_field("name") or (node.named_children[0] if node.named_children else None)
        if name_node is None:
            return []
        base = name_node.text.split(".")[-1]
        args_node = node.find_children("type_arguments")
        args = args_node[0].named_children if args_node else []
        first = args[0] if args else None

        if base in ("Partial",):
            return [_with_optional(m, True) for m in self.members(first, file_path, seen)]
        if base in ("Required",):
            return [_with_optional(m, False) for m in self.members(first, file_path, seen)]
        if base in ("Readonly",):
            return self.members(first, file_path, seen)
        if base in ("Pick", "Omit") and len(args) >= 2:
            keys = set(literal_names(args[1]))
            members = self.members(first, file_path, seen)
            if base == "Pick":
                return [m for m in members if m.name in keys]
            return [m for m in members if m.name not in keys]
        if base == "PropsWithChildren":
            children = MemberInfo("children", "ReactNode", optional=True, kind=TypeKind.NODE)
            return _merge_members(self.members(first, file_path, seen), [children])

        return self._reference_members(name_node, file_path, seen)

    def _union_members(self, node: ASTNode, file_path: str, seen: frozenset) -> list[MemberInfo]:
        alternatives = [self.members(part, file_path, seen) for part in _flatten(node, "union_type")]
        alternatives = [alt for alt in alternatives if alt]
        if not alternatives:
            return []
        merged: list[MemberInfo] = []
        for alt in alternatives:
            merged = _merge_members(merged, alt)
        result = []
        for member in merged:
            in_all = all(any(m.name == member.name and not m.optional for m in alt) for alt in alternatives)
            result.append(_with_optional(member, not in_all))
        return result

    def _declaration_members(self, declaration: ASTNode, file_path: str, seen: frozenset) -> list[MemberInfo]:
        if declaration.type == "type_alias_declaration":
            return self.members(declaration.child_by_field("value"), file_path, seen)

        body = declaration.child_by_field("body")
        own = self._object_members(body, file_path) if body is not None else []
        inherited: list[MemberInfo] = []
        for clause in declaration.find_children("extends_type_clause", "extends_clause"):
            for base in clause.named_children:
                inherited = _merge_members(inherited, self.members(base, file_path, seen))
        return own + [m for m in inherited if all(o.name != m.name for o in own)]

    def _object_members(self, body: ASTNode, file_path: str) -> list[MemberInfo]:
        members: list[MemberInfo] = []
        for child in body.named_children:
            name_node = child.child_by_field("name")
            if name_node is None:
                continue
            name = _string_value(name_node)
            optional = child.has_child_type("?")

            if child.type == "property_signature":
                type_node = unwrap_type(child.child_by_field("type"))
                if type_node is None:
                    members.append(MemberInfo(name, "any", optional, TypeKind.UNKNOWN))
                    continue
                members.append(MemberInfo(
                    name=name,
                    type_text=self.render(type_node, file_path),
                    optional=optional,
                    kind=self.classify(type_node, file_path),
                ))
            elif child.type == "method_signature":
                params = child.child_by_field("parameters")
                returns = unwrap_type(child.child_by_field("return_type"))
                signature = f"{params.text if params else '()'} => {returns.text if returns else 'void'}"
                members.append(MemberInfo(name, normalize_type_text(signature), optional, TypeKind.CALLABLE))
        return members

    # =========================================================================
    # RENDERING & CLASSIFICATION
    # =========================================================================

    def render(self, type_node: ASTNode | None, file_path: str, _depth: int = 0) -> str:
        """Printable type text, expanding aliases of non-object types."""
        node = unwrap_type(type_node)
        if node is None:
            return "any"
        if _depth > 8:
            return normalize_type_text(node.text)

        if node.type == "union_type":
            return " | ".join(self.render(part, file_path, _depth + 1) for part in _flatten(node, "union_type"))

        if node.type == "type_identifier":
            found = self.lookup(node.text, file_path)
            if found is not None:
                declaration, decl_file = found
                if declaration.type == "type_alias_declaration":
                    value = unwrap_type(declaration.child_by_field("value"))
                    if value is not None and value.type not in _OBJECT_LIKE:
                        return self.render(value, decl_file, _depth + 1)

        return normalize_type_text(node.text)

    def classify(self, type_node: ASTNode | None, file_path: str, _depth: int = 0) -> TypeKind:
        """Structural shape of a type node."""
        node = unwrap_type(type_node)
        if node is None or _depth > 8:
            return TypeKind.UNKNOWN

        kind = node.type
        if kind in ("function_type", "constructor_type"):
            return TypeKind.CALLABLE
        if kind in ("array_type", "tuple_type"):
            return TypeKind.ARRAY
        if kind in ("object_type", "intersection_type"):
            if node.named_children and all(c.type == "call_signature" for c in node.named_children):
                return TypeKind.CALLABLE
            return TypeKind.OBJECT
        if kind == "template_literal_type":
            return TypeKind.STRING
        if kind in ("predefined_type", "literal_type"):
            return TypeKind.from_text(node.text)

        if kind == "union_type":
            kinds = [
                self.classify(part, file_path, _depth + 1)
                for part in _flatten(node, "union_type")
                if part.text not in ("undefined", "null")
            ]
            if not kinds:
                return TypeKind.UNKNOWN
            if TypeKind.NODE in kinds:
                return TypeKind.NODE
            if len(set(kinds)) == 1:
                return kinds[0]
            return TypeKind.from_text(self.render(node, file_path))

        if kind in ("type_identifier", "nested_type_identifier", "generic_type"):
            name_node = node.child_by_field("name") if kind == "generic_type" else node
            if name_node is None:
                return TypeKind.UNKNOWN
            base = name_node.text.split(".")[-1]
            if base in NODE_TYPE_NAMES:
                return TypeKind.NODE
            if base in ARRAY_TYPE_NAMES:
                return TypeKind.ARRAY
            if base in CALLABLE_TYPE_NAMES or base.endswith("Handler"):
                return TypeKind.CALLABLE
            if base in OBJECT_TYPE_NAMES:
                return TypeKind.OBJECT
            found = self._lookup_reference(name_node, file_path)
            if found is None:
                return TypeKind.UNKNOWN
            declaration, decl_file = found
            if declaration.type == "interface_declaration":
                body = declaration.child_by_field("body")
                if body is not None and body.named_children and all(
                    c.type == "call_signature" for c in body.named_children
                ):
                    return TypeKind.CALLABLE
                return TypeKind.OBJECT
            return self.classify(declaration.child_by_field("value"), decl_file, _depth + 1)

        return TypeKind.from_text(node.text)


def _flatten(node: ASTNode, node_type: str) -> list[ASTNode]:
    """Flatten left-nested binary type nodes (``a | b | c``)."""
    parts: list[ASTNode] = []
    stack = list(reversed(node.named_children))
    while stack:
        child = stack.pop()
        if child.type == node_type:
            stack.extend(reversed(child.named_children))
        else:
            parts.append(child)
    return parts


def _with_optional(member: MemberInfo, optional: bool) -> MemberInfo:
    return MemberInfo(member.name, member.type_text, optional, member.kind)


_LOOSE_TYPE_TEXTS = {"any", "unknown"}


def _is_more_specific(member: MemberInfo, existing: MemberInfo) -> bool:
    if existing.kind is TypeKind.UNKNOWN and member.kind is not TypeKind.UNKNOWN:
        return True
    return existing.type_text in _LOOSE_TYPE_TEXTS and member.type_text not in _LOOSE_TYPE_TEXTS


def _merge_members(first: list[MemberInfo], second: list[MemberInfo]) -> list[MemberInfo]:
    """Merge as an intersection, keeping first-seen order.

    A property is optional only if every declaration of it is optional, and a
    more specific type replaces a less specific one.
    """
    merged = list(first)
    for member in second:
        for i, existing in enumerate(merged):
            if existing.name == member.name:
                typed = member if _is_more_specific(member, existing) else existing
                merged[i] = MemberInfo(
                    existing.name, typed.type_text, existing.optional and member.optional, typed.kind
                )
                break
        else:
            merged.append(member)
    return merged
