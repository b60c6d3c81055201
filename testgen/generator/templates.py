"""Text building blocks for generated Jest test files."""

import json
import re
from dataclasses import dataclass, field

INDENT = "  "

_REGEX_SPECIAL = re.compile(r"[.*+?^${}()|\[\]\\/]")


@dataclass
class ImportSpec:
    """One ES import statement."""

    module: str
    items: list[str] = field(default_factory=list)
    default: str | None = None
    namespace: str | None = None

    def render(self) -> str:
        if self.namespace:
            return f'import * as {self.namespace} from "{self.module}";'
        clauses = []
        if self.default:
            clauses.append(self.default)
        if self.items:
            clauses.append("{ " + ", ".join(self.items) + " }")
        return f'import {", ".join(clauses)} from "{self.module}";'


class ImportBlock:
    """Ordered, de-duplicated import statements of one generated file."""

    def __init__(self):
        self._imports: list[ImportSpec] = []

    def add(
        self,
        module: str,
        items: list[str] | None = None,
        default: str | None = None,
        namespace: str | None = None,
    ) -> None:
        """Add an import, merging named items into an existing one for the same module."""
        for spec in self._imports:
            if spec.module == module and spec.namespace is None and namespace is None:
                for item in items or []:
                    if item not in spec.items:
                        spec.items.append(item)
                spec.default = spec.default or default
                return
        self._imports.append(ImportSpec(module=module, items=list(items or []), default=default, namespace=namespace))

    def render(self) -> str:
        return "\n".join(spec.render() for spec in self._imports if spec.items or spec.default or spec.namespace)


def escape_string(value: str | None) -> str:
    """Escape text for a double-quoted JavaScript string literal."""
    if value is None:
        return ""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def quote(value: str) -> str:
    return f'"{escape_string(value)}"'


def regex_literal(value: str) -> str:
    """Case-insensitive regular expression literal matching ``value`` verbatim."""
    escaped = _REGEX_SPECIAL.sub(r"\\\g<0>", value)
    return f"/{escaped}/i"


def object_literal(entries: list[tuple[str, str]], depth: int) -> str:
    """``{ key: value, ... }`` spread over lines at the given indent depth."""
    if not entries:
        return "{}"
    inner = INDENT * (depth + 1)
    body = ",\n".join(f"{inner}{key}: {value}" for key, value in entries)
    return "{\n" + body + ",\n" + INDENT * depth + "}"


def inline_object(entries: list[tuple[str, str]]) -> str:
    """``{ key: value }`` on one line."""
    if not entries:
        return "{}"
    return "{ " + ", ".join(f"{key}: {value}" for key, value in entries) + " }"


def it_block(title: str, body: list[str], depth: int, is_async: bool = False) -> list[str]:
    """An ``it(...)`` block; ``body`` lines are indented one level deeper."""
    pad = INDENT * depth
    arrow = "async () =>" if is_async else "() =>"
    lines = [f"{pad}it({quote(title)}, {arrow} {{"]
    lines.extend(f"{pad}{INDENT}{line}" for line in body)
    lines.append(f"{pad}}});")
    return lines


def describe_block(title: str, cases: list[list[str]], depth: int) -> list[str]:
    """A ``describe(...)`` block holding already-rendered cases separated by blank lines."""
    pad = INDENT * depth
    lines = [f"{pad}describe({json.dumps(title)}, () => {{"]
    for i, case in enumerate(cases):
        if i:
            lines.append("")
        lines.extend(case)
    lines.append(f"{pad}}});")
    return lines
