"""Test Scaffold Generator - analyzer output to one Jest test file.

Per component, scenarios are emitted in a fixed order:

    (a) render without crashing       (e) boolean prop variants
    (b) render with default props     (f) interactions
    (c) button / input presence       (g) snapshot
    (d) conditional renders

The minimal pass emits (a)-(c) and (g); the enriched pass emits everything.
"""

import json
from dataclasses import dataclass
from enum import IntEnum

from testgen.analyzers.base import ComponentInfo, ExportKind
from testgen.config import GENERATED_MARKER, Settings

from .interactions import interaction_cases
from .mocks import build_default_props, falsy_literal, mock_for, truthy_literal
from .render import conditional_cases, preamble, query_for, rendering_cases, snapshot_case, variant_cases
from .templates import ImportBlock, describe_block


class GenerationPass(IntEnum):
    """Scaffold richness."""
    MINIMAL = 1
    ENRICHED = 2


@dataclass(frozen=True)
class GenerationContext:
    """Everything about the target file the generator needs besides the components."""
    module_specifier: str
    marker: str = GENERATED_MARKER
    render_helper_module: str | None = None
    render_helper_name: str = "renderWithProviders"
    variants_enabled: bool = True
    max_presence_checks: int = 2

    @classmethod
    def from_settings(cls, settings: Settings, module_specifier: str) -> "GenerationContext":
        return cls(
            module_specifier=module_specifier,
            marker=settings.generated_marker,
            render_helper_module=settings.render_helper_module,
            render_helper_name=settings.render_helper_name,
            variants_enabled=settings.variants_enabled,
            max_presence_checks=settings.max_presence_checks,
        )

    @property
    def render_function(self) -> str:
        return self.render_helper_name if self.render_helper_module else "render"


class ScaffoldGenerator:
    """Assembles test file text from analyzed components.

    Usage:
        generator = ScaffoldGenerator(GenerationContext(module_specifier="../Button"))
        text = generator.generate(components, GenerationPass.MINIMAL)
    """

    def __init__(self, context: GenerationContext):
        self.context = context

    def generate(
        self,
        components: list[ComponentInfo],
        generation_pass: GenerationPass = GenerationPass.MINIMAL,
    ) -> str:
        """Generate complete test file text (marker line first, trailing newline)."""
        blocks = ["\n".join(self._component_block(c, generation_pass)) for c in components]
        body = "\n\n".join(blocks)

        parts = [
            self.context.marker,
            self._imports(components, uses_screen="screen." in body, uses_user_event="userEvent." in body),
            "",
            body,
        ]
        return "\n".join(parts) + "\n"

    def _imports(self, components: list[ComponentInfo], uses_screen: bool, uses_user_event: bool) -> str:
        imports = ImportBlock()
        imports.add("react", namespace="React")

        testing_library = [] if self.context.render_helper_module else ["render"]
        if uses_screen:
            testing_library.append("screen")
        imports.add("@testing-library/react", items=testing_library)

        if uses_user_event:
            imports.add("@testing-library/user-event", default="userEvent")
        if self.context.render_helper_module:
            imports.add(self.context.render_helper_module, items=[self.context.render_helper_name])

        default = next((c.name for c in components if c.export_kind is ExportKind.DEFAULT), None)
        named = list(dict.fromkeys(c.name for c in components if c.export_kind is ExportKind.NAMED))
        imports.add(self.context.module_specifier, items=named, default=default)

        return imports.render()

    def _component_block(self, component: ComponentInfo, generation_pass: GenerationPass) -> list[str]:
        enriched = generation_pass is GenerationPass.ENRICHED

        groups = [("Rendering", rendering_cases(component, 2, self.context.max_presence_checks))]
        if enriched:
            groups.append(("Conditional rendering", conditional_cases(component, 2)))
            if self.context.variants_enabled:
                groups.append(("Prop variants", variant_cases(component, 2)))
            groups.append(("User interactions", interaction_cases(component, 2)))
        groups.append(("Snapshot", [snapshot_case(2)]))

        lines = [f"describe({json.dumps(component.name)}, () => {{"]
        lines.extend(preamble(component, self.context.render_function, 1))
        for title, cases in groups:
            if cases:
                lines.append("")
                lines.extend(describe_block(title, cases, 1))
        lines.append("});")
        return lines


def generate_tests(
    components: list[ComponentInfo],
    context: GenerationContext,
    generation_pass: GenerationPass = GenerationPass.MINIMAL,
) -> str:
    """Generate one test file's text for the components of one source file."""
    return ScaffoldGenerator(context).generate(components, generation_pass)


__all__ = [
    "GenerationContext",
    "GenerationPass",
    "ScaffoldGenerator",
    "generate_tests",
    "build_default_props",
    "mock_for",
    "truthy_literal",
    "falsy_literal",
    "query_for",
]
