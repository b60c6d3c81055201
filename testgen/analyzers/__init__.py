"""Component analysis - what a generated test needs to know about a component."""

from .base import (
    ComponentInfo,
    ConditionalElementInfo,
    ElementKind,
    ExportKind,
    InteractiveElementInfo,
    PropInfo,
    SelectorInfo,
    SelectorStrategy,
    TypeKind,
)
from .frontend import ComponentAnalyzer
from .selectors import AttributeBag, derive_selector

__all__ = [
    # Analyzer
    "ComponentAnalyzer",
    # Data model
    "ComponentInfo",
    "PropInfo",
    "InteractiveElementInfo",
    "ConditionalElementInfo",
    "SelectorInfo",
    "SelectorStrategy",
    "ElementKind",
    "ExportKind",
    "TypeKind",
    # Selector strategy
    "AttributeBag",
    "derive_selector",
]
