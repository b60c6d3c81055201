"""Tests for the selector strategy."""

import pytest

from testgen.analyzers.base import ElementKind, SelectorStrategy
from testgen.analyzers.selectors import AttributeBag, derive_selector, normalize_text, structural_role


class TestAttributeBag:
    """Test AttributeBag lookups."""

    def test_missing_key_is_none(self):
        bag = AttributeBag({"id": "email"})
        assert bag.get("placeholder") is None
        assert bag.text("placeholder", "aria-label") is None

    def test_text_skips_blank_and_boolean(self):
        bag = AttributeBag({"aria-label": "   ", "disabled": True, "title": " Save "})
        assert bag.text("aria-label", "disabled", "title") == "Save"

    def test_dynamic_attributes(self):
        bag = AttributeBag({"type": "text"}, dynamic={"value"})
        assert "value" in bag
        assert bag.get("value") is None


class TestDeriveSelector:
    """Test selector derivation priority."""

    def test_test_id_beats_accessible_label(self):
        """Test that a test-id always wins over aria-label."""
        bag = AttributeBag({"data-testid": "delete-btn", "aria-label": "Delete transaction"})

        selector = derive_selector(bag, "Delete", ElementKind.BUTTON)

        assert selector.strategy == SelectorStrategy.TEST_ID
        assert selector.value == "delete-btn"

    def test_aria_label_button_without_text(self):
        """Test <button aria-label="Delete transaction"> with no text."""
        bag = AttributeBag({"aria-label": "Delete transaction"})

        selector = derive_selector(bag, "", ElementKind.BUTTON, tag="button")

        assert selector.strategy == SelectorStrategy.ACCESSIBLE_LABEL
        assert selector.value == "Delete transaction"

    def test_associated_label(self):
        selector = derive_selector(AttributeBag({"id": "amount"}), None, ElementKind.INPUT, label="Amount ")
        assert selector.strategy == SelectorStrategy.ACCESSIBLE_LABEL
        assert selector.value == "Amount"

    def test_visible_text_for_buttons(self):
        selector = derive_selector(AttributeBag(), "  Save\n  changes ", ElementKind.BUTTON)
        assert selector.strategy == SelectorStrategy.VISIBLE_TEXT
        assert selector.value == "Save changes"

    def test_placeholder_for_inputs(self):
        selector = derive_selector(AttributeBag({"placeholder": "Search"}), None, ElementKind.INPUT)
        assert selector.strategy == SelectorStrategy.PLACEHOLDER
        assert selector.value == "Search"

    def test_text_ignored_for_inputs(self):
        """Test that inputs never use visible text."""
        selector = derive_selector(AttributeBag(), "Pick one", ElementKind.INPUT, tag="select")
        assert selector.strategy == SelectorStrategy.STRUCTURAL_ROLE
        assert selector.role == "combobox"

    @pytest.mark.parametrize("input_type,role", [
        ("checkbox", "checkbox"),
        ("radio", "radio"),
        ("number", "spinbutton"),
        ("email", "textbox"),
        (None, "textbox"),
    ])
    def test_structural_input_roles(self, input_type, role):
        attrs = {"type": input_type} if input_type else {}
        selector = derive_selector(AttributeBag(attrs), None, ElementKind.INPUT, tag="input")
        assert selector.is_structural
        assert selector.value == role

    def test_explicit_role_wins_fallback(self):
        selector = derive_selector(AttributeBag({"role": "switch"}), None, ElementKind.GENERIC)
        assert selector.value == "switch"

    def test_total_on_empty_input(self):
        """Test that derivation never fails, even with nothing to go on."""
        for kind in ElementKind:
            selector = derive_selector(None, None, kind)
            assert selector is not None
            assert selector.strategy == SelectorStrategy.STRUCTURAL_ROLE


class TestHelpers:

    def test_normalize_text(self):
        assert normalize_text(" a \n\t b ") == "a b"
        assert normalize_text(None) == ""

    def test_structural_role_generic(self):
        assert structural_role(ElementKind.GENERIC) == "generic"
        assert structural_role(ElementKind.BUTTON) == "button"
