"""
Tests for the conditional section controller.

Run with: pytest tests/test_sections.py -v
"""
import pytest

from form.sections import SectionController
from form.session import FormSession


class TestToggle:
    def test_initially_hidden(self):
        sections = SectionController()
        for key in sections.keys():
            assert sections.is_visible(key) is False
            assert sections.is_included(key) is False
        assert not any(sections.flags().values())

    def test_toggle_moves_both_flags(self):
        sections = SectionController()
        assert sections.toggle("warranty") is True
        assert sections.is_visible("warranty")
        assert sections.is_included("warranty")
        assert sections.toggle("warranty") is False
        assert not sections.is_included("warranty")

    def test_sticky_about_keeps_inclusion(self):
        """Showing About sets the modifications flag; hiding does not reset it."""
        sections = SectionController()
        sections.set_visible("about", True)
        sections.set_visible("about", False)
        assert sections.is_visible("about") is False
        assert sections.is_included("about") is True
        assert sections.flags()["enable_about_modifications"] is True

    def test_unknown_section(self):
        with pytest.raises(KeyError):
            SectionController().toggle("nope")


class TestCascade:
    """Child effective state is the AND over the chain."""

    def test_child_needs_parent(self):
        sections = SectionController()
        sections.set_visible("emergency_phone", True)
        assert sections.is_visible("emergency_phone") is False
        assert sections.is_included("emergency_phone") is False

        sections.set_visible("emergency_services", True)
        assert sections.is_visible("emergency_phone") is True
        assert sections.flags()["has_emergency_phone"] is True

    def test_hiding_parent_hides_child_but_keeps_its_flag(self):
        sections = SectionController()
        sections.set_visible("emergency_services", True)
        sections.set_visible("emergency_phone", True)
        sections.set_visible("emergency_services", False)

        assert sections.is_visible("emergency_phone") is False
        assert sections.get("emergency_phone").visible is True

        sections.set_visible("emergency_services", True)
        assert sections.is_visible("emergency_phone") is True

    def test_parent_must_be_declared_first(self):
        with pytest.raises(ValueError):
            SectionController([("child", "has_child", "parent", False)])


class TestRetainOnHide:
    """Hiding a section never erases what was typed."""

    def test_emergency_phone_value_survives(self):
        session = FormSession()
        session.sections.toggle("emergency_services")
        session.sections.toggle("emergency_phone")
        session.set_field("emergency_phone", "555-0100")

        session.sections.toggle("emergency_services")
        assert session.values["emergency_phone"] == "555-0100"
        assert session.is_field_active("emergency_phone") is False

        session.sections.toggle("emergency_services")
        assert session.is_field_active("emergency_phone") is True
        assert session.values["emergency_phone"] == "555-0100"

    def test_records_survive_hide(self):
        session = FormSession()
        session.sections.toggle("financing_options")
        editor = session.financing_options
        editor.open_for_create()
        editor.update_draft_field("name", "Plan A")
        editor.update_draft_field("description", "12 months")
        editor.confirm()

        session.sections.toggle("financing_options")
        assert len(editor.items) == 1
