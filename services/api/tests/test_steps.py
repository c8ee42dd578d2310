"""
Tests for ordered step lists and tag lists.

Run with: pytest tests/test_steps.py -v
"""
from form.steps import StepList, TagList


class TestReorder:
    """Drag-and-drop and boundary moves."""

    def test_move_to_first_then_last_is_one_way(self):
        """N=3, k=1: moveToFirst(1) then moveToLast(0) gives [a, c, b]."""
        steps = StepList(["a", "b", "c"])
        assert steps.move_to_first(1)
        assert steps.items == ("b", "a", "c")
        assert steps.move_to_last(0)
        assert steps.items == ("a", "c", "b")

    def test_boundary_moves_are_noops(self):
        steps = StepList(["a", "b", "c"])
        assert steps.move_to_first(0) is False
        assert steps.move_to_last(2) is False
        assert steps.items == ("a", "b", "c")

    def test_reorder_same_index_noop(self):
        steps = StepList(["a", "b"])
        assert steps.reorder(1, 1) is False
        assert steps.items == ("a", "b")

    def test_reorder_remove_then_insert(self):
        steps = StepList(["a", "b", "c", "d"])
        assert steps.reorder(0, 2)
        assert steps.items == ("b", "c", "a", "d")
        assert steps.reorder(3, 1)
        assert steps.items == ("b", "d", "c", "a")

    def test_reorder_out_of_range(self):
        steps = StepList(["a", "b"])
        assert steps.reorder(0, 5) is False
        assert steps.reorder(-1, 0) is False


class TestAddRemove:
    def test_add_trims_and_skips_blank(self):
        steps = StepList()
        assert steps.add("  Inspect roof  ")
        assert steps.add("   ") is False
        assert steps.items == ("Inspect roof",)

    def test_remove(self):
        steps = StepList(["a", "b", "c"])
        assert steps.remove(1)
        assert steps.items == ("a", "c")
        assert steps.remove(9) is False


class TestInlineEdit:
    """Inline edit buffer: trim on save, discard on cancel."""

    def test_save_trims(self):
        steps = StepList(["a", "b"])
        steps.begin_inline_edit(1)
        steps.update_inline_text("  new b  ")
        assert steps.save_inline_edit()
        assert steps.items == ("a", "new b")
        assert steps.inline_index is None

    def test_cancel_discards(self):
        steps = StepList(["a", "b"])
        steps.begin_inline_edit(0)
        steps.update_inline_text("changed")
        steps.cancel_inline_edit()
        assert steps.items == ("a", "b")

    def test_blank_save_keeps_original(self):
        steps = StepList(["a"])
        steps.begin_inline_edit(0)
        steps.update_inline_text("   ")
        assert steps.save_inline_edit() is False
        assert steps.items == ("a",)

    def test_edit_follows_reordered_step(self):
        steps = StepList(["a", "b", "c"])
        steps.begin_inline_edit(0)
        steps.update_inline_text("A")
        steps.move_to_last(0)
        steps.save_inline_edit()
        assert steps.items == ("b", "c", "A")

    def test_removing_edited_step_cancels_edit(self):
        steps = StepList(["a", "b"])
        steps.begin_inline_edit(1)
        steps.remove(1)
        assert steps.inline_index is None
        assert steps.save_inline_edit() is False

    def test_update_without_begin(self):
        steps = StepList(["a"])
        assert steps.update_inline_text("x") is False


class TestTagList:
    """Brands / certifications."""

    def test_trimmed_and_deduplicated(self):
        tags = TagList()
        assert tags.add(" GAF ")
        assert tags.add("GAF") is False
        assert tags.add("") is False
        assert tags.add("Owens Corning")
        assert tags.items == ("GAF", "Owens Corning")

    def test_remove(self):
        tags = TagList(["GAF", "CertainTeed"])
        assert tags.remove(0)
        assert tags.items == ("CertainTeed",)
        assert tags.remove(4) is False
