# services/api/form/steps.py
from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class StepList:
    """
    Ordered list of free-text steps (installation steps, maintenance tips,
    warranty terms).

    Supports append, remove, drag-and-drop reorder, move-to-first/last and
    an inline edit buffer that is separate from any record draft. `items`
    is always a fresh tuple, never mutated in place.
    """

    def __init__(self, items: Iterable[str] = ()):
        self.items: Tuple[str, ...] = tuple(items)
        self.inline_index: Optional[int] = None
        self.inline_text: str = ""

    def __len__(self) -> int:
        return len(self.items)

    def add(self, text: str) -> bool:
        value = (text or "").strip()
        if not value:
            return False
        self.items = self.items + (value,)
        return True

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        self.items = self.items[:index] + self.items[index + 1:]
        if self.inline_index is not None:
            if self.inline_index == index:
                self.cancel_inline_edit()
            elif self.inline_index > index:
                self.inline_index -= 1
        return True

    def reorder(self, from_index: int, to_index: int) -> bool:
        """Drag-and-drop move: remove at `from_index`, insert at `to_index`."""
        n = len(self.items)
        if from_index == to_index:
            return False
        if not (0 <= from_index < n and 0 <= to_index < n):
            logger.debug(f"reorder {from_index}->{to_index} out of range ({n})")
            return False
        items = list(self.items)
        moved = items.pop(from_index)
        items.insert(to_index, moved)
        self.items = tuple(items)
        # an open inline edit follows its step
        if self.inline_index is not None:
            self.inline_index = self._shifted(self.inline_index, from_index, to_index)
        return True

    def move_to_first(self, index: int) -> bool:
        if index == 0:
            return False
        return self.reorder(index, 0)

    def move_to_last(self, index: int) -> bool:
        if index == len(self.items) - 1:
            return False
        return self.reorder(index, len(self.items) - 1)

    # ---------- inline edit ----------

    def begin_inline_edit(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        self.inline_index = index
        self.inline_text = self.items[index]
        return True

    def update_inline_text(self, text: str) -> bool:
        if self.inline_index is None:
            return False
        self.inline_text = text
        return True

    def save_inline_edit(self) -> bool:
        """
        Write the trimmed buffer back. A blank buffer is discarded and the
        original step kept.
        """
        if self.inline_index is None:
            return False
        index, value = self.inline_index, self.inline_text.strip()
        self.cancel_inline_edit()
        if not value:
            return False
        self.items = self.items[:index] + (value,) + self.items[index + 1:]
        return True

    def cancel_inline_edit(self) -> None:
        self.inline_index = None
        self.inline_text = ""

    @staticmethod
    def _shifted(position: int, from_index: int, to_index: int) -> int:
        if position == from_index:
            return to_index
        if from_index < position <= to_index:
            return position - 1
        if to_index <= position < from_index:
            return position + 1
        return position


class TagList:
    """Trimmed, de-duplicated strings (brands, certifications)."""

    def __init__(self, items: Iterable[str] = ()):
        self.items: Tuple[str, ...] = ()
        for item in items:
            self.add(item)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, value: str) -> bool:
        return value in self.items

    def add(self, text: str) -> bool:
        value = (text or "").strip()
        if not value or value in self.items:
            return False
        self.items = self.items + (value,)
        return True

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        self.items = self.items[:index] + self.items[index + 1:]
        return True
