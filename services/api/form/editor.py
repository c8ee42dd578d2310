# services/api/form/editor.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar

from .attachments import LocalImage
from .records import InstallationService, Record
from .steps import StepList

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class RecordEditor(Generic[R]):
    """
    Create / edit / delete lifecycle for one repeated entity type.

    State:
      - items:          committed list (order = insertion order)
      - draft:          staging record for the open dialog
      - editing_index:  set while editing an existing entry, None while creating
      - error:          last confirm() failure message, None when clean

    User mistakes never raise: operations return False and leave state as is.
    """

    def __init__(self, record_type: Type[R], label: Optional[str] = None):
        self.record_type = record_type
        self.label = label or record_type.__name__
        self.items: List[R] = []
        self.draft: R = record_type()
        self.editing_index: Optional[int] = None
        self.is_open = False
        self.error: Optional[str] = None

    # ---------- dialog lifecycle ----------

    def open_for_create(self) -> None:
        self._load_draft(self.record_type())
        self.editing_index = None
        self.is_open = True
        self.error = None

    def open_for_edit(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            logger.debug(f"{self.label}: edit index {index} out of range ({len(self.items)})")
            return False
        # the committed entry changes only on confirm()
        self._load_draft(self.items[index].clone())
        self.editing_index = index
        self.is_open = True
        self.error = None
        return True

    def update_draft_field(self, field: str, value: Any) -> bool:
        """Set one draft field. No validation happens here."""
        if field not in self.draft.field_names() or field in self.record_type.ATTACHMENTS:
            logger.warning(f"{self.label}: unknown or non-editable field '{field}'")
            return False
        self.draft = replace(self.draft, **{field: value})
        return True

    @property
    def can_confirm(self) -> bool:
        return not self._current_draft().missing_required()

    def confirm(self) -> bool:
        """
        Commit the draft: replace the edited entry, or append a new one.
        Keeps the dialog open and records `error` when required fields are blank.
        """
        draft = self._current_draft()
        missing = draft.missing_required()
        if missing:
            self.error = f"Required fields missing: {', '.join(missing)}"
            logger.debug(f"{self.label}: confirm rejected ({self.error})")
            return False

        if self.editing_index is not None and 0 <= self.editing_index < len(self.items):
            updated = list(self.items)
            updated[self.editing_index] = draft.clone()
            self.items = updated
        else:
            self.items = [*self.items, draft.clone()]

        self._load_draft(self.record_type())
        self.editing_index = None
        self.is_open = False
        self.error = None
        return True

    def cancel(self) -> None:
        """Discard the draft and close the dialog."""
        self._load_draft(self.record_type())
        self.editing_index = None
        self.is_open = False
        self.error = None

    # ---------- committed list ----------

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self.items):
            return False
        self.items = [item for i, item in enumerate(self.items) if i != index]

        # keep the edit target pointing at the same record
        if self.editing_index is not None:
            if self.editing_index == index:
                # target is gone: a later confirm() appends instead
                self.editing_index = None
            elif self.editing_index > index:
                self.editing_index -= 1
        return True

    # ---------- draft attachments ----------

    def add_attachment(self, files: Iterable[LocalImage], slot: str = "pictures") -> bool:
        if slot not in self.record_type.ATTACHMENTS:
            logger.warning(f"{self.label}: no attachment slot '{slot}'")
            return False
        current = getattr(self.draft, slot)
        self.draft = replace(self.draft, **{slot: current.appended(files)})
        return True

    def remove_attachment(self, index: int, slot: str = "pictures") -> bool:
        if slot not in self.record_type.ATTACHMENTS:
            logger.warning(f"{self.label}: no attachment slot '{slot}'")
            return False
        remaining = getattr(self.draft, slot).without(index)
        if remaining is None:
            return False
        self.draft = replace(self.draft, **{slot: remaining})
        return True

    # ---------- hooks ----------

    def _load_draft(self, record: R) -> None:
        self.draft = record

    def _current_draft(self) -> R:
        return self.draft


class InstallationServiceEditor(RecordEditor[InstallationService]):
    """
    Record editor whose draft carries an ordered step list.

    `steps` is edited through its own StepList (reorder, inline edit) and is
    folded back into the draft on confirm().
    """

    def __init__(self, label: Optional[str] = "Installation process"):
        self.steps = StepList()
        super().__init__(InstallationService, label)

    def update_draft_field(self, field: str, value: Any) -> bool:
        if field == "steps":
            steps = StepList()
            # a bare string is one step, not one step per character
            for text in ([value] if isinstance(value, str) else value or ()):
                steps.add(text)
            self.steps = steps
            return True
        return super().update_draft_field(field, value)

    def _load_draft(self, record: InstallationService) -> None:
        self.draft = record
        self.steps = StepList(record.steps)

    def _current_draft(self) -> InstallationService:
        self.draft = replace(self.draft, steps=self.steps.items)
        return self.draft
