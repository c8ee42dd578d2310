# services/api/form/sections.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Section:
    """
    One optional form section.

    `visible` is presentation, `included` is submission semantics. They move
    together on toggle except for sticky sections, whose inclusion survives
    a hide.
    """
    key: str
    flag: str
    parent: Optional[str] = None
    sticky: bool = False
    visible: bool = False
    included: bool = False


# (key, payload flag, parent, sticky)
SECTION_TREE: Tuple[Tuple[str, str, Optional[str], bool], ...] = (
    ("license", "has_license", None, False),
    ("emergency_services", "has_emergency_services", None, False),
    ("emergency_phone", "has_emergency_phone", "emergency_services", False),
    ("about", "enable_about_modifications", None, True),
    ("warranty", "has_warranty", None, False),
    ("insurance", "has_insurance", None, False),
    ("financing_options", "has_financing_options", None, False),
    ("storm_services", "has_storm_services", None, False),
    ("brands", "has_brands_worked_with", None, False),
    ("certifications", "has_certifications", None, False),
    ("installation_process", "has_installation_process", None, False),
    ("maintenance_guide", "has_maintenance_guide", None, False),
    ("roof_materials", "has_roof_materials", None, False),
    ("additional_notes", "has_additional_notes", None, False),
)


class SectionController:
    """
    Visibility / inclusion flags for every optional section.

    Effective state is the AND of a section's own flag and all its
    ancestors'. Hiding never touches field data; it only changes what the
    assembler reads.
    """

    def __init__(self, tree: Iterable[Tuple[str, str, Optional[str], bool]] = SECTION_TREE):
        self._sections: Dict[str, Section] = {}
        for key, flag, parent, sticky in tree:
            if parent is not None and parent not in self._sections:
                raise ValueError(f"Section '{key}' declared before its parent '{parent}'")
            self._sections[key] = Section(key=key, flag=flag, parent=parent, sticky=sticky)

    def __contains__(self, key: str) -> bool:
        return key in self._sections

    def keys(self) -> List[str]:
        return list(self._sections)

    def get(self, key: str) -> Section:
        try:
            return self._sections[key]
        except KeyError:
            raise KeyError(f"Unknown section: {key}") from None

    def set_visible(self, key: str, visible: bool) -> None:
        section = self.get(key)
        section.visible = bool(visible)
        if visible:
            section.included = True
        elif not section.sticky:
            section.included = False
        logger.debug(f"section {key}: visible={section.visible} included={section.included}")

    def toggle(self, key: str) -> bool:
        """Flip visibility; returns the new value."""
        new_value = not self.get(key).visible
        self.set_visible(key, new_value)
        return new_value

    def ancestors(self, key: str) -> List[Section]:
        chain = []
        parent = self.get(key).parent
        while parent is not None:
            section = self._sections[parent]
            chain.append(section)
            parent = section.parent
        return chain

    def is_visible(self, key: str) -> bool:
        section = self.get(key)
        return section.visible and all(a.visible for a in self.ancestors(key))

    def is_included(self, key: str) -> bool:
        section = self.get(key)
        return section.included and all(a.included for a in self.ancestors(key))

    def flags(self) -> Dict[str, bool]:
        """Payload flags, one per section, using effective inclusion."""
        return {s.flag: self.is_included(s.key) for s in self._sections.values()}
