# services/api/form/records.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar, Dict, List, Tuple

from .attachments import EMPTY, AttachmentSet


class Record:
    """
    Mixin for repeated form entities (services, projects, ...).

    Subclasses are dataclasses whose fields are all immutable values
    (str, bool, tuple, AttachmentSet), so a shallow `replace()` is a full
    independent copy.
    """

    # Fields that must be non-blank after strip() before confirm()
    REQUIRED: ClassVar[Tuple[str, ...]] = ()
    # attachment field -> payload key holding the resolved URLs
    ATTACHMENTS: ClassVar[Dict[str, str]] = {}

    def clone(self):
        return replace(self)

    def field_names(self) -> List[str]:
        return [f.name for f in fields(self)]

    def missing_required(self) -> List[str]:
        missing = []
        for name in self.REQUIRED:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                missing.append(name)
        return missing

    def active_slots(self) -> Tuple[str, ...]:
        """Attachment slots whose pictures are meaningful for this record."""
        return tuple(self.ATTACHMENTS)

    def attachment_sets(self) -> Dict[str, AttachmentSet]:
        return {slot: getattr(self, slot) for slot in self.active_slots()}

    def to_payload(self, urls: Dict[str, List[str]]) -> Dict[str, Any]:
        """
        Payload dict for this record. `urls` maps attachment slot -> hosted
        URLs; inactive or unresolved slots become empty lists.
        """
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self.ATTACHMENTS:
                out[self.ATTACHMENTS[f.name]] = list(urls.get(f.name, []))
            elif isinstance(value, str):
                out[f.name] = value.strip()
            elif isinstance(value, tuple):
                out[f.name] = list(value)
            else:
                out[f.name] = value
        return out


@dataclass
class Service(Record):
    name: str = ""
    description: str = ""
    steps: str = ""
    pictures: AttachmentSet = EMPTY

    REQUIRED: ClassVar[Tuple[str, ...]] = ("name", "description")
    ATTACHMENTS: ClassVar[Dict[str, str]] = {"pictures": "picture_urls"}


@dataclass
class Project(Record):
    title: str = ""
    description: str = ""
    before_after: bool = False
    before_pictures: AttachmentSet = EMPTY
    after_pictures: AttachmentSet = EMPTY
    pictures: AttachmentSet = EMPTY
    client_feedback: str = ""

    REQUIRED: ClassVar[Tuple[str, ...]] = ("title", "description")
    ATTACHMENTS: ClassVar[Dict[str, str]] = {
        "before_pictures": "before_picture_urls",
        "after_pictures": "after_picture_urls",
        "pictures": "picture_urls",
    }

    def active_slots(self) -> Tuple[str, ...]:
        if self.before_after:
            return ("before_pictures", "after_pictures")
        return ("pictures",)


@dataclass
class ServiceArea(Record):
    name: str = ""
    type: str = "neighborhoods"
    description: str = ""

    REQUIRED: ClassVar[Tuple[str, ...]] = ("name",)


@dataclass
class FinancingOption(Record):
    name: str = ""
    description: str = ""
    interest_rate: str = ""
    term_length: str = ""
    minimum_amount: str = ""
    qualification_requirements: str = ""

    REQUIRED: ClassVar[Tuple[str, ...]] = ("name", "description")


@dataclass
class StormService(Record):
    name: str = ""
    description: str = ""
    response_time: str = ""
    insurance_partnership: str = ""
    pictures: AttachmentSet = EMPTY

    REQUIRED: ClassVar[Tuple[str, ...]] = ("name", "description")
    ATTACHMENTS: ClassVar[Dict[str, str]] = {"pictures": "picture_urls"}


@dataclass
class InstallationService(Record):
    service_name: str = ""
    steps: Tuple[str, ...] = ()
    pictures: AttachmentSet = EMPTY
    additional_notes: str = ""

    REQUIRED: ClassVar[Tuple[str, ...]] = ("service_name",)
    ATTACHMENTS: ClassVar[Dict[str, str]] = {"pictures": "picture_urls"}
