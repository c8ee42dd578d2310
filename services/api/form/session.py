# services/api/form/session.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from core.validation import collect_field_errors

from .attachments import EMPTY, AttachmentSet, LocalImage
from .editor import InstallationServiceEditor, RecordEditor
from .records import FinancingOption, Project, Service, ServiceArea, StormService
from .sections import SectionController
from .steps import StepList, TagList

if TYPE_CHECKING:
    from .assembler import SubmissionAssembler

logger = logging.getLogger(__name__)


# scalar field -> gating section (None = always sent)
SCALAR_FIELDS: Dict[str, Optional[str]] = {
    "years_of_experience": None,
    "business_email": None,
    "license_number": "license",
    "business_address": None,
    "business_hours": None,
    "emergency_phone": "emergency_phone",
    "company_story": "about",
    "unique_selling_points": "about",
    "specialties": "about",
    "service_areas_description": None,
    "brands_additional_notes": "brands",
    "certifications_additional_notes": "certifications",
    "roof_materials_specialties": "roof_materials",
    "warranty_duration": "warranty",
    "warranty_type": "warranty",
    "warranty_coverage_details": "warranty",
    "warranty_additional_notes": "warranty",
    "general_liability": "insurance",
    "bonded_amount": "insurance",
    "additional_coverage": "insurance",
    "workers_compensation": "insurance",
    "additional_notes": "additional_notes",
}

# payload key -> gating section, for the record editors
EDITOR_GATES: Dict[str, Optional[str]] = {
    "services": None,
    "projects": None,
    "service_areas": None,
    "financing_options": "financing_options",
    "storm_services": "storm_services",
    "installation_process_services": "installation_process",
}

STEP_LIST_GATES: Dict[str, str] = {
    "maintenance_tips": "maintenance_guide",
    "warranty_terms": "warranty",
}

TAG_LIST_GATES: Dict[str, str] = {
    "brands": "brands",
    "certifications": "certifications",
}

CERTIFICATION_PICTURES_GATE = "certifications"

# fields re-checked on every edit so errors show inline
_INLINE_CHECKED = ("years_of_experience", "business_email")


class FormSession:
    """
    All state of one form fill-in: scalars, record editors, section flags,
    tag/step lists and form-level attachments.

    Nothing here is persisted; a session lives until the caller drops it.
    `submit()` is the only async operation and the only place user-facing
    submit errors are stored.
    """

    def __init__(self):
        self.values: Dict[str, Any] = {name: "" for name in SCALAR_FIELDS}
        self.values["workers_compensation"] = False

        self.sections = SectionController()

        self.editors: Dict[str, RecordEditor] = {
            "services": RecordEditor(Service, "Service"),
            "projects": RecordEditor(Project, "Project"),
            "service_areas": RecordEditor(ServiceArea, "Service area"),
            "financing_options": RecordEditor(FinancingOption, "Financing option"),
            "storm_services": RecordEditor(StormService, "Storm service"),
            "installation_process_services": InstallationServiceEditor(),
        }
        self.step_lists: Dict[str, StepList] = {name: StepList() for name in STEP_LIST_GATES}
        self.tag_lists: Dict[str, TagList] = {name: TagList() for name in TAG_LIST_GATES}
        self.certification_pictures: AttachmentSet = EMPTY

        self.field_errors: Dict[str, str] = {}
        self.last_error: Optional[str] = None
        self.last_submission_id: Optional[str] = None

    # ---------- convenience accessors ----------

    @property
    def services(self) -> RecordEditor:
        return self.editors["services"]

    @property
    def projects(self) -> RecordEditor:
        return self.editors["projects"]

    @property
    def service_areas(self) -> RecordEditor:
        return self.editors["service_areas"]

    @property
    def financing_options(self) -> RecordEditor:
        return self.editors["financing_options"]

    @property
    def storm_services(self) -> RecordEditor:
        return self.editors["storm_services"]

    @property
    def installation_services(self) -> InstallationServiceEditor:
        return self.editors["installation_process_services"]

    @property
    def maintenance_tips(self) -> StepList:
        return self.step_lists["maintenance_tips"]

    @property
    def warranty_terms(self) -> StepList:
        return self.step_lists["warranty_terms"]

    @property
    def brands(self) -> TagList:
        return self.tag_lists["brands"]

    @property
    def certifications(self) -> TagList:
        return self.tag_lists["certifications"]

    # ---------- scalars ----------

    def set_field(self, name: str, value: Any) -> bool:
        """
        Set one scalar. Fields with a format rule are re-checked at once;
        an error only affects that field's entry in `field_errors`.
        """
        if name not in SCALAR_FIELDS:
            logger.warning(f"Unknown form field '{name}'")
            return False
        self.values[name] = value

        if name in _INLINE_CHECKED:
            error = collect_field_errors(self.values).get(name)
            if error:
                self.field_errors[name] = error
            else:
                self.field_errors.pop(name, None)
        return True

    def is_field_active(self, name: str) -> bool:
        gate = SCALAR_FIELDS[name]
        return gate is None or self.sections.is_included(gate)

    # ---------- certification pictures ----------

    def add_certification_pictures(self, files: Iterable[LocalImage]) -> None:
        self.certification_pictures = self.certification_pictures.appended(files)

    def remove_certification_picture(self, index: int) -> bool:
        remaining = self.certification_pictures.without(index)
        if remaining is None:
            return False
        self.certification_pictures = remaining
        return True

    # ---------- submit ----------

    async def submit(self, assembler: "SubmissionAssembler") -> Optional[str]:
        """
        Top-level submit handler.

        Returns the generated submission id, or None when the submit failed
        (see `last_error` / `field_errors`) or another submit is in flight.
        Editor and section state is left untouched either way.
        """
        from .assembler import FieldValidationError, SubmitError

        self.last_error = None
        try:
            submission_id = await assembler.submit(self)
        except FieldValidationError as e:
            self.field_errors = dict(e.field_errors)
            self.last_error = e.user_message
            return None
        except SubmitError as e:
            self.last_error = e.user_message
            return None

        if submission_id is None:
            return None

        self.field_errors = {}
        self.last_submission_id = submission_id
        logger.info(f"✓ Form submitted: {submission_id}")
        return submission_id
