"""
Client-side intake form core: record editors, section flags, the form
session and the submission assembler. Plain Python, no UI.
"""
from .attachments import AttachmentSet, LocalImage
from .records import (
    FinancingOption,
    InstallationService,
    Project,
    Record,
    Service,
    ServiceArea,
    StormService,
)
from .steps import StepList, TagList
from .editor import InstallationServiceEditor, RecordEditor
from .sections import SectionController
from .session import FormSession
from .assembler import (
    FieldValidationError,
    ImageUploadError,
    SubmissionAssembler,
    SubmissionError,
    SubmitError,
)
from .gateway import HttpImageUploader, HttpSubmissionClient

__all__ = [
    "AttachmentSet",
    "LocalImage",
    "Record",
    "Service",
    "Project",
    "ServiceArea",
    "FinancingOption",
    "StormService",
    "InstallationService",
    "StepList",
    "TagList",
    "RecordEditor",
    "InstallationServiceEditor",
    "SectionController",
    "FormSession",
    "SubmissionAssembler",
    "SubmitError",
    "FieldValidationError",
    "ImageUploadError",
    "SubmissionError",
    "HttpImageUploader",
    "HttpSubmissionClient",
]
