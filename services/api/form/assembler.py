# services/api/form/assembler.py
"""
Builds the submission payload from a FormSession and sends it.

Flow: field rules -> schema pre-check -> concurrent uploads (one per
non-empty attachment set) -> merge URLs -> schema check -> send once.
Nothing reaches the network if a field rule fails, and nothing is sent if
any upload fails.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from pydantic import ValidationError

from core.validation import collect_field_errors, parse_years_of_experience
from schemas.submission import ClientSubmissionCreate

from .attachments import AttachmentSet, LocalImage
from .session import (
    CERTIFICATION_PICTURES_GATE,
    EDITOR_GATES,
    SCALAR_FIELDS,
    STEP_LIST_GATES,
    TAG_LIST_GATES,
    FormSession,
)

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = "Failed to upload images. Please try again."
SUBMIT_FAILED_MESSAGE = "Failed to submit form. Please try again."
INVALID_FIELDS_MESSAGE = "Please fix the highlighted fields."


# ============ Collaborators ============


class ImageUploader(Protocol):
    async def upload(self, images: Sequence[LocalImage]) -> List[str]:
        """Upload one batch; returns one URL per image, in order."""
        ...


class SubmissionSender(Protocol):
    async def send(self, payload: Dict[str, Any]) -> str:
        """Send the payload; returns the generated submission id."""
        ...


# ============ Errors ============


class SubmitError(Exception):
    """Base for failures of the submit flow. `user_message` is safe to show."""

    def __init__(self, user_message: str, detail: Optional[str] = None):
        super().__init__(detail or user_message)
        self.user_message = user_message


class FieldValidationError(SubmitError):
    def __init__(self, field_errors: Mapping[str, str]):
        super().__init__(INVALID_FIELDS_MESSAGE, "; ".join(f"{k}: {v}" for k, v in field_errors.items()))
        self.field_errors = dict(field_errors)


class ImageUploadError(SubmitError):
    def __init__(self, detail: Optional[str] = None):
        super().__init__(UPLOAD_FAILED_MESSAGE, detail)


class SubmissionError(SubmitError):
    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(SUBMIT_FAILED_MESSAGE, detail)
        self.status_code = status_code


# ============ Upload jobs ============


@dataclass(frozen=True)
class UploadJob:
    """One attachment set to resolve. `index` is None for form-level sets."""
    list_key: str
    index: Optional[int]
    slot: str
    images: AttachmentSet


UrlMap = Dict[Tuple[str, Optional[int], str], List[str]]


def _schema_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        key = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        errors.setdefault(key, err.get("msg", "Invalid value"))
    return errors


class SubmissionAssembler:
    """
    Turns a FormSession into one validated payload and sends it.

    Single-flight: while a submit is pending, another submit() returns None
    without doing anything.
    """

    def __init__(self, uploader: ImageUploader, sender: SubmissionSender):
        self.uploader = uploader
        self.sender = sender
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    # ---------- public ----------

    async def submit(self, session: FormSession) -> Optional[str]:
        if self._in_flight:
            logger.debug("Submit ignored: another submit is in flight")
            return None

        self._in_flight = True
        try:
            payload = await self.assemble(session)
            try:
                submission_id = await self.sender.send(payload)
            except SubmitError:
                raise
            except Exception as e:
                logger.error(f"✗ Submission failed: {e}")
                raise SubmissionError(str(e)) from e
            logger.info(f"Submission accepted: {submission_id}")
            return submission_id
        finally:
            self._in_flight = False

    async def assemble(self, session: FormSession) -> Dict[str, Any]:
        """Return the JSON-ready payload. Raises SubmitError subclasses."""
        field_errors = collect_field_errors(session.values)
        if field_errors:
            raise FieldValidationError(field_errors)

        # schema problems surface before any upload
        self._validate(self._build_payload(session, {}))

        jobs = self.collect_jobs(session)
        urls = await self._resolve(jobs)
        return self._validate(self._build_payload(session, urls))

    def collect_jobs(self, session: FormSession) -> List[UploadJob]:
        """Every non-empty attachment set that will be part of the payload."""
        jobs: List[UploadJob] = []
        for list_key, gate in EDITOR_GATES.items():
            if gate is not None and not session.sections.is_included(gate):
                continue
            for index, record in enumerate(session.editors[list_key].items):
                for slot, images in record.attachment_sets().items():
                    if not images.is_empty():
                        jobs.append(UploadJob(list_key, index, slot, images))

        if (
            session.sections.is_included(CERTIFICATION_PICTURES_GATE)
            and not session.certification_pictures.is_empty()
        ):
            jobs.append(UploadJob("certification_picture_urls", None, "pictures", session.certification_pictures))
        return jobs

    # ---------- internals ----------

    async def _upload_one(self, job: UploadJob) -> List[str]:
        urls = await self.uploader.upload(list(job.images))
        if len(urls) != len(job.images):
            raise ImageUploadError(
                f"{job.list_key}[{job.index}].{job.slot}: expected {len(job.images)} URLs, got {len(urls)}"
            )
        return list(urls)

    async def _resolve(self, jobs: List[UploadJob]) -> UrlMap:
        if not jobs:
            return {}

        results = await asyncio.gather(
            *(self._upload_one(job) for job in jobs),
            return_exceptions=True,
        )

        failures = [(job, r) for job, r in zip(jobs, results) if isinstance(r, BaseException)]
        if failures:
            for job, err in failures:
                logger.error(f"✗ Upload failed for {job.list_key}[{job.index}].{job.slot}: {err}")
            raise ImageUploadError(f"{len(failures)} of {len(jobs)} uploads failed") from failures[0][1]

        logger.info(f"Uploaded {sum(len(j.images) for j in jobs)} images in {len(jobs)} batches")
        return {(job.list_key, job.index, job.slot): urls for job, urls in zip(jobs, results)}

    def _build_payload(self, session: FormSession, urls: UrlMap) -> Dict[str, Any]:
        sections = session.sections
        payload: Dict[str, Any] = {}

        for name, gate in SCALAR_FIELDS.items():
            raw = session.values.get(name)
            if name == "years_of_experience":
                payload[name] = parse_years_of_experience(raw)
            elif name == "workers_compensation":
                payload[name] = bool(raw) and session.is_field_active(name)
            elif session.is_field_active(name) and isinstance(raw, str) and raw.strip():
                payload[name] = raw.strip()
            else:
                payload[name] = None

        payload.update(sections.flags())

        for list_key, gate in EDITOR_GATES.items():
            if gate is not None and not sections.is_included(gate):
                payload[list_key] = []
                continue
            records = []
            for index, record in enumerate(session.editors[list_key].items):
                slot_urls = {
                    slot: urls.get((list_key, index, slot), [])
                    for slot in record.active_slots()
                }
                records.append(record.to_payload(slot_urls))
            payload[list_key] = records

        for key, gate in STEP_LIST_GATES.items():
            payload[key] = list(session.step_lists[key].items) if sections.is_included(gate) else []
        for key, gate in TAG_LIST_GATES.items():
            payload[key] = list(session.tag_lists[key].items) if sections.is_included(gate) else []

        payload["certification_picture_urls"] = list(
            urls.get(("certification_picture_urls", None, "pictures"), [])
        )
        return payload

    def _validate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            model = ClientSubmissionCreate(**payload)
        except ValidationError as e:
            raise FieldValidationError(_schema_errors(e)) from None
        return model.model_dump(mode="json")
