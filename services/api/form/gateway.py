# services/api/form/gateway.py
"""
HTTP collaborators for SubmissionAssembler, talking to this service's
own endpoints with httpx.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .assembler import ImageUploadError, SubmissionError
from .attachments import LocalImage

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload-images"
SUBMIT_PATH = "/api/client-submissions"


class _Gateway:
    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # an injected client is reused; otherwise one is opened per call
        self._client = client

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.post(url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, **kwargs)


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)[:500]


class HttpImageUploader(_Gateway):
    """POST a batch of images as multipart `images` parts."""

    async def upload(self, images: Sequence[LocalImage]) -> List[str]:
        if not images:
            return []
        files = [("images", (img.filename, img.data, img.content_type)) for img in images]
        try:
            resp = await self._post(UPLOAD_PATH, files=files)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout uploading {len(images)} images: {e}")
            raise ImageUploadError("upload timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Failed to reach upload endpoint: {e}")
            raise ImageUploadError(str(e)) from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.error(f"Upload endpoint returned error: {resp.status_code} - {detail}")
            raise ImageUploadError(f"HTTP {resp.status_code}: {detail}")

        urls = resp.json().get("image_urls") or []
        return [str(u) for u in urls]


class HttpSubmissionClient(_Gateway):
    """POST the assembled payload as JSON; returns the generated id."""

    async def send(self, payload: Dict[str, Any]) -> str:
        try:
            resp = await self._post(SUBMIT_PATH, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout submitting form: {e}")
            raise SubmissionError("submission timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Failed to reach submission endpoint: {e}")
            raise SubmissionError(str(e)) from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.error(f"Submission endpoint returned error: {resp.status_code} - {detail}")
            raise SubmissionError(detail, status_code=resp.status_code)

        body = resp.json()
        submission_id = body.get("id")
        if not submission_id:
            raise SubmissionError(f"response without id: {body}")
        return str(submission_id)
