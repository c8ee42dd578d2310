# services/api/core/media_store.py
from __future__ import annotations
import asyncio
import logging
import os
import json
import time
from io import BytesIO
from typing import List, Optional, Sequence, Tuple
from pathlib import Path

import httplib2
from google.oauth2.credentials import Credentials as UserCredentials
from google.auth.transport.requests import Request
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from settings import get_settings

logger = logging.getLogger(__name__)

_drive_service = None
_drive_credentials: Optional[UserCredentials] = None
_images_folder_id: Optional[str] = None

# We only need "drive.file": upload + manage files created by this app
SCOPES = ["https://www.googleapis.com/auth/drive.file"]

# Paths relative to services/api/
BASE_DIR = Path(__file__).resolve().parent.parent
CREDS_DIR = BASE_DIR / "creds"
TOKEN_FILE = CREDS_DIR / "drive_token.json"

PUBLIC_URL = "https://drive.google.com/uc?export=view&id={file_id}"

# (filename, data, content_type)
ImageFile = Tuple[str, bytes, str]


class MediaHostNotConfigured(RuntimeError):
    """No Drive token available (env or creds/drive_token.json)."""


class MediaUploadError(RuntimeError):
    """At least one file of a batch failed to upload."""


def drive_configured() -> bool:
    return bool(os.getenv("DRIVE_TOKEN_JSON")) or TOKEN_FILE.exists()


def _get_drive_credentials() -> UserCredentials:
    """
    Load user OAuth credentials.

    Priority:
    1) If DRIVE_TOKEN_JSON env var is set (prod), use that.
    2) Else, fall back to local creds/drive_token.json (dev).
    """
    token_env = os.getenv("DRIVE_TOKEN_JSON")

    if token_env:
        try:
            info = json.loads(token_env)
            creds = UserCredentials.from_authorized_user_info(info, SCOPES)
        except (ValueError, KeyError) as e:
            logger.exception("Failed to load DRIVE_TOKEN_JSON from env: %s", e)
            raise
    else:
        if not TOKEN_FILE.exists():
            msg = (
                f"Drive token not found in env or at {TOKEN_FILE}. "
                "Either set DRIVE_TOKEN_JSON or run drive_oauth_init.py once."
            )
            logger.error(msg)
            raise MediaHostNotConfigured(msg)

        creds = UserCredentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    # Refresh if expired and we have a refresh token
    if creds.expired and creds.refresh_token:
        logger.info("Refreshing Google Drive OAuth token...")
        creds.refresh(Request())

        # If we are using file-based creds (dev), persist refreshed token
        if not token_env:
            CREDS_DIR.mkdir(parents=True, exist_ok=True)
            TOKEN_FILE.write_text(creds.to_json())
            logger.info("Google Drive OAuth token refreshed and saved.")

    return creds


def get_drive_service():
    """
    Lazily construct and cache a Google Drive v3 service client
    using the OAuth user credentials.
    """
    global _drive_service, _drive_credentials
    if _drive_service is None:
        _drive_credentials = _get_drive_credentials()
        _drive_service = build(
            "drive",
            "v3",
            credentials=_drive_credentials,
            cache_discovery=False,
        )
        logger.info("Initialized Google Drive client using OAuth user credentials.")
    return _drive_service


def _request_http() -> AuthorizedHttp:
    # httplib2 connections are not thread-safe; one per upload thread
    return AuthorizedHttp(_drive_credentials, http=httplib2.Http(timeout=60))


def _safe_segment(value: str, fallback: str = "UNKNOWN") -> str:
    """
    Clean folder/file name segments so Drive accepts them nicely.
    """
    if not value:
        return fallback
    v = value.strip()
    if not v:
        return fallback
    # avoid slashes and crazy chars in names
    v = v.replace("/", "_").replace("\\", "_")
    # keep names reasonable length
    return v[:120]


def _ensure_folder(service, name: str, parent_id: Optional[str] = None) -> str:
    """
    Find (or create) a folder with given name under parent_id (or My Drive root).
    Returns the folder ID.
    """
    folder_name = name.strip() or "UNTITLED"

    safe_name = folder_name.replace("'", "\\'")
    q = (
        "mimeType = 'application/vnd.google-apps.folder' "
        f"and name = '{safe_name}' "
        "and trashed = false"
    )
    if parent_id:
        q += f" and '{parent_id}' in parents"

    result = service.files().list(
        q=q,
        spaces="drive",
        fields="files(id, name)",
        pageSize=1,
    ).execute()

    files = result.get("files", [])
    if files:
        return files[0]["id"]

    metadata = {
        "name": folder_name,
        "mimeType": "application/vnd.google-apps.folder",
    }
    if parent_id:
        metadata["parents"] = [parent_id]

    created = service.files().create(body=metadata, fields="id").execute()
    logger.info(f"Created Drive folder '{folder_name}' ({created['id']})")
    return created["id"]


def ensure_images_folder() -> str:
    """
    Resolve (once per process) the folder images go to:

    <GDRIVE_ROOT_FOLDER_NAME or GDRIVE_ROOT_FOLDER_ID>/
        <GDRIVE_IMAGES_SUBFOLDER>/
    """
    global _images_folder_id
    if _images_folder_id:
        return _images_folder_id

    settings = get_settings()
    service = get_drive_service()

    root_folder_id = (settings.gdrive_root_folder_id or "").strip()
    if not root_folder_id:
        root_folder_id = _ensure_folder(service, settings.gdrive_root_folder_name, parent_id=None)

    _images_folder_id = _ensure_folder(service, settings.gdrive_images_subfolder, parent_id=root_folder_id)
    return _images_folder_id


def upload_image_to_drive(
    *,
    data: bytes,
    filename: str,
    content_type: str,
    index: int,
    batch_ts: int,
    folder_id: str,
) -> str:
    """
    Upload one image as `<batch_ts>-<index>-<filename>`, share it
    "anyone with the link can read" and return its public view URL.
    """
    service = get_drive_service()
    http = _request_http()

    media = MediaIoBaseUpload(BytesIO(data), mimetype=content_type or "application/octet-stream", resumable=False)
    file_metadata = {
        "name": f"{batch_ts}-{index}-{_safe_segment(filename, 'image')}",
        "parents": [folder_id],
    }
    created = service.files().create(
        body=file_metadata,
        media_body=media,
        fields="id",
    ).execute(http=http)
    file_id = created["id"]

    # The URL is useless without public read, so this failure fails the file
    service.permissions().create(
        fileId=file_id,
        body={"role": "reader", "type": "anyone"},
        fields="id",
    ).execute(http=http)

    return PUBLIC_URL.format(file_id=file_id)


async def upload_images(files: Sequence[ImageFile]) -> List[str]:
    """
    Upload a batch concurrently; URLs come back in input order.

    Raises:
        MediaHostNotConfigured: no Drive token
        MediaUploadError: any file failed (the whole batch fails)
    """
    if not drive_configured():
        raise MediaHostNotConfigured("Google Drive is not configured")
    if not files:
        return []

    try:
        folder_id = await asyncio.to_thread(ensure_images_folder)
    except MediaHostNotConfigured:
        raise
    except Exception as e:
        logger.exception("Failed to resolve Drive images folder: %s", e)
        raise MediaUploadError(f"Drive folder unavailable: {e}") from e

    batch_ts = int(time.time() * 1000)
    results = await asyncio.gather(
        *(
            asyncio.to_thread(
                upload_image_to_drive,
                data=data,
                filename=filename,
                content_type=content_type,
                index=i,
                batch_ts=batch_ts,
                folder_id=folder_id,
            )
            for i, (filename, data, content_type) in enumerate(files)
        ),
        return_exceptions=True,
    )

    errors = [(files[i][0], r) for i, r in enumerate(results) if isinstance(r, BaseException)]
    if errors:
        for name, err in errors:
            logger.error(f"✗ Drive upload failed for {name}: {err}")
        raise MediaUploadError(f"{len(errors)} of {len(files)} images failed to upload")

    logger.info(f"✓ Uploaded {len(files)} images to Drive")
    return list(results)
