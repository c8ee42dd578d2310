# services/api/routers/uploads.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from core import media_store
from core.validation import validate_image_batch
from schemas import ImageUploadOut
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload-images", response_model=ImageUploadOut)
async def upload_images(images: List[UploadFile] = File(...)) -> ImageUploadOut:
    """
    Upload a batch of images to the media host.

    All-or-nothing: one invalid file rejects the batch (400), one failed
    upload fails it (502). URLs are returned in request order.
    """
    settings = get_settings()

    files = []
    for upload in images:
        data = await upload.read()
        files.append((upload.filename or "image", data, upload.content_type or "application/octet-stream"))

    validate_image_batch(
        [(name, data) for name, data, _ in files],
        max_count=settings.max_images_per_upload,
        max_bytes=settings.max_image_bytes,
    )

    try:
        urls = await media_store.upload_images(files)
    except media_store.MediaHostNotConfigured as e:
        logger.error(f"Image upload rejected, media host not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Image hosting is not configured",
        )
    except media_store.MediaUploadError as e:
        logger.error(f"✗ Image upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to upload images",
        )

    return ImageUploadOut(
        image_urls=urls,
        message=f"Uploaded {len(urls)} image(s)",
    )
