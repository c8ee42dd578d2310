# services/api/routers/submissions.py
from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List

from cachetools import TTLCache
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from core.notifications import notify_operator
from schemas import ClientSubmissionCreate, ClientSubmissionCreated, ClientSubmissionOut
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/client-submissions", tags=["client-submissions"])

# Short-lived cache for the list endpoint; cleared on every create.
_list_cache: TTLCache = TTLCache(maxsize=16, ttl=max(1, get_settings().list_cache_ttl_seconds))


def clear_list_cache() -> None:
    _list_cache.clear()


def get_storage(request: Request):
    storage = getattr(request.app.state, "storage_adapter", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage not initialized",
        )
    return storage


# ---- DI alias (no default value allowed) ----
Storage = Annotated[object, Depends(get_storage)]


@router.post(
    "",
    response_model=ClientSubmissionCreated,
    status_code=status.HTTP_201_CREATED,
)
def create_client_submission(
    body: ClientSubmissionCreate,
    background_tasks: BackgroundTasks,
    storage: Storage,
) -> ClientSubmissionCreated:
    """
    Persist a validated submission and queue the operator e-mail.

    The e-mail runs after the response; its outcome never changes the
    response.
    """
    data = body.model_dump(mode="json")
    try:
        record = storage.create_submission(data)
    except Exception as e:
        logger.exception(f"Failed to store client submission: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store submission",
        )

    clear_list_cache()
    background_tasks.add_task(notify_operator, record)
    logger.info(f"✓ Client submission stored: {record['id']}")
    return ClientSubmissionCreated(id=record["id"])


@router.get("", response_model=List[ClientSubmissionOut])
def list_client_submissions(storage: Storage) -> List[Dict[str, Any]]:
    """All submissions, newest first."""
    key = id(storage)
    cached = _list_cache.get(key)
    if cached is not None:
        return cached

    try:
        records = storage.list_submissions()
    except Exception as e:
        logger.exception(f"Failed to list client submissions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch submissions",
        )

    _list_cache[key] = records
    return records


@router.get("/{submission_id}", response_model=ClientSubmissionOut)
def get_client_submission(submission_id: str, storage: Storage) -> Dict[str, Any]:
    record = storage.get_submission(submission_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client submission not found",
        )
    return record
