from __future__ import annotations

import typing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
from uuid import uuid4

from schemas.submission import ClientSubmissionCreate


def _column_kinds() -> Tuple[List[str], List[str], List[str]]:
    """Split payload fields into (list columns, bool columns, int columns)."""
    lists, bools, ints = [], [], []
    for name, info in ClientSubmissionCreate.model_fields.items():
        ann = info.annotation
        if typing.get_origin(ann) in (list, List):
            lists.append(name)
        elif ann is bool:
            bools.append(name)
        elif ann is int:
            ints.append(name)
    return lists, bools, ints


# Column order for tabular stores: id, created_at, then every payload field
SUBMISSION_COLUMNS: List[str] = ["id", "created_at", *ClientSubmissionCreate.model_fields]
LIST_COLUMNS, BOOL_COLUMNS, INT_COLUMNS = _column_kinds()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass
class ClientSubmission:
    """
    Stored submission: the validated payload plus identity.

    `data` is a plain JSON-ready dict (ClientSubmissionCreate.model_dump()).
    """
    data: Dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: str = field(default_factory=utc_now_iso)

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "created_at": self.created_at, **self.data}
