from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from . import BOOL_COLUMNS, INT_COLUMNS, LIST_COLUMNS, SUBMISSION_COLUMNS

logger = logging.getLogger(__name__)


def _bool_from_sheet(v: Any) -> bool:
    """
    Convert Sheets-style boolean cells to Python bool.
    Accepts: TRUE/FALSE, 1/0, yes/no, y/n (case-insensitive).
    """
    if v is None:
        return False
    if isinstance(v, bool):
        return v
    s = str(v).strip().upper()
    return s in ("TRUE", "1", "YES", "Y")


def _list_from_cell(v: Any) -> List[Any]:
    if isinstance(v, list):
        return v
    if v is None or not str(v).strip():
        return []
    try:
        parsed = json.loads(v)
    except (TypeError, json.JSONDecodeError):
        logger.warning(f"Unparseable list cell, treating as empty: {str(v)[:80]!r}")
        return []
    return parsed if isinstance(parsed, list) else []


def submission_to_row(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a stored submission into cell values: lists become JSON text,
    bools TRUE/FALSE, None an empty cell.
    """
    row: Dict[str, Any] = {}
    for col in SUBMISSION_COLUMNS:
        v = record.get(col)
        if col in LIST_COLUMNS:
            row[col] = json.dumps(v or [], ensure_ascii=False)
        elif col in BOOL_COLUMNS:
            row[col] = "TRUE" if v else "FALSE"
        elif v is None:
            row[col] = ""
        else:
            row[col] = v
    return row


def submission_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Inverse of submission_to_row; unknown columns are dropped."""
    out: Dict[str, Any] = {}
    for col in SUBMISSION_COLUMNS:
        v = row.get(col)
        if col in LIST_COLUMNS:
            out[col] = _list_from_cell(v)
        elif col in BOOL_COLUMNS:
            out[col] = _bool_from_sheet(v)
        elif col in INT_COLUMNS:
            try:
                out[col] = int(float(v)) if v not in (None, "") else None
            except (TypeError, ValueError):
                out[col] = None
        else:
            out[col] = v if v not in (None, "") else None
    return out
