"""
In-memory submission store.
Process-lifetime only: everything is gone on restart.
"""
import copy
import threading
from typing import Any, Dict, List, Optional

from models import ClientSubmission

from ..base import newest_first


class MemoryAdapter:
    """Dict-backed store. A lock guards the dict because FastAPI runs sync routes in a threadpool."""

    backend_name = "memory"

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create_submission(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = ClientSubmission(data=copy.deepcopy(data)).to_record()
        with self._lock:
            self._records[record["id"]] = record
        return copy.deepcopy(record)

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(submission_id)
        return copy.deepcopy(record) if record else None

    def list_submissions(self) -> List[Dict[str, Any]]:
        with self._lock:
            records = list(self._records.values())
        return [copy.deepcopy(r) for r in newest_first(records)]

    def ping(self) -> bool:
        return True
