"""
JSON file storage adapter for client submissions.
Simple file-based storage for quick demos and testing.
Safe across threads of one process (one lock per adapter); not for
several processes sharing the same data directory.
"""
import json
import os
import tempfile
import threading
from typing import List, Dict, Any, Optional
from pathlib import Path

from models import ClientSubmission

from ..base import newest_first


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores all submissions in one JSON file under the data directory.
    Writes go through a unique temp file and an atomic replace; the
    read-append-write of create runs under a lock.
    """

    backend_name = "json"

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        # FastAPI runs sync routes in a threadpool
        self._lock = threading.Lock()

        self.submissions_file = self.data_dir / "client_submissions.json"
        if not self.submissions_file.exists():
            self._write_file(self.submissions_file, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return []

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        # Unique temp file per write, in the same directory as the target
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.data_dir,
            prefix=f".{filepath.stem}-",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        try:
            os.replace(tmp_name, filepath)
        except OSError:
            os.unlink(tmp_name)
            raise

    def create_submission(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = ClientSubmission(data=dict(data)).to_record()
        with self._lock:
            submissions = self._read_file(self.submissions_file)
            submissions.append(record)
            self._write_file(self.submissions_file, submissions)
        return record

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        submissions = self._read_file(self.submissions_file)
        return next((s for s in submissions if s.get("id") == submission_id), None)

    def list_submissions(self) -> List[Dict[str, Any]]:
        return newest_first(self._read_file(self.submissions_file))

    def ping(self) -> bool:
        return self.submissions_file.exists()
