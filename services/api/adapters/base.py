"""
Storage adapter interface for client submissions.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional


class SubmissionStore(Protocol):
    """
    Protocol defining the interface for all submission stores.

    This allows swapping between memory, JSON, SQLite and Google Sheets
    without changing the router code.

    Records are plain dicts: {"id", "created_at", **payload}. There is no
    update or delete.
    """

    backend_name: str

    def create_submission(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist a validated payload.

        Args:
            data: JSON-ready payload (ClientSubmissionCreate.model_dump())

        Returns:
            The stored record including generated `id` and `created_at`.
        """
        ...

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        """Return one stored record, or None if not found."""
        ...

    def list_submissions(self) -> List[Dict[str, Any]]:
        """Return all stored records, newest first."""
        ...

    def ping(self) -> bool:
        """Cheap readiness check used by /readyz."""
        ...


def newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sort by created_at descending. `records` must be in insertion order;
    ties keep the later insert first.
    """
    return sorted(reversed(records), key=lambda r: r.get("created_at") or "", reverse=True)
