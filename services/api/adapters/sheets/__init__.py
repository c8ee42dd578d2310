# services/api/adapters/sheets/__init__.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from models import SUBMISSION_COLUMNS, ClientSubmission
from models.converters import submission_from_row, submission_to_row

from ..base import newest_first

logger = logging.getLogger(__name__)

# ========== Sheet schema (HEADERS) ==========

SUBMISSIONS_TAB = "client_submissions"

HEADERS = {
    SUBMISSIONS_TAB: SUBMISSION_COLUMNS,
}


def _sa_client_from_json_or_path(google_sa_json: str) -> gspread.Client:
    """
    Accepts either:
      - absolute/relative path to a service-account JSON file, OR
      - a literal JSON string.
    Returns an authorized gspread Client.
    """
    if not google_sa_json:
        raise ValueError("GOOGLE_SA_JSON is required (path to file or inline JSON).")

    # Try to treat as inline JSON first
    try:
        parsed = json.loads(google_sa_json)
        creds = Credentials.from_service_account_info(
            parsed,
            scopes=["https://www.googleapis.com/auth/spreadsheets"],
        )
        return gspread.authorize(creds)
    except json.JSONDecodeError:
        # Not JSON; treat as file path
        creds = Credentials.from_service_account_file(
            google_sa_json,
            scopes=["https://www.googleapis.com/auth/spreadsheets"],
        )
        return gspread.authorize(creds)


# ========== Retry decorator for Google Sheets API calls ==========
def retry_sheets_api(func):
    """Decorator to retry Sheets API calls with exponential backoff on quota errors."""
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((gspread.exceptions.APIError,)),
        reraise=True,
    )
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


class SheetsAdapter:
    """
    Google Sheets submission store:
    - one row per submission in the `client_submissions` tab
    - record lists / string lists stored as JSON text cells
    - retry with backoff on API errors
    """

    backend_name = "sheets"

    def __init__(self, google_sa_json: Optional[str], spreadsheet_id: Optional[str]) -> None:
        if not google_sa_json or not spreadsheet_id:
            raise ValueError("SheetsAdapter requires GOOGLE_SA_JSON and SHEETS_SPREADSHEET_ID")

        self.gc = _sa_client_from_json_or_path(google_sa_json)
        self.ss = self.gc.open_by_key(spreadsheet_id)

        self.ws = self._ensure_worksheet(SUBMISSIONS_TAB)
        self.header = self._ensure_headers(SUBMISSIONS_TAB)

    # ========== Worksheet helpers ==========

    def _ensure_worksheet(self, name: str) -> gspread.Worksheet:
        try:
            return self.ss.worksheet(name)
        except gspread.WorksheetNotFound:
            return self.ss.add_worksheet(
                title=name,
                rows=200,
                cols=len(HEADERS[name]) + 2,
            )

    def _ensure_headers(self, name: str) -> List[str]:
        values = self.ws.get_values("1:1")
        existing = values[0] if values else []

        base = HEADERS[name][:]
        if not existing:
            self.ws.update("A1", [base])
            return base

        # If required base columns are missing, append them at the end.
        # If the sheet already has extra columns, KEEP them.
        missing = [c for c in base if c not in existing]
        header = existing + missing if missing else existing
        if header != existing:
            self.ws.update("1:1", [header])
        return header

    @retry_sheets_api
    def _get_all_dicts(self) -> List[Dict[str, Any]]:
        """Get all rows as dictionaries. WITH RETRY."""
        rows = self.ws.get_all_values()
        if not rows:
            return []
        header = rows[0]
        out = []
        for r in rows[1:]:
            out.append({header[i]: (r[i] if i < len(r) else "") for i in range(len(header))})
        return out

    @retry_sheets_api
    def _append_row(self, row: List[Any]) -> None:
        """Append one row. WITH RETRY."""
        # RAW so JSON cells and ISO timestamps are not reinterpreted
        self.ws.append_rows([row], value_input_option="RAW")

    # ========== SubmissionStore API ==========

    def create_submission(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = ClientSubmission(data=dict(data)).to_record()
        cells = submission_to_row(record)
        self._append_row([cells.get(col, "") for col in self.header])
        logger.info(f"✓ Submission {record['id']} appended to sheet")
        return record

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        for row in self._get_all_dicts():
            if row.get("id") == submission_id:
                return submission_from_row(row)
        return None

    def list_submissions(self) -> List[Dict[str, Any]]:
        rows = [r for r in self._get_all_dicts() if r.get("id")]
        return newest_first([submission_from_row(r) for r in rows])

    @retry_sheets_api
    def ping(self) -> bool:
        self.ws.row_values(1)
        return True
