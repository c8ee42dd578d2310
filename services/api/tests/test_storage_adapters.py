"""
Tests for the submission stores and the Sheets row converters.

Run with: pytest tests/test_storage_adapters.py -v
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from adapters.json import JsonAdapter
from adapters.memory import MemoryAdapter
from adapters.sqlite import SqliteAdapter
from models.converters import submission_from_row, submission_to_row
from schemas import ClientSubmissionCreate


def _payload(**overrides):
    data = {
        "years_of_experience": 12,
        "business_email": "info@example.com",
        "has_license": True,
        "license_number": "LIC-9",
        "services": [{"name": "Repair", "description": "Leaks", "picture_urls": ["https://img/1"]}],
        "installation_process_services": [{"service_name": "Tile", "steps": ["One", "Two"]}],
        "brands": ["GAF"],
    }
    data.update(overrides)
    return ClientSubmissionCreate(**data).model_dump(mode="json")


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryAdapter()
    elif request.param == "json":
        yield JsonAdapter(data_dir=str(tmp_path / "data"))
    else:
        adapter = SqliteAdapter.from_url(f"sqlite:///{tmp_path}/intake.db")
        yield adapter
        adapter.engine.dispose()


class TestSubmissionStore:
    """Same contract for every backend."""

    def test_create_assigns_identity(self, store):
        record = store.create_submission(_payload())
        assert record["id"]
        assert record["created_at"]
        assert record["years_of_experience"] == 12

    def test_get_round_trip(self, store):
        record = store.create_submission(_payload())
        fetched = store.get_submission(record["id"])

        assert fetched["id"] == record["id"]
        assert fetched["services"][0]["picture_urls"] == ["https://img/1"]
        assert fetched["installation_process_services"][0]["steps"] == ["One", "Two"]
        assert fetched["has_license"] is True
        assert fetched["has_warranty"] is False
        assert fetched["brands"] == ["GAF"]
        assert fetched["emergency_phone"] is None

    def test_get_missing(self, store):
        assert store.get_submission("missing") is None

    def test_list_newest_first(self, store):
        ids = [store.create_submission(_payload(years_of_experience=n))["id"] for n in (1, 2, 3)]
        assert [r["id"] for r in store.list_submissions()] == list(reversed(ids))

    def test_ping(self, store):
        assert store.ping() is True
        assert store.backend_name in ("memory", "json", "sqlite")


class TestMemoryIsolation:
    def test_returned_records_are_copies(self):
        store = MemoryAdapter()
        record = store.create_submission(_payload())
        record["brands"].append("Mutated")
        assert store.get_submission(record["id"])["brands"] == ["GAF"]


class TestJsonPersistence:
    def test_survives_reopen(self, tmp_path):
        first = JsonAdapter(data_dir=str(tmp_path))
        record = first.create_submission(_payload())
        second = JsonAdapter(data_dir=str(tmp_path))
        assert second.get_submission(record["id"])["license_number"] == "LIC-9"

    def test_concurrent_creates_all_persisted(self, tmp_path):
        """Threadpool writers never overwrite each other."""
        store = JsonAdapter(data_dir=str(tmp_path))

        def create_batch(n):
            return [store.create_submission(_payload(years_of_experience=n))["id"] for _ in range(10)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            created = [i for batch in pool.map(create_batch, range(16)) for i in batch]

        stored = {r["id"] for r in store.list_submissions()}
        assert len(created) == 160
        assert stored == set(created)
        assert list(tmp_path.glob("*.tmp")) == []


class TestSheetRows:
    """Cells are flat text; lists travel as JSON, bools as TRUE/FALSE."""

    def test_to_row_flattens(self):
        record = {"id": "x", "created_at": "2024-01-01T00:00:00+00:00", **_payload()}
        row = submission_to_row(record)

        assert row["has_license"] == "TRUE"
        assert row["has_warranty"] == "FALSE"
        assert row["brands"] == '["GAF"]'
        assert row["emergency_phone"] == ""

    def test_round_trip(self):
        record = {"id": "x", "created_at": "2024-01-01T00:00:00+00:00", **_payload()}
        assert submission_from_row(submission_to_row(record)) == record

    def test_from_row_tolerates_sheet_values(self):
        row = {"id": "y", "years_of_experience": "7", "has_license": "yes", "brands": "not json"}
        out = submission_from_row(row)
        assert out["years_of_experience"] == 7
        assert out["has_license"] is True
        assert out["brands"] == []
        assert out["services"] == []
        assert out["license_number"] is None
