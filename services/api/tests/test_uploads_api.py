"""
Tests for the image upload endpoint. The media host is monkeypatched.

Run with: pytest tests/test_uploads_api.py -v
"""
import pytest
from fastapi.testclient import TestClient

import main
from core import media_store
from conftest import png_bytes


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def hosted(monkeypatch):
    """Media host stub; records the (filename, size) of every batch."""
    batches = []

    async def fake_upload(files):
        batches.append([(name, len(data)) for name, data, _ in files])
        return [f"https://drive.example/{i}-{name}" for i, (name, _, _) in enumerate(files)]

    monkeypatch.setattr(media_store, "upload_images", fake_upload)
    return batches


def _image(name, data=None, content_type="image/png"):
    return ("images", (name, data if data is not None else png_bytes(), content_type))


class TestUploadImages:
    def test_urls_in_request_order(self, client, hosted):
        resp = client.post(
            "/api/upload-images",
            files=[_image("front.png"), _image("back.png"), _image("side.png")],
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["image_urls"] == [
            "https://drive.example/0-front.png",
            "https://drive.example/1-back.png",
            "https://drive.example/2-side.png",
        ]
        assert body["message"] == "Uploaded 3 image(s)"
        assert [name for name, _ in hosted[0]] == ["front.png", "back.png", "side.png"]

    def test_non_image_rejects_whole_batch(self, client, hosted):
        resp = client.post(
            "/api/upload-images",
            files=[_image("ok.png"), _image("notes.txt", b"plain text", "text/plain")],
        )
        assert resp.status_code == 400
        assert "notes.txt" in resp.json()["detail"]
        assert hosted == []

    def test_empty_file_rejected(self, client, hosted):
        resp = client.post("/api/upload-images", files=[_image("empty.png", b"")])
        assert resp.status_code == 400
        assert hosted == []

    def test_missing_field(self, client, hosted):
        resp = client.post("/api/upload-images")
        assert resp.status_code == 422

    def test_too_many_images(self, client, hosted, monkeypatch):
        from settings import get_settings

        monkeypatch.setattr(get_settings(), "max_images_per_upload", 1)
        resp = client.post("/api/upload-images", files=[_image("a.png"), _image("b.png")])
        assert resp.status_code == 400
        assert hosted == []


class TestMediaHostFailures:
    def test_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(media_store, "drive_configured", lambda: False)
        resp = client.post("/api/upload-images", files=[_image("a.png")])
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Image hosting is not configured"}

    def test_upload_failure(self, client, monkeypatch):
        async def failing(files):
            raise media_store.MediaUploadError("1 of 1 images failed to upload")

        monkeypatch.setattr(media_store, "upload_images", failing)
        resp = client.post("/api/upload-images", files=[_image("a.png")])
        assert resp.status_code == 502
        assert resp.json() == {"detail": "Failed to upload images"}
