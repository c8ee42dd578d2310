"""
Shared fixtures.

Run with: pytest services/api/tests -v
"""
import io
import os
import sys
from typing import Any, Dict, List, Sequence

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep tests independent from any local .env
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SMTP_USER", "")
os.environ.setdefault("SMTP_PASSWORD", "")

from form.attachments import LocalImage  # noqa: E402


def png_bytes(color=(200, 30, 30), size=(4, 4)) -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeUploader:
    """Returns deterministic URLs; can be told to fail on a given batch."""

    def __init__(self, fail_on_filename: str = None):
        self.calls: List[List[str]] = []
        self.fail_on_filename = fail_on_filename

    async def upload(self, images: Sequence[LocalImage]) -> List[str]:
        names = [img.filename for img in images]
        self.calls.append(names)
        if self.fail_on_filename and self.fail_on_filename in names:
            raise RuntimeError("media host unavailable")
        return [f"https://media.example/{name}" for name in names]


class FakeSender:
    def __init__(self, fail: Exception = None):
        self.payloads: List[Dict[str, Any]] = []
        self.fail = fail

    async def send(self, payload: Dict[str, Any]) -> str:
        self.payloads.append(payload)
        if self.fail:
            raise self.fail
        return f"sub-{len(self.payloads)}"


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def image_factory():
    def make(name: str) -> LocalImage:
        return LocalImage(filename=name, data=png_bytes(), content_type="image/png")
    return make
