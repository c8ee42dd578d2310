"""
Form session -> HTTP gateway -> FastAPI app, in-process via httpx.ASGITransport.

Run with: pytest tests/test_gateway.py -v
"""
import asyncio

import httpx
import pytest

import main
from adapters.memory import MemoryAdapter
from core import media_store
from form import FormSession, HttpImageUploader, HttpSubmissionClient, SubmissionAssembler
from form.assembler import ImageUploadError, SubmissionError
from routers import submissions as submissions_router


@pytest.fixture
def app_state(monkeypatch):
    storage = MemoryAdapter()
    main.app.state.storage_adapter = storage
    submissions_router.clear_list_cache()

    async def fake_upload(files):
        return [f"https://drive.example/{name}" for name, _, _ in files]

    async def fake_notify(record):
        return True

    monkeypatch.setattr(media_store, "upload_images", fake_upload)
    monkeypatch.setattr(submissions_router, "notify_operator", fake_notify)
    return storage


def _run_with_client(scenario):
    async def runner():
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://intake.test") as client:
            return await scenario(client)
    return asyncio.run(runner())


class TestGatewayAgainstApp:
    def test_full_submit_flow(self, app_state, image_factory):
        session = FormSession()
        session.set_field("years_of_experience", "14")
        session.set_field("business_email", "crew@example.com")
        editor = session.services
        editor.open_for_create()
        editor.update_draft_field("name", "Inspection")
        editor.update_draft_field("description", "Free roof check")
        editor.add_attachment([image_factory("one.png"), image_factory("two.png")])
        editor.confirm()

        async def scenario(client):
            assembler = SubmissionAssembler(
                HttpImageUploader("http://intake.test", client=client),
                HttpSubmissionClient("http://intake.test", client=client),
            )
            return await session.submit(assembler)

        submission_id = _run_with_client(scenario)

        assert submission_id
        stored = app_state.get_submission(submission_id)
        assert stored["years_of_experience"] == 14
        assert stored["services"][0]["picture_urls"] == [
            "https://drive.example/one.png",
            "https://drive.example/two.png",
        ]

    def test_endpoint_rejection_is_submission_error(self, app_state):
        async def scenario(client):
            sender = HttpSubmissionClient("http://intake.test", client=client)
            with pytest.raises(SubmissionError) as exc:
                await sender.send({"years_of_experience": 99})
            return exc.value

        error = _run_with_client(scenario)
        assert error.status_code == 422

    def test_upload_rejection_is_upload_error(self, app_state, image_factory):
        from form.attachments import LocalImage

        bogus = LocalImage(filename="fake.png", data=b"not an image", content_type="image/png")

        async def scenario(client):
            uploader = HttpImageUploader("http://intake.test", client=client)
            with pytest.raises(ImageUploadError):
                await uploader.upload([image_factory("ok.png"), bogus])

        _run_with_client(scenario)

    def test_unreachable_host(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
                sender = HttpSubmissionClient("http://down.test", client=client)
                with pytest.raises(SubmissionError):
                    await sender.send({"years_of_experience": 1})

        asyncio.run(scenario())
