import asyncio
import json

import httpx
import pytest

from chapterclips import transcription
from chapterclips.errors import TranscriptionFailed, TranscriptionTimedOut
from chapterclips.models import Chapter, JobStatus
from chapterclips.transcription import TranscriptionClient

VTT = "WEBVTT\n\n00:00.000 --> 00:04.000\nHello there.\n"
CHAPTERS = [
    {"start": 0, "end": 60000, "headline": "Intro", "summary": "Hi", "gist": "intro"},
    {"start": 60000, "end": 120000, "headline": "Main", "summary": "Talk", "gist": "main"},
]


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(transcription.asyncio, "sleep", fake_sleep)
    return sleeps


def _client(handler) -> TranscriptionClient:
    return TranscriptionClient(api_key="test-key", transport=httpx.MockTransport(handler))


def _status_sequence(statuses, calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            body = json.loads(request.content)
            assert body == {"audio_url": "https://signed/video.mp4", "auto_chapters": True}
            assert request.headers["authorization"] == "test-key"
            return httpx.Response(200, json={"id": "job-1", "status": "queued"})
        if request.url.path.endswith("/vtt"):
            return httpx.Response(200, text=VTT)
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        payload = {"id": "job-1", "status": status}
        if status == "completed":
            payload["chapters"] = CHAPTERS
        if status == "error":
            payload["error"] = "audio too short"
        return httpx.Response(200, json=payload)

    return handler


async def _transcribe(client, **kwargs):
    async with client:
        return await client.transcribe("https://signed/video.mp4", **kwargs)


def test_transcribe_polls_until_completed(no_sleep):
    calls = []
    client = _client(_status_sequence(["queued", "processing", "processing", "completed"], calls))

    job = asyncio.run(_transcribe(client))

    assert job.status is JobStatus.COMPLETED
    assert job.caption_track == VTT
    assert job.chapters == (
        Chapter(start_ms=0, end_ms=60000, headline="Intro", summary="Hi", gist="intro"),
        Chapter(start_ms=60000, end_ms=120000, headline="Main", summary="Talk", gist="main"),
    )
    assert no_sleep == [5.0, 5.0, 5.0]
    assert calls[0] == ("POST", "/v2/transcript")
    assert calls[-1] == ("GET", "/v2/transcript/job-1/vtt")


def test_error_status_raises_transcription_failed():
    client = _client(_status_sequence(["processing", "error"], []))

    with pytest.raises(TranscriptionFailed) as exc:
        asyncio.run(_transcribe(client))

    assert "audio too short" in exc.value.message
    assert not isinstance(exc.value, TranscriptionTimedOut)


def test_stuck_job_times_out(no_sleep):
    client = _client(_status_sequence(["processing"], []))

    with pytest.raises(TranscriptionTimedOut):
        asyncio.run(_transcribe(client, poll_interval=5.0, timeout=30.0))

    assert len(no_sleep) == 6


def test_submit_http_error_is_run_level_failure():
    def handler(request):
        return httpx.Response(401, text="Authentication error")

    with pytest.raises(TranscriptionFailed) as exc:
        asyncio.run(_transcribe(_client(handler)))

    assert "401" in exc.value.message


def test_transport_error_while_polling_is_run_level_failure():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"id": "job-1"})
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TranscriptionFailed):
        asyncio.run(_transcribe(_client(handler)))


def test_unknown_status_keeps_polling(no_sleep):
    client = _client(_status_sequence(["uploading", "completed"], []))

    job = asyncio.run(_transcribe(client))

    assert job.status is JobStatus.COMPLETED
    assert no_sleep == [5.0]


def test_chapter_list_reads_provider_chapters():
    client = _client(_status_sequence(["completed"], []))

    async def run():
        async with client:
            return await client.chapter_list("job-1")

    chapters = asyncio.run(run())

    assert [c.headline for c in chapters] == ["Intro", "Main"]


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("ASSEMBLY_KEY", raising=False)

    with pytest.raises(TranscriptionFailed):
        TranscriptionClient()


def test_non_json_submit_response_is_run_level_failure():
    def handler(request):
        return httpx.Response(200, text="<html>gateway maintenance</html>")

    with pytest.raises(TranscriptionFailed) as exc:
        asyncio.run(_transcribe(_client(handler)))

    assert "non-JSON" in exc.value.message
    assert "gateway maintenance" in exc.value.message


def test_non_json_status_response_is_run_level_failure():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"id": "job-1"})
        return httpx.Response(200, text="<html>gateway maintenance</html>")

    with pytest.raises(TranscriptionFailed):
        asyncio.run(_transcribe(_client(handler)))


def test_chapter_without_bounds_is_run_level_failure():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"id": "job-1"})
        return httpx.Response(
            200, json={"id": "job-1", "status": "completed", "chapters": [{"headline": "Intro"}]}
        )

    with pytest.raises(TranscriptionFailed) as exc:
        asyncio.run(_transcribe(_client(handler)))

    assert "malformed chapter" in exc.value.message
