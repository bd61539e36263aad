import asyncio
import os

import httpx

from chapterclips.errors import TranscriptionFailed, TranscriptionTimedOut
from chapterclips.models import Chapter, JobStatus, TranscriptionJob

ASSEMBLY_API_BASE = "https://api.assemblyai.com/v2"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 3600.0
REQUEST_TIMEOUT = httpx.Timeout(60.0, connect=10.0)


class TranscriptionClient:
    """Client for a hosted transcription service with auto chapters.

    Jobs are owned by the service; this client only submits them and observes
    their state.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = ASSEMBLY_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_key = api_key or os.environ.get("ASSEMBLY_KEY")
        if not api_key:
            raise TranscriptionFailed("Transcription requires ASSEMBLY_KEY to be set.")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"authorization": api_key},
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TranscriptionClient":
        return self

    async def __aexit__(self, *_exc) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:300] if exc.response.text else "No response body"
            raise TranscriptionFailed(
                f"{method} {path} returned {exc.response.status_code}: {body}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionFailed(f"{method} {path} failed: {exc}") from exc
        return response

    @staticmethod
    def _payload(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as exc:
            body = response.text[:300] or "No response body"
            raise TranscriptionFailed(
                f"{response.request.url.path} returned a non-JSON body: {body}"
            ) from exc
        if not isinstance(data, dict):
            raise TranscriptionFailed(f"{response.request.url.path} returned {type(data).__name__}")
        return data

    async def submit(self, media_url: str) -> str:
        response = await self._request(
            "POST", "/transcript", json={"audio_url": media_url, "auto_chapters": True}
        )
        job_id = self._payload(response).get("id")
        if not job_id:
            raise TranscriptionFailed("Transcription service did not return a job id")
        print(f"  Transcription job id: {job_id}")
        return job_id

    async def status(self, job_id: str) -> TranscriptionJob:
        data = self._payload(await self._request("GET", f"/transcript/{job_id}"))
        try:
            status = JobStatus(data.get("status"))
        except ValueError:
            # Unknown states are treated as still running.
            status = JobStatus.PROCESSING
        try:
            chapters = tuple(Chapter.from_provider(c) for c in data.get("chapters") or ())
        except (KeyError, TypeError, ValueError) as exc:
            raise TranscriptionFailed(
                f"Transcription {job_id} returned a malformed chapter: {exc!r}"
            ) from exc
        return TranscriptionJob(
            id=job_id,
            status=status,
            chapters=chapters,
            error=data.get("error"),
        )

    async def caption_track(self, job_id: str) -> str:
        return (await self._request("GET", f"/transcript/{job_id}/vtt")).text

    async def chapter_list(self, job_id: str) -> list[Chapter]:
        return list((await self.status(job_id)).chapters)

    async def wait_for_completion(
        self,
        job_id: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> TranscriptionJob:
        """Poll a job until it completes, fails or `timeout` seconds elapse."""
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        elapsed = 0.0
        while True:
            print(f"  Checking status of transcription {job_id}...")
            job = await self.status(job_id)
            if job.status is JobStatus.COMPLETED:
                return job
            if job.status is JobStatus.ERROR:
                raise TranscriptionFailed(
                    f"Transcription {job_id} failed: {job.error or 'unknown error'}"
                )
            if elapsed >= timeout:
                raise TranscriptionTimedOut(
                    f"Transcription {job_id} still {job.status.value} after {elapsed:.0f}s"
                )
            await asyncio.sleep(poll_interval)
            elapsed += poll_interval

    async def transcribe(
        self,
        media_url: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> TranscriptionJob:
        """Submit `media_url` and return the completed job with its caption track."""
        print("Transcribing audio...")
        job_id = await self.submit(media_url)
        job = await self.wait_for_completion(job_id, poll_interval=poll_interval, timeout=timeout)
        vtt = await self.caption_track(job_id)
        print(f"  Transcription complete: {len(job.chapters)} chapters")
        return TranscriptionJob(
            id=job.id,
            status=job.status,
            caption_track=vtt,
            chapters=job.chapters,
        )
