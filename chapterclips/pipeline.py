import asyncio
import os
from dataclasses import replace

from chapterclips.config import Config
from chapterclips.errors import (
    ClipExtractionFailed,
    CompletionUnavailable,
    ConfirmationTimedOut,
    ResizeFailed,
    SubprocessFailure,
    UploadFailed,
)
from chapterclips.models import Chapter, ClipArtifact
from chapterclips.parsing import extract_times_from_chapters
from chapterclips.prompts import add_prompts_to_chapters, count_prompt_tokens
from chapterclips.providers import complete
from chapterclips.segmenting import admit_chapters, split_chapters_from_vtt
from chapterclips.storage import ObjectStore
from chapterclips.transcription import TranscriptionClient
from chapterclips.video import clip_paths, cut_clip, published_key, resize_clip


def _chapter_label(index: int, chapter: Chapter) -> str:
    return f"Chapter {index + 1} ({chapter.start_ms}-{chapter.end_ms}ms)"


async def upload_source(store: ObjectStore, cfg: Config, user_id: str, source_path: str) -> str:
    """Upload the source video and return a signed URL once it is visible."""
    if not cfg.input_bucket:
        raise UploadFailed("No input bucket configured (AWS_BUCKET_NAME).")
    key = f"{user_id}/{os.path.basename(source_path)}"
    return await store.publish(
        cfg.input_bucket,
        key,
        source_path,
        interval=cfg.confirm_interval,
        timeout=cfg.confirm_timeout,
    )


async def create_chapter_completions(
    chapters: list[Chapter], provider: str, model: str
) -> list[Chapter]:
    """Ask the model for a clip span per chapter, one chapter at a time.

    Chapters whose completion call fails are left out of the result.
    """
    completed: list[Chapter] = []
    for index, chapter in enumerate(chapters):
        label = _chapter_label(index, chapter)
        try:
            tokens = count_prompt_tokens(chapter.prompt, model)
        except (OSError, ValueError) as exc:
            # tiktoken fetches its encoding files on first use.
            print(f"  {label}: token count unavailable, {exc}")
        else:
            print(f"  {label}: {tokens} tokens in prompt")
        try:
            text = await complete(provider, chapter.prompt, model)
        except CompletionUnavailable as exc:
            print(f"  {label}: skipped, {exc.message}")
            continue
        completed.append(replace(chapter, completion_text=text))
    return completed


async def generate_and_resize_clip(
    chapter: Chapter,
    user_id: str,
    source_path: str,
    store: ObjectStore,
    cfg: Config,
) -> ClipArtifact:
    """Cut, square and publish the chapter's clip span.

    Raises SubprocessFailure when ffmpeg fails. A ConfirmationTimedOut still
    leaves the resized file on disk.
    """
    span = chapter.clip_span
    cut_path, resized_path = clip_paths(cfg.scratch_dir, source_path, user_id, span)

    cut = await cut_clip(source_path, span, cut_path)
    if not cut.ok:
        raise ClipExtractionFailed(
            f"ffmpeg exited {cut.returncode} cutting {span.start_time}-{span.end_time}"
        )
    print(f"  Clipped video saved to {cut_path}")

    resized = await resize_clip(cut_path, resized_path, cfg.square_size)
    if not resized.ok:
        raise ResizeFailed(f"ffmpeg exited {resized.returncode} resizing {cut_path}")
    print(f"  Resized video saved to {resized_path}")

    if not cfg.output_bucket:
        raise UploadFailed("No output bucket configured (AWS_OUTPUT_BUCKET_NAME).")
    key = published_key(user_id, resized_path)
    url = await store.publish(
        cfg.output_bucket,
        key,
        resized_path,
        interval=cfg.confirm_interval,
        timeout=cfg.confirm_timeout,
    )
    return ClipArtifact(local_path=resized_path, source_span=span, published_url=url, key=key)


async def generate_and_resize_clips(
    chapters: list[Chapter],
    user_id: str,
    source_path: str,
    store: ObjectStore,
    cfg: Config,
) -> list[ClipArtifact]:
    artifacts: list[ClipArtifact] = []
    for index, chapter in enumerate(chapters):
        if chapter.clip_span is None:
            continue
        label = _chapter_label(index, chapter)
        print(f"\nClipping {label}")
        try:
            artifacts.append(
                await generate_and_resize_clip(chapter, user_id, source_path, store, cfg)
            )
        except ConfirmationTimedOut as exc:
            print(f"  {label}: clip produced but not confirmed, {exc.message}")
            _, resized_path = clip_paths(cfg.scratch_dir, source_path, user_id, chapter.clip_span)
            artifacts.append(
                ClipArtifact(local_path=resized_path, source_span=chapter.clip_span, key=exc.key)
            )
        except (SubprocessFailure, UploadFailed) as exc:
            print(f"  {label}: skipped, {exc}")
    return artifacts


async def generate_clips(
    user_id: str,
    source_path: str,
    cfg: Config | None = None,
    *,
    store: ObjectStore | None = None,
    transcriber: TranscriptionClient | None = None,
) -> list[ClipArtifact]:
    """Run every stage for one video and return the clip artifacts in chapter order.

    Upload, transcription and status failures abort the run; per-chapter
    failures only remove that chapter.
    """
    if not user_id or not user_id.strip():
        raise ValueError("user_id is required")
    cfg = cfg or Config()
    model = cfg.resolved_model()
    if not cfg.provider or not model:
        raise ValueError(f"No model configured for provider '{cfg.provider}'")

    store = store or ObjectStore(region=cfg.region, url_ttl=cfg.url_ttl)
    os.makedirs(cfg.scratch_dir, exist_ok=True)

    print(f"Uploading {source_path} for user {user_id}...")
    media_url = await upload_source(store, cfg, user_id, source_path)

    owns_transcriber = transcriber is None
    transcriber = transcriber or TranscriptionClient()
    try:
        job = await transcriber.transcribe(
            media_url,
            poll_interval=cfg.transcription_poll_interval,
            timeout=cfg.transcription_timeout,
        )
    finally:
        if owns_transcriber:
            await transcriber.aclose()

    chapters = split_chapters_from_vtt(list(job.chapters), job.caption_track or "")
    chapters = admit_chapters(chapters, cfg.max_chapter_ms)
    print(f"{len(chapters)}/{len(job.chapters)} chapters admitted")
    chapters = add_prompts_to_chapters(chapters)

    print(f"Requesting clip spans from {cfg.provider} ({model})...")
    chapters = await create_chapter_completions(chapters, cfg.provider, model)
    chapters = extract_times_from_chapters(chapters)

    print(f"Generating {len(chapters)} clips...")
    return await generate_and_resize_clips(chapters, user_id, source_path, store, cfg)


async def run_pipeline(
    user_id: str,
    source_path: str,
    cfg: Config | None = None,
    *,
    store: ObjectStore | None = None,
    transcriber: TranscriptionClient | None = None,
) -> list[str]:
    """Turn one local video into published square clips; return their URLs."""
    artifacts = await generate_clips(
        user_id, source_path, cfg, store=store, transcriber=transcriber
    )
    return [artifact.published_url for artifact in artifacts if artifact.published_url]


async def run_pipelines(
    user_id: str, source_paths: list[str], cfg: Config | None = None
) -> list[list[str] | BaseException]:
    """Process several videos concurrently; each entry is a URL list or that video's error."""
    cfg = cfg or Config()
    store = ObjectStore(region=cfg.region, url_ttl=cfg.url_ttl)
    return await asyncio.gather(
        *(run_pipeline(user_id, path, cfg, store=store) for path in source_paths),
        return_exceptions=True,
    )
