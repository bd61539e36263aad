import asyncio
import os
import subprocess
from dataclasses import dataclass
from typing import List

from chapterclips.models import ClipSpan
from chapterclips.utils import strip_separators

DEFAULT_SQUARE_SIZE = 1080
CLIPPED_MARKER = "clipped-"
RESIZED_SUFFIX = "-resized"


@dataclass(frozen=True)
class TranscodeResult:
    ok: bool
    output_path: str
    returncode: int
    stderr: str = ""


def clip_paths(
    scratch_dir: str, source_path: str, user_id: str, span: ClipSpan
) -> tuple[str, str]:
    """Return the (cut, resized) working paths for one clip span.

    Names depend only on the source, user and span, so repeating a run for the
    same chapter overwrites the earlier files.
    """
    base = os.path.splitext(os.path.basename(source_path))[0]
    start = strip_separators(span.start_time)
    end = strip_separators(span.end_time)
    stem = f"{base}-{user_id}-{CLIPPED_MARKER}{start}_{end}"
    cut_path = os.path.abspath(os.path.join(scratch_dir, f"{stem}.mp4"))
    resized_path = os.path.abspath(os.path.join(scratch_dir, f"{stem}{RESIZED_SUFFIX}.mp4"))
    return cut_path, resized_path


def published_key(user_id: str, resized_path: str) -> str:
    """Object key for a resized clip: `{user_id}/{start}_{end}-resized.mp4`."""
    filename = os.path.basename(resized_path)
    _, _, suffix = filename.partition(CLIPPED_MARKER)
    return f"{user_id}/{suffix or filename}"


def square_filter(size: int) -> str:
    """Scale to fit inside a size x size box, then pad to exactly that box, centered."""
    return (
        f"scale={size}:{size}:force_original_aspect_ratio=decrease,"
        f"pad={size}:{size}:(ow-iw)/2:(oh-ih)/2"
    )


def _build_cut_cmd(source_path: str, span: ClipSpan, output_path: str) -> List[str]:
    return [
        "ffmpeg",
        "-y",
        "-i",
        source_path,
        "-ss",
        span.start_time,
        "-to",
        span.end_time,
        "-c",
        "copy",
        "-map",
        "0",
        output_path,
    ]


def _build_resize_cmd(input_path: str, output_path: str, size: int) -> List[str]:
    return [
        "ffmpeg",
        "-y",
        "-i",
        input_path,
        "-map",
        "0",
        "-vf",
        square_filter(size),
        output_path,
    ]


def _run_transcoder(cmd: List[str], output_path: str) -> TranscodeResult:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        print(f"  Could not start FFmpeg: {exc}")
        return TranscodeResult(False, output_path, -1, str(exc))
    stderr = result.stderr or ""

    if result.returncode != 0:
        print(f"  FFmpeg error:\n{stderr[-500:]}")
        return TranscodeResult(False, output_path, result.returncode, stderr)

    if not os.path.isfile(output_path) or os.path.getsize(output_path) == 0:
        print("  FFmpeg produced an empty output file.")
        return TranscodeResult(False, output_path, result.returncode, stderr)

    return TranscodeResult(True, output_path, result.returncode, stderr)


async def cut_clip(source_path: str, span: ClipSpan, output_path: str) -> TranscodeResult:
    """Copy the span out of the source without re-encoding."""
    print(f"  Cutting {span.start_time} -> {span.end_time}")
    cmd = _build_cut_cmd(source_path, span, output_path)
    return await asyncio.to_thread(_run_transcoder, cmd, output_path)


async def resize_clip(
    input_path: str, output_path: str, size: int = DEFAULT_SQUARE_SIZE
) -> TranscodeResult:
    print(f"  Resizing {os.path.basename(input_path)} to {size}x{size}")
    cmd = _build_resize_cmd(input_path, output_path, size)
    return await asyncio.to_thread(_run_transcoder, cmd, output_path)
