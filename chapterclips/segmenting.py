from dataclasses import replace

from chapterclips.errors import MalformedTimestamp
from chapterclips.models import CaptionBlock, Chapter
from chapterclips.utils import parse_timestamp

MAX_CHAPTER_DURATION_MS = 360_000
TIMECODE_SEPARATOR = " --> "


def _parse_block(block: str) -> CaptionBlock | None:
    timecode, *lines = block.strip("\n").split("\n")
    start_text, sep, end_text = timecode.partition(TIMECODE_SEPARATOR)
    # Cue settings (align:, position:) may follow the end timestamp.
    end_text = end_text.split(" ")[0] if end_text else ""
    if not sep or not start_text.strip() or not end_text.strip():
        return None

    try:
        start = parse_timestamp(start_text)
        end = parse_timestamp(end_text)
    except MalformedTimestamp:
        return None

    return CaptionBlock(timecode=timecode, start=start, end=end, lines=tuple(lines))


def parse_caption_track(vtt: str) -> list[CaptionBlock]:
    """Parse a WebVTT caption track into caption blocks.

    The first line is the header. Blocks are separated by blank lines and start
    with a `start --> end` timecode line. Blocks whose timecode is missing or
    unparseable are skipped.
    """
    _, _, body = vtt.replace("\r\n", "\n").partition("\n")
    blocks: list[CaptionBlock] = []
    for raw_block in body.split("\n\n"):
        if not raw_block.strip():
            continue
        block = _parse_block(raw_block)
        if block is not None:
            blocks.append(block)
    return blocks


def _overlaps(block: CaptionBlock, start_seconds: float, end_seconds: float) -> bool:
    # Inclusive on both ends: a block touching a chapter boundary belongs to both chapters.
    return block.start <= end_seconds and block.end >= start_seconds


def _fragment_for_window(blocks: list[CaptionBlock], start_ms: int, end_ms: int) -> str:
    start_seconds = start_ms / 1000
    end_seconds = end_ms / 1000
    return "".join(
        block.serialize()
        for block in blocks
        if _overlaps(block, start_seconds, end_seconds)
    )


def split_chapter_from_vtt(chapter: Chapter, vtt: str) -> str:
    """Return the caption blocks overlapping the chapter window as a fragment."""
    return _fragment_for_window(parse_caption_track(vtt), chapter.start_ms, chapter.end_ms)


def split_chapters_from_vtt(chapters: list[Chapter], vtt: str) -> list[Chapter]:
    blocks = parse_caption_track(vtt)
    return [
        replace(
            chapter,
            transcript_fragment=_fragment_for_window(blocks, chapter.start_ms, chapter.end_ms),
        )
        for chapter in chapters
    ]


def admit_chapters(
    chapters: list[Chapter], ceiling_ms: int = MAX_CHAPTER_DURATION_MS
) -> list[Chapter]:
    """Drop chapters longer than `ceiling_ms`, keeping the original order."""
    admitted: list[Chapter] = []
    for chapter in chapters:
        if chapter.duration_ms <= ceiling_ms:
            admitted.append(chapter)
        else:
            print(
                f"  Skipping chapter {chapter.start_ms}-{chapter.end_ms}ms: "
                f"{chapter.duration_ms / 1000:.0f}s exceeds {ceiling_ms / 1000:.0f}s"
            )
    return admitted
