import re
from dataclasses import replace

from chapterclips.errors import ExtractionFailed
from chapterclips.models import Chapter, ClipSpan

START_TIME_PATTERN = re.compile(r"Start time: (\d{2}:\d{2}\.\d{3})")
END_TIME_PATTERN = re.compile(r"End time: (\d{2}:\d{2}\.\d{3})")


def extract_clip_span(text: str) -> ClipSpan:
    """Find the `Start time:` / `End time:` pair in a model response.

    Both labels must be present. Nothing is guessed or defaulted when one is
    missing; the caller decides what to do with the failure.
    """
    start_match = START_TIME_PATTERN.search(text)
    end_match = END_TIME_PATTERN.search(text)

    missing = [
        label
        for label, match in (("Start time", start_match), ("End time", end_match))
        if match is None
    ]
    if missing:
        raise ExtractionFailed(f"Could not extract {' and '.join(missing)} from completion")

    return ClipSpan(start_time=start_match.group(1), end_time=end_match.group(1))


def extract_times(chapter: Chapter) -> Chapter:
    if not chapter.completion_text:
        raise ExtractionFailed("Chapter has no completion text")
    return replace(chapter, clip_span=extract_clip_span(chapter.completion_text))


def extract_times_from_chapters(chapters: list[Chapter]) -> list[Chapter]:
    """Return the chapters whose completion yielded a clip span.

    Each chapter that fails extraction is reported and left out.
    """
    extracted: list[Chapter] = []
    for chapter in chapters:
        try:
            extracted.append(extract_times(chapter))
        except ExtractionFailed as exc:
            print(f"  Chapter {chapter.start_ms}-{chapter.end_ms}ms: {exc.message}")
    return extracted
