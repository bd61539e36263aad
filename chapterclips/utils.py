import re

from chapterclips.errors import MalformedTimestamp

_NUMERIC_FIELD = re.compile(r"^\d+(?:\.\d+)?$")


def parse_timestamp(timestamp: str) -> float:
    """Convert a caption timestamp (MM:SS.mmm) to seconds.

    The millisecond part is optional and defaults to 0.
    """
    mmss, _, ms = timestamp.strip().partition(".")
    parts = mmss.split(":")
    if len(parts) != 2 or not all(_NUMERIC_FIELD.match(part) for part in parts):
        raise MalformedTimestamp(f"Expected MM:SS.mmm, got '{timestamp}'")

    minutes, seconds = (float(part) for part in parts)
    try:
        milliseconds = float(ms) if ms else 0.0
    except ValueError as exc:
        raise MalformedTimestamp(f"Invalid milliseconds in '{timestamp}'") from exc
    return (minutes * 60) + seconds + (milliseconds / 1000)


def format_timestamp(seconds: float) -> str:
    """Format seconds as a caption timestamp: MM:SS.mmm"""
    total_ms = int(round(seconds * 1000))
    minutes, rest_ms = divmod(total_ms, 60_000)
    secs, milliseconds = divmod(rest_ms, 1000)
    return f"{minutes:02}:{secs:02}.{milliseconds:03}"


def strip_separators(timestamp: str) -> str:
    return timestamp.replace(":", "").replace(".", "")
