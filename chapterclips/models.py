from dataclasses import dataclass
from enum import Enum

from chapterclips.utils import parse_timestamp


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class CaptionBlock:
    timecode: str
    start: float
    end: float
    lines: tuple[str, ...] = ()

    def serialize(self) -> str:
        return "".join(f"{line}\n" for line in (self.timecode, *self.lines))


@dataclass(frozen=True)
class ClipSpan:
    start_time: str
    end_time: str

    @property
    def start_seconds(self) -> float:
        return parse_timestamp(self.start_time)

    @property
    def end_seconds(self) -> float:
        return parse_timestamp(self.end_time)


@dataclass(frozen=True)
class Chapter:
    start_ms: int
    end_ms: int
    headline: str = ""
    summary: str = ""
    gist: str = ""
    transcript_fragment: str | None = None
    prompt: str | None = None
    completion_text: str | None = None
    clip_span: ClipSpan | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    @classmethod
    def from_provider(cls, payload: dict) -> "Chapter":
        """Build a chapter from the transcription provider's chapter object."""
        return cls(
            start_ms=int(payload["start"]),
            end_ms=int(payload["end"]),
            headline=payload.get("headline") or "",
            summary=payload.get("summary") or "",
            gist=payload.get("gist") or "",
        )


@dataclass(frozen=True)
class TranscriptionJob:
    id: str
    status: JobStatus
    caption_track: str | None = None
    chapters: tuple[Chapter, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class ClipArtifact:
    local_path: str
    source_span: ClipSpan
    published_url: str | None = None
    key: str | None = None

    def __post_init__(self):
        if self.source_span is None:
            raise ValueError("ClipArtifact requires a clip span")
