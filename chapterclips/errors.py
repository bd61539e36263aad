class PipelineError(Exception):
    """Base error for a clip pipeline run.

    `code` is a short stable identifier; `message` is the human-readable part.
    """

    code = "PIPELINE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class UploadFailed(PipelineError):
    code = "UPLOAD_FAILED"


class ConfirmationTimedOut(PipelineError):
    code = "CONFIRMATION_TIMED_OUT"

    def __init__(self, bucket: str, key: str, waited: float):
        self.bucket = bucket
        self.key = key
        self.waited = waited
        super().__init__(f"s3://{bucket}/{key} not visible after {waited:.0f}s")


class TranscriptionFailed(PipelineError):
    code = "TRANSCRIPTION_FAILED"


class TranscriptionTimedOut(TranscriptionFailed):
    code = "TRANSCRIPTION_TIMED_OUT"


class MalformedTimestamp(PipelineError, ValueError):
    code = "MALFORMED_TIMESTAMP"


class CompletionUnavailable(PipelineError):
    code = "COMPLETION_UNAVAILABLE"


class ExtractionFailed(PipelineError):
    code = "EXTRACTION_FAILED"


class SubprocessFailure(PipelineError):
    code = "SUBPROCESS_FAILED"


class ClipExtractionFailed(SubprocessFailure):
    code = "CLIP_EXTRACTION_FAILED"


class ResizeFailed(SubprocessFailure):
    code = "RESIZE_FAILED"
