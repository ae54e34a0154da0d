# media_core/errors.py

"""
Error taxonomy of the media pipeline.

FatalStageError subclasses abort a run (acquisition / transcode).
TranscriptionError subclasses are recorded on the result and the run goes on.
"""


class PipelineError(Exception):
    stage = "pipeline"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.message, "stage": self.stage}


class FatalStageError(PipelineError):
    """Aborts the whole run; nothing gets published."""


class InvalidInput(FatalStageError):
    stage = "acquiring"


class AcquisitionFailed(FatalStageError):
    stage = "acquiring"


class TranscodeFailed(FatalStageError):
    stage = "transcoding"


class ArtifactTooLarge(FatalStageError):
    stage = "transcoding"

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            f"Derived audio is {size_bytes / (1024 * 1024):.1f} MiB, "
            f"over the {max_bytes / (1024 * 1024):.0f} MiB limit. "
            "Reduce the bitrate or split the media before uploading."
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


class TranscriptionError(PipelineError):
    """Degrades the result; media artifacts are still published."""

    stage = "transcribing"


class TranscriptionServiceError(TranscriptionError):
    def __init__(self, message: str, *, status_code: int | None = None, body: str = ""):
        detail = f"{message}: HTTP {status_code}" if status_code is not None else message
        if body:
            detail = f"{detail} {body[:500]}"
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class TranscriptionFailed(TranscriptionError):
    def __init__(self, job_id: str, detail: str):
        super().__init__(f"Transcription {job_id} failed: {detail}")
        self.job_id = job_id
        self.detail = detail


class TranscriptionTimeout(TranscriptionError):
    def __init__(self, job_id: str, max_wait: float):
        super().__init__(f"Timed out after {max_wait:.0f}s waiting for transcription {job_id}")
        self.job_id = job_id
        self.max_wait = max_wait
