# media_core/models.py

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Union


# --- media sources ---

@dataclass(frozen=True)
class UploadSource:
    """A file the ingestion boundary has already written to disk."""

    local_path: Path
    media_type: str
    filename: str = ""

    @property
    def kind(self) -> str:
        return "upload"


@dataclass(frozen=True)
class RemoteUrlSource:
    url: str
    use_cookies: bool = False

    @property
    def kind(self) -> str:
        return "remoteUrl"


MediaSource = Union[UploadSource, RemoteUrlSource]


# --- artifacts ---

class ArtifactRole(str, Enum):
    SOURCE_VIDEO = "source-video"
    SOURCE_AUDIO = "source-audio"
    DERIVED_AUDIO = "derived-audio"
    TRANSCRIPT_TEXT = "transcript-text"
    SUMMARY_TEXT = "summary-text"


@dataclass(frozen=True)
class WorkingArtifact:
    path: Path
    role: ArtifactRole


@dataclass(frozen=True)
class PublishedArtifact:
    absolute_path: Path
    public_url: str


# --- transcription ---

class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_service(cls, value: str) -> "JobStatus | None":
        """Map a status string reported by the service; None if unknown."""
        value = (value or "").strip().lower()
        if value == "error":
            return cls.FAILED
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class TranscriptionJob:
    job_id: str
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Transcript:
    text: str


@dataclass(frozen=True)
class Summary:
    text: str
    sentence_count: int


# --- pipeline result ---

@dataclass(frozen=True)
class PipelineResult:
    """
    Terminal record of a run that got past acquisition and transcoding.

    Fatal failures never produce a PipelineResult; they are raised as
    FatalStageError and rendered with PipelineError.to_dict().
    """

    media: PublishedArtifact | None = None
    audio: PublishedArtifact | None = None
    transcript_file: PublishedArtifact | None = None
    summary_file: PublishedArtifact | None = None
    transcript: Transcript | None = None
    summary: Summary | None = None
    transcribe_error: str | None = None
    summary_error: str | None = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> str | None:
        return self.transcribe_error or self.summary_error

    def to_dict(self) -> dict:
        def _url(artifact):
            return artifact.public_url if artifact else None

        out = {
            "ok": self.ok,
            "mediaUrl": _url(self.media),
            "audioUrl": _url(self.audio),
            "transcriptUrl": _url(self.transcript_file),
            "summaryUrl": _url(self.summary_file),
            "transcriptText": self.transcript.text if self.transcript else None,
            "summaryText": self.summary.text if self.summary else None,
            "transcribeError": self.transcribe_error,
            "error": self.error,
        }
        return {k: v for k, v in out.items() if v is not None}
