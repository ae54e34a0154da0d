# media_core/__init__.py

from .errors import (
    PipelineError,
    FatalStageError,
    InvalidInput,
    AcquisitionFailed,
    TranscodeFailed,
    ArtifactTooLarge,
    TranscriptionError,
    TranscriptionServiceError,
    TranscriptionFailed,
    TranscriptionTimeout,
)
from .models import (
    UploadSource,
    RemoteUrlSource,
    MediaSource,
    ArtifactRole,
    WorkingArtifact,
    PublishedArtifact,
    JobStatus,
    TranscriptionJob,
    Transcript,
    Summary,
    PipelineResult,
)
from .settings import PipelineSettings
from .summarization import summarize_text
from .pipeline import Pipeline, PipelineStage, run_pipeline
