"""Data models for the Tenor application."""

from .session import RecordingSession
from .audio import RecordingReport
from .transcription import TranscriptionRequest, TranscriptionResult
from .pipeline import PipelineState

__all__ = [
    "RecordingSession",
    "RecordingReport",
    "TranscriptionRequest",
    "TranscriptionResult",
    "PipelineState",
]
