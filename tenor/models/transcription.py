"""Transcription-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TranscriptionRequest:
    """A single transcription job."""
    audio_path: str
    model: str
    output_dir: str
    language: Optional[str] = None  # None means auto-detect


@dataclass
class TranscriptionResult:
    """Result of a transcription operation."""
    success: bool
    output_path: Optional[str] = None
    preview_text: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0
