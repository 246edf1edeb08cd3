"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RecordingReport:
    """What a finished recording left on disk."""
    output_path: str
    duration_seconds: float
    file_size_bytes: Optional[int]  # None when the file does not exist
    success: bool
