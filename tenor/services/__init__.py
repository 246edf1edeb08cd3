"""Services layer for Tenor application logic."""

from .pipeline import RecordingPipeline

__all__ = [
    "RecordingPipeline",
]
