"""Pipeline state model."""

from enum import Enum


class PipelineState(Enum):
    """Where the record-then-transcribe run currently is."""
    IDLE = "idle"
    CHECKING_DEPENDENCIES = "checking_dependencies"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    DONE = "done"
    FAILED = "failed"
