"""Audio capture module."""

from .recorder import AudioRecorder

__all__ = [
    'AudioRecorder',
]
