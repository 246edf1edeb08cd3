"""Transcription module."""

from .transcriber import Transcriber, build_preview

__all__ = [
    'Transcriber',
    'build_preview',
]
