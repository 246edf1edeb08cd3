"""Tenor - record from the microphone, then transcribe."""

__version__ = "0.1.0"
