"""Local file storage for recordings and transcripts."""

from .file_manager import FileManager

__all__ = ["FileManager"]
