"""File management for temporary recordings and transcript files."""

import os
import logging
import tempfile
from pathlib import Path
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class FileManager:
    """Manages where recordings and transcripts live on disk."""

    def __init__(
        self,
        output_dir: str = "./transcripts",
        temp_dir: Optional[str] = None,
        temp_prefix: str = "audio_recording_",
        audio_format: str = "wav",
    ):
        """Initialize file manager.

        Args:
            output_dir: Directory that receives transcript files
            temp_dir: Directory for temporary recordings (OS default if None)
            temp_prefix: Recognizable prefix for temporary recordings
            audio_format: Audio file extension, without the dot
        """
        self.output_dir = Path(output_dir)
        self.temp_dir = temp_dir
        self.temp_prefix = temp_prefix
        self.audio_format = audio_format.lstrip(".")

    def ensure_output_directory(self) -> bool:
        """Create the transcript directory if it does not exist.

        Returns:
            True if the directory was created by this call
        """
        if self.output_dir.is_dir():
            return False
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created transcripts directory: {self.output_dir}")
        return True

    def create_temp_audio_file(self) -> str:
        """Allocate an empty temporary audio file and return its path."""
        temp_file = tempfile.NamedTemporaryFile(
            prefix=self.temp_prefix,
            suffix=f".{self.audio_format}",
            dir=self.temp_dir,
            delete=False,
        )
        temp_file.close()
        logger.debug(f"Allocated temporary recording: {temp_file.name}")
        return temp_file.name

    def remove_if_empty(self, path: str) -> bool:
        """Delete ``path`` if it exists with zero bytes.

        Returns:
            True if the file was removed
        """
        try:
            if os.path.exists(path) and os.path.getsize(path) == 0:
                os.remove(path)
                logger.info(f"Removed unpopulated recording: {path}")
                return True
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")
        return False

    def transcript_path(self, audio_path: str, now: Optional[datetime] = None) -> Path:
        """Build ``<output_dir>/<audio-stem>_<YYYYMMDD_HHMMSS>.txt``.

        Two calls for the same audio file within one second return the same
        path.
        """
        stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        return self.output_dir / f"{Path(audio_path).stem}_{stamp}.txt"

    def file_size(self, path: str) -> Optional[int]:
        """Size in bytes, or None if the file does not exist."""
        try:
            return os.path.getsize(path)
        except OSError:
            return None

    def read_transcript(self, path: str) -> str:
        """Read a transcript file and strip surrounding whitespace."""
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read().strip()

