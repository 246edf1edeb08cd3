"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..process.runner import ProcessHandle


@dataclass
class RecordingSession:
    """The one recording in progress: where it writes and the process writing it."""
    output_path: str
    start_time: datetime
    active: bool = True
    process: Optional["ProcessHandle"] = None  # released once the process exits

    @property
    def elapsed_seconds(self) -> float:
        return max((datetime.now() - self.start_time).total_seconds(), 0.0)
