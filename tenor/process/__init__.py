"""External process integration."""

from .runner import ProcessHandle, ProcessResult, ProcessRunner, SubprocessRunner

__all__ = [
    "ProcessHandle",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
]
