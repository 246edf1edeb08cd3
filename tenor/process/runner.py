"""Abstract process runner and the subprocess-backed implementation."""

import shutil
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import IO, List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit status and captured output of a finished process."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessHandle(ABC):
    """A running process with a writable control channel.

    ``subprocess.Popen`` already satisfies this interface and is registered
    as a virtual subclass below.
    """

    pid: int
    stdin: Optional[IO[bytes]]

    @abstractmethod
    def poll(self) -> Optional[int]:
        """Return the exit code, or None while the process is running."""
        pass

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until exit. Raises ``subprocess.TimeoutExpired`` on timeout."""
        pass

    @abstractmethod
    def terminate(self) -> None:
        pass

    @abstractmethod
    def kill(self) -> None:
        pass


ProcessHandle.register(subprocess.Popen)


class ProcessRunner(ABC):
    """Spawns and runs external binaries."""

    @abstractmethod
    def which(self, name: str) -> Optional[str]:
        """Resolve a binary on the execution path.

        Args:
            name: Binary name or path

        Returns:
            Full path to the binary, or None if it cannot be found
        """
        pass

    @abstractmethod
    def spawn(self, args: Sequence[str]) -> ProcessHandle:
        """Start a long-running process and return immediately.

        The returned handle's ``stdin`` is a binary control channel.
        """
        pass

    @abstractmethod
    def run(self, args: Sequence[str]) -> ProcessResult:
        """Run a process to completion, capturing stdout and stderr."""
        pass

    @abstractmethod
    def run_attached(self, args: Sequence[str]) -> ProcessResult:
        """Run a process to completion on our own terminal, without capturing output."""
        pass


class SubprocessRunner(ProcessRunner):
    """ProcessRunner built on the ``subprocess`` module."""

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def spawn(self, args: Sequence[str]) -> ProcessHandle:
        cmd: List[str] = [str(arg) for arg in args]
        logger.debug(f"Spawning: {' '.join(cmd)}")
        # Own session: a terminal Ctrl+C must reach only us, children are
        # stopped through their control channel.
        return subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

    def run(self, args: Sequence[str]) -> ProcessResult:
        cmd: List[str] = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(cmd)}")
        completed = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            errors="replace",
            start_new_session=True,
        )
        logger.debug(f"Process exited with {completed.returncode}")
        return ProcessResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def run_attached(self, args: Sequence[str]) -> ProcessResult:
        cmd: List[str] = [str(arg) for arg in args]
        logger.debug(f"Running attached: {' '.join(cmd)}")
        # Shares our stdin/stdout and process group so terminal editors work
        completed = subprocess.run(cmd)
        logger.debug(f"Process exited with {completed.returncode}")
        return ProcessResult(returncode=completed.returncode)
