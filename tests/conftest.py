"""Pytest configuration and fixtures for Tenor tests."""

import io
import os
import logging
import subprocess
import tempfile
from typing import Callable, List, Optional, Sequence

import pytest
from rich.console import Console

from tenor.audio.recorder import AudioRecorder
from tenor.process.runner import ProcessResult, ProcessRunner
from tenor.storage.file_manager import FileManager
from tenor.transcription.transcriber import Transcriber


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no external processes")
    config.addinivalue_line("markers", "integration: tests that start real subprocesses")


class FakeControlChannel:
    """Stands in for a process's stdin pipe and remembers what was written."""

    def __init__(self, broken: bool = False):
        self.data = b""
        self.closed = False
        self.broken = broken

    def write(self, data: bytes) -> int:
        if self.broken:
            raise BrokenPipeError(32, "Broken pipe")
        self.data += data
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class FakeProcess:
    """A recording process that runs until it reads the quit command."""

    def __init__(self, args: Sequence[str]):
        self.args = list(args)
        self.pid = 4242
        self.stdin = FakeControlChannel()
        self.returncode: Optional[int] = None
        self.ignores_quit = False
        self.terminated = False
        self.killed = False

    def poll(self) -> Optional[int]:
        return self.returncode

    def wait(self, timeout: Optional[float] = None) -> int:
        if self.returncode is None:
            if self.ignores_quit or b"q" not in self.stdin.data:
                raise subprocess.TimeoutExpired(self.args, timeout)
            self.returncode = 0
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9


class FakeRunner(ProcessRunner):
    """ProcessRunner that records calls instead of starting binaries."""

    def __init__(self, available: Sequence[str] = ("ffmpeg", "mlx_whisper", "cursor")):
        self.available = set(available)
        self.spawned: List[FakeProcess] = []
        self.run_calls: List[List[str]] = []
        self.on_spawn: Optional[Callable[[FakeProcess], None]] = None
        self.on_run: Optional[Callable[[List[str]], ProcessResult]] = None

    def which(self, name: str) -> Optional[str]:
        return f"/usr/local/bin/{name}" if name in self.available else None

    def spawn(self, args: Sequence[str]) -> FakeProcess:
        process = FakeProcess(args)
        self.spawned.append(process)
        if self.on_spawn:
            self.on_spawn(process)
        return process

    def run(self, args: Sequence[str]) -> ProcessResult:
        cmd = [str(arg) for arg in args]
        self.run_calls.append(cmd)
        if self.on_run:
            return self.on_run(cmd)
        return ProcessResult(returncode=0)

    def run_attached(self, args: Sequence[str]) -> ProcessResult:
        return self.run(args)

    def calls_to(self, binary: str) -> List[List[str]]:
        return [cmd for cmd in self.run_calls if cmd[0] == binary]


def _flag_value(cmd: List[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


def whisper_writing(text: str, stdout: str = "") -> Callable[[List[str]], ProcessResult]:
    """An on_run hook that behaves like mlx_whisper producing ``text``."""
    def _run(cmd: List[str]) -> ProcessResult:
        if cmd[0] != "mlx_whisper":
            return ProcessResult(returncode=0)
        output_dir = _flag_value(cmd, "--output-dir")
        output_name = _flag_value(cmd, "--output-name")
        with open(os.path.join(output_dir, f"{output_name}.txt"), "w", encoding="utf-8") as f:
            f.write(text)
        return ProcessResult(returncode=0, stdout=stdout)
    return _run


def recorder_writing(size: int) -> Callable[[FakeProcess], None]:
    """An on_spawn hook that writes ``size`` bytes to the recording path."""
    def _spawn(process: FakeProcess) -> None:
        with open(process.args[-1], "wb") as f:
            f.write(b"\x00" * size)
    return _spawn


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def console():
    """Rich console writing to a buffer; read it with ``console.file.getvalue()``."""
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sample_audio_file(temp_data_dir):
    """A small stand-in audio file on disk."""
    path = os.path.join(temp_data_dir, "meeting.wav")
    with open(path, "wb") as f:
        f.write(b"RIFF" + b"\x00" * 1020)
    return path


@pytest.fixture
def recorder(fake_runner, console, temp_data_dir):
    """AudioRecorder with fast timings that records into the test directory."""
    return AudioRecorder(
        file_manager=FileManager(temp_dir=temp_data_dir),
        runner=fake_runner,
        console=console,
        flush_delay=0,
        stop_timeout=0.05,
        poll_interval=0.01,
    )


@pytest.fixture
def transcriber(fake_runner, console, temp_data_dir):
    return Transcriber(
        model="tiny",
        output_dir=os.path.join(temp_data_dir, "transcripts"),
        runner=fake_runner,
        console=console,
    )


@pytest.fixture
def make_whisper():
    """Factory for on_run hooks that simulate mlx_whisper."""
    return whisper_writing


@pytest.fixture
def make_recording():
    """Factory for on_spawn hooks that simulate ffmpeg writing audio."""
    return recorder_writing
