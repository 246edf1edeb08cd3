"""Continuous microphone recording through an external ffmpeg process."""

import time
import logging
import threading
import subprocess
from datetime import datetime
from typing import List, Optional

from rich.console import Console

from ..config import RecordingSettings
from ..models.audio import RecordingReport
from ..models.session import RecordingSession
from ..process.runner import ProcessHandle, ProcessRunner, SubprocessRunner
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)

# ffmpeg's interactive quit key; it finishes the container before exiting
QUIT_COMMAND = b"q\n"


class AudioRecorder:
    """Records the default microphone until told to stop."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        input_format: str = "avfoundation",
        input_device: str = ":0",
        sample_rate: int = 44100,
        channels: int = 1,
        file_manager: Optional[FileManager] = None,
        runner: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
        flush_delay: float = 0.2,
        stop_timeout: float = 10.0,
        poll_interval: float = 0.1,
    ):
        """Initialize the recorder.

        Args:
            binary: Recording executable
            input_format: ffmpeg input format (avfoundation, pulse, ...)
            input_device: ffmpeg input device for the default microphone
            sample_rate: Capture sample rate in Hz
            channels: Number of audio channels (1 for mono)
            file_manager: Allocates the temporary recording file
            runner: Starts the recording process
            console: Where status messages are printed
            flush_delay: Seconds to wait for the filesystem after the process exits
            stop_timeout: Seconds to wait for a graceful quit before terminating
            poll_interval: Seconds between checks while recording
        """
        self.binary = binary
        self.input_format = input_format
        self.input_device = input_device
        self.sample_rate = sample_rate
        self.channels = channels
        self.file_manager = file_manager or FileManager()
        self.runner = runner or SubprocessRunner()
        self.console = console or Console()
        self.flush_delay = flush_delay
        self.stop_timeout = stop_timeout
        self.poll_interval = poll_interval

        self.session: Optional[RecordingSession] = None
        self.last_report: Optional[RecordingReport] = None

    @classmethod
    def from_settings(
        cls,
        settings: RecordingSettings,
        runner: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
    ) -> "AudioRecorder":
        file_manager = FileManager(
            temp_dir=settings.temp_dir,
            temp_prefix=settings.temp_prefix,
            audio_format=settings.audio_format,
        )
        return cls(
            binary=settings.binary,
            input_format=settings.input_format,
            input_device=settings.input_device,
            sample_rate=settings.sample_rate,
            channels=settings.channels,
            file_manager=file_manager,
            runner=runner,
            console=console,
            flush_delay=settings.flush_delay,
            stop_timeout=settings.stop_timeout,
            poll_interval=settings.poll_interval,
        )

    @property
    def output_path(self) -> Optional[str]:
        return self.session.output_path if self.session else None

    @property
    def is_recording(self) -> bool:
        return self.session is not None and self.session.active

    def check_available(self) -> bool:
        """Check that the recording binary is on PATH."""
        if self.runner.which(self.binary) is None:
            logger.error(f"Recording binary not found: {self.binary}")
            self.console.print(f"Error: '{self.binary}' not found!", style="red", markup=False)
            self.console.print("Please install it with:")
            self.console.print("  brew install ffmpeg        (macOS)")
            self.console.print("  sudo apt install ffmpeg    (Debian/Ubuntu)")
            return False

        self.console.print(f"Using {self.binary} for audio recording", markup=False)
        return True

    def build_command(self, output_path: str) -> List[str]:
        return [
            self.binary,
            "-f", self.input_format,
            "-i", self.input_device,
            "-ar", str(self.sample_rate),
            "-ac", str(self.channels),
            "-y",
            output_path,
        ]

    def record(self, stop_event: Optional[threading.Event] = None) -> None:
        """Record into a fresh temporary file until stopped.

        Blocks until ``stop_event`` is set or the recording process exits on
        its own. In the first case the process is still running and the caller
        finishes it with :meth:`stop_recording`; in the second the recording
        is finalized here and its report is left in ``last_report``.

        Args:
            stop_event: Cancellation flag, typically set from a signal handler
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        if stop_event is None:
            stop_event = threading.Event()
        self.last_report = None

        output_path = self.file_manager.create_temp_audio_file()

        self.console.print("\n🎙️  Audio Recorder - Continuous Mode")
        self.console.print(f"Format: {self.file_manager.audio_format}")
        self.console.print(f"Sample Rate: {self.sample_rate} Hz")
        self.console.print(f"Channels: {'Mono' if self.channels == 1 else 'Stereo'}")
        self.console.print(f"Output: {output_path}", markup=False)

        try:
            self._start_recording(output_path)
            exit_code = self._wait_for_stop(stop_event)
            if exit_code is not None:
                logger.warning(f"Recording process exited on its own with code {exit_code}")
                self.session.active = False
                self.session.process = None
                self._finalize_recording(self.session)
        except KeyboardInterrupt:
            # Caller installed no signal handler; Ctrl+C still means stop
            logger.info("Interrupted, stop requested")
        except Exception as e:
            logger.error(f"Recording failed: {e}", exc_info=True)
            self.console.print(f"\n❌ Recording failed: {e}", style="red", markup=False)
            self._abort()
        finally:
            if not self.is_recording:
                self.file_manager.remove_if_empty(output_path)

    def _start_recording(self, output_path: str) -> None:
        cmd = self.build_command(output_path)
        logger.info(f"Starting recording: {' '.join(cmd)}")
        self.console.print("Starting continuous recording...")
        self.console.print(f"Command: {' '.join(cmd)}", markup=False, emoji=False)

        self.session = RecordingSession(output_path=output_path, start_time=datetime.now())
        self.session.process = self.runner.spawn(cmd)
        logger.info(f"Recording process started (PID: {self.session.process.pid})")
        self.console.print("\n🔴 Recording started... Speak now!", style="bold red")

    def _wait_for_stop(self, stop_event: threading.Event) -> Optional[int]:
        """Wait for a stop request or process exit.

        Returns:
            The exit code if the process ended by itself, None if stop was requested
        """
        process = self.session.process
        while not stop_event.is_set():
            exit_code = process.poll()
            if exit_code is not None:
                return exit_code
            stop_event.wait(self.poll_interval)
        logger.info("Stop requested")
        return None

    def stop_recording(self) -> Optional[RecordingReport]:
        """Ask the recording process to quit and report the result.

        Does nothing when no recording is active.

        Returns:
            Report for the finished recording, or None if nothing was recording
        """
        session = self.session
        if session is None or not session.active:
            logger.info("No recording in progress")
            return None

        session.active = False
        process = session.process

        if process is not None:
            logger.info(f"Gracefully stopping recording process (PID: {process.pid})")
            self.console.print(f"Gracefully stopping {self.binary} process (PID: {process.pid})...")
            self._send_quit(process)
            self._wait_for_exit(process)
            session.process = None

        return self._finalize_recording(session)

    def _send_quit(self, process: ProcessHandle) -> None:
        channel = process.stdin
        if channel is None or channel.closed:
            return
        try:
            channel.write(QUIT_COMMAND)
            channel.flush()
        except OSError as e:
            # Broken pipe: the process is already gone
            logger.warning(f"Could not send quit command: {e}")
        try:
            channel.close()
        except OSError as e:
            logger.debug(f"Error closing control channel: {e}")

    def _wait_for_exit(self, process: ProcessHandle) -> int:
        try:
            exit_code = process.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Recording process ignored quit for {self.stop_timeout}s, terminating")
            process.terminate()
            try:
                exit_code = process.wait(timeout=self.stop_timeout)
            except subprocess.TimeoutExpired:
                logger.error("Recording process did not terminate, killing")
                process.kill()
                exit_code = process.wait()
        logger.info(f"Recording process exited with code {exit_code}")
        return exit_code

    def _finalize_recording(self, session: RecordingSession) -> RecordingReport:
        # Give filesystem time to sync
        time.sleep(self.flush_delay)

        duration = session.elapsed_seconds
        file_size = self.file_manager.file_size(session.output_path)
        success = bool(file_size)

        if success:
            logger.info(f"Recording saved: {session.output_path} ({file_size} bytes, {duration:.2f}s)")
            self.console.print("\n✅ Recording completed successfully!", style="green")
            self.console.print(f"Duration: {duration:.2f} seconds")
            self.console.print(f"File size: {file_size} bytes")
            self.console.print(f"Temporary file: {session.output_path}", markup=False)
        else:
            logger.error(f"Recording empty or missing: {session.output_path}")
            self.console.print("\n❌ Recording failed - output file is empty or doesn't exist", style="red")
            self.file_manager.remove_if_empty(session.output_path)

        self.last_report = RecordingReport(
            output_path=session.output_path,
            duration_seconds=duration,
            file_size_bytes=file_size,
            success=success,
        )
        return self.last_report

    def _abort(self) -> None:
        """Tear down a session that failed before it could be stopped normally."""
        session = self.session
        if session is None:
            return
        session.active = False
        process = session.process
        session.process = None
        if process is not None:
            process.terminate()
            try:
                process.wait(timeout=self.stop_timeout)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
