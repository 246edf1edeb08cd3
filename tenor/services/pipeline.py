"""Record-then-transcribe pipeline driven by SIGINT/SIGTERM."""

import shlex
import signal
import logging
import threading
from typing import Any, Dict, Optional

from rich.console import Console

from ..audio.recorder import AudioRecorder
from ..models.audio import RecordingReport
from ..models.pipeline import PipelineState
from ..models.transcription import TranscriptionResult
from ..process.runner import ProcessRunner, SubprocessRunner
from ..transcription.transcriber import Transcriber

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class RecordingPipeline:
    """Checks dependencies, records until a stop signal, then transcribes.

    The signal handlers only set ``stop_event``. The recorder's blocking wait
    observes it, and stopping and transcribing then run on the main path.
    """

    def __init__(
        self,
        recorder: AudioRecorder,
        transcriber: Transcriber,
        editor_command: Optional[str] = "cursor",
        runner: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
    ):
        """Initialize the pipeline.

        Args:
            recorder: Records the microphone
            transcriber: Turns the recording into text
            editor_command: Command that opens a finished transcript, None to disable
            runner: Runs the editor command
            console: Where status messages are printed
        """
        self.recorder = recorder
        self.transcriber = transcriber
        self.editor_command = editor_command
        self.runner = runner or SubprocessRunner()
        self.console = console or Console()

        self.state = PipelineState.IDLE
        self.stop_event = threading.Event()
        self.stop_signal: Optional[int] = None
        self.recording_report: Optional[RecordingReport] = None
        self.transcription_result: Optional[TranscriptionResult] = None
        self._previous_handlers: Dict[int, Any] = {}

    def _set_state(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state

    def check_dependencies(self, transcribe: bool = True) -> bool:
        """Check the recorder's (and optionally the transcriber's) binaries."""
        self.console.print("🔍 Checking dependencies...")

        if not self.recorder.check_available():
            self.console.print("❌ Audio recording dependencies not met", style="red")
            return False

        if transcribe and not self.transcriber.check_available():
            self.console.print("❌ Transcription dependencies not met", style="red")
            return False

        self.console.print("✅ All dependencies satisfied", style="green")
        return True

    def handle_signal(self, signum: int, frame: Any = None) -> None:
        """Signal handler: request a stop, nothing more.

        A signal that arrives while already stopping is ignored.
        """
        if self.stop_event.is_set():
            logger.warning(f"Already stopping, ignoring signal {signum}")
            return
        self.stop_signal = signum
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        for sig in STOP_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self.handle_signal)
        logger.debug("Signal handlers installed")

    def restore_signal_handlers(self) -> None:
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
        logger.debug("Signal handlers restored")

    def _announce_stop(self) -> None:
        if self.stop_signal == signal.SIGTERM:
            self.console.print("\n\n🛑 Received SIGTERM, stopping recording...")
        elif self.stop_signal == signal.SIGINT:
            self.console.print("\n\n⏹️  Received SIGINT (Ctrl+C), stopping recording...")
        elif not self.stop_event.is_set():
            self.console.print("\n⚠️  Recording process exited on its own", style="yellow")
        logger.info(f"Recording ended (signal: {self.stop_signal})")

    def stop_recording(self) -> Optional[RecordingReport]:
        """Stop the active recording, or pick up the report of one that already ended."""
        if self.recorder.is_recording:
            self.console.print(f"Output path: {self.recorder.output_path}", markup=False)
            report = self.recorder.stop_recording()
        else:
            report = self.recorder.last_report
        self.recording_report = report
        return report

    def stop_and_transcribe(self) -> Optional[TranscriptionResult]:
        """Stop recording and transcribe whatever was captured."""
        report = self.stop_recording()
        if report is None or not report.success:
            self.console.print("❌ No audio file to transcribe", style="red")
            return None
        return self.transcribe_audio(report.output_path)

    def transcribe_audio(self, audio_path: str) -> TranscriptionResult:
        self._set_state(PipelineState.TRANSCRIBING)
        self.console.print("\n🔄 Starting automatic transcription...")

        result = self.transcriber.transcribe(self.transcriber.make_request(audio_path))
        self.transcription_result = result

        if result.success:
            self.console.print("\n🎉 Pipeline completed successfully!", style="bold green")
            self.console.print(f"Audio: {audio_path}", markup=False)
            self.console.print(f"Transcript: {result.output_path}", markup=False)
            self.open_in_editor(result.output_path)
        else:
            self.console.print("\n⚠️  Transcription failed, but audio was saved", style="yellow")
            self.console.print(f"Audio: {audio_path}", markup=False)
        return result

    def open_in_editor(self, path: str) -> bool:
        """Open a transcript with the configured editor, best-effort.

        Returns:
            True if the editor command ran and exited cleanly
        """
        if not self.editor_command:
            return False

        try:
            cmd = shlex.split(self.editor_command) + [path]
            result = self.runner.run_attached(cmd)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not open transcript in editor: {e}")
            return False

        if not result.success:
            logger.warning(f"Editor command exited with {result.returncode}")
            return False
        return True

    def run(self, transcribe: bool = True) -> int:
        """Run the pipeline.

        Args:
            transcribe: False records only and leaves the audio file

        Returns:
            Process exit status
        """
        self.console.print("🎵 Tenor", style="bold blue")
        self.console.print("========")

        self._set_state(PipelineState.CHECKING_DEPENDENCIES)
        if not self.check_dependencies(transcribe=transcribe):
            self._set_state(PipelineState.FAILED)
            self.console.print("❌ Cannot start due to missing dependencies", style="bold red")
            return 1

        self.console.print("\n📝 This will:")
        self.console.print("1. Record audio continuously from your microphone")
        if transcribe:
            self.console.print("2. When stopped, automatically transcribe the audio to text")
            self.console.print("3. Save both the audio file and transcript")
            self.console.print("\nPress Ctrl+C or send SIGTERM to stop recording and start transcription")
        else:
            self.console.print("2. When stopped, save the audio file")
            self.console.print("\nPress Ctrl+C or send SIGTERM to stop and save the recording")

        self.install_signal_handlers()
        try:
            self._set_state(PipelineState.RECORDING)
            self.console.print("\n🔴 Starting recording...")
            self.recorder.record(self.stop_event)
            self._announce_stop()

            if transcribe:
                self.stop_and_transcribe()
            else:
                report = self.stop_recording()
                if report is not None and report.success:
                    self.console.print(f"\n💾 Audio saved: {report.output_path}", markup=False)

            self._set_state(PipelineState.DONE)
            return 0
        except Exception as e:
            logger.error(f"Pipeline failed: {e}", exc_info=True)
            self.console.print(f"\n❌ Unexpected error: {e}", style="bold red", markup=False)
            self._set_state(PipelineState.FAILED)
            return 1
        finally:
            self.restore_signal_handlers()
