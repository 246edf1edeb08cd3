"""Speech-to-text through the external mlx_whisper command."""

import os
import time
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console

from ..config import TranscriptionSettings
from ..models.transcription import TranscriptionRequest, TranscriptionResult
from ..process.runner import ProcessRunner, SubprocessRunner
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200


def build_preview(content: str, limit: int = PREVIEW_CHARS) -> str:
    """Bounded excerpt of a transcript.

    Content of at most ``limit`` characters is returned whole. Longer content
    is cut after index ``limit`` (so ``limit + 1`` characters are kept) and
    followed by a note with the total length.
    """
    if len(content) <= limit:
        return content
    return (
        f"{content[:limit + 1]}..."
        f"\n\n(Showing first {limit} characters of {len(content)} total)"
    )


class Transcriber:
    """Runs mlx_whisper on audio files and keeps the transcripts."""

    def __init__(
        self,
        model: str = "mlx-community/whisper-large-v3-mlx",
        language: Optional[str] = None,
        output_dir: str = "./transcripts",
        binary: str = "mlx_whisper",
        runner: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
        preview_chars: int = PREVIEW_CHARS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the transcriber.

        Args:
            model: Whisper model identifier passed to --model
            language: Language code hint, None to auto-detect
            output_dir: Directory for transcript files, created on first use
            binary: Transcription executable
            runner: Runs the transcription process
            console: Where status messages are printed
            preview_chars: Preview length shown after a transcription
            clock: Source of the timestamp in transcript file names
        """
        self.model = model
        self.language = language
        self.output_dir = output_dir
        self.binary = binary
        self.runner = runner or SubprocessRunner()
        self.console = console or Console()
        self.preview_chars = preview_chars
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: TranscriptionSettings,
        runner: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
    ) -> "Transcriber":
        return cls(
            model=settings.model,
            language=settings.language,
            output_dir=settings.output_dir,
            binary=settings.binary,
            runner=runner,
            console=console,
            preview_chars=settings.preview_chars,
        )

    def check_available(self) -> bool:
        """Check that the transcription binary is on PATH."""
        if self.runner.which(self.binary) is None:
            logger.error(f"Transcription binary not found: {self.binary}")
            self.console.print(f"❌ {self.binary} command not found!", style="red", markup=False)
            self.console.print("Please install it with:")
            self.console.print("  pip install mlx-whisper")
            self.console.print("\nOr follow the installation guide at:")
            self.console.print("  https://github.com/ml-explore/mlx-examples/tree/main/whisper")
            self.console.print(f"\nAfter installation, make sure '{self.binary}' is in your PATH", markup=False)
            return False

        self.console.print(f"✅ {self.binary} command found", style="green", markup=False)
        return True

    def make_request(self, audio_path: str) -> TranscriptionRequest:
        return TranscriptionRequest(
            audio_path=str(audio_path),
            model=self.model,
            language=self.language,
            output_dir=str(self.output_dir),
        )

    def build_command(self, request: TranscriptionRequest, output_file: Path) -> List[str]:
        # mlx_whisper appends the format's extension to --output-name itself
        cmd = [
            self.binary,
            request.audio_path,
            "--model", request.model,
            "--output-dir", str(output_file.parent),
            "--output-name", output_file.stem,
            "--output-format", "txt",
        ]
        if request.language:
            cmd.extend(["--language", request.language])
        return cmd

    def transcribe_file(self, audio_path: str) -> Optional[str]:
        """Transcribe an audio file with the configured model and language.

        Returns:
            Path of the transcript, or None on any failure
        """
        result = self.transcribe(self.make_request(audio_path))
        return result.output_path if result.success else None

    def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        """Run one transcription. Failures are reported, never raised."""
        try:
            return self._transcribe(request)
        except Exception as e:
            logger.error(f"Unexpected transcription error: {e}", exc_info=True)
            self.console.print(f"❌ Failed to execute transcription: {e}", style="red", markup=False)
            return TranscriptionResult(success=False, error=str(e))

    def _transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        audio_path = request.audio_path
        if not os.path.exists(audio_path):
            logger.error(f"Audio file not found: {audio_path}")
            self.console.print(f"❌ Audio file not found: {audio_path}", style="red", markup=False)
            return TranscriptionResult(success=False, error=f"Audio file not found: {audio_path}")

        if not self.check_available():
            self.console.print("❌ Dependencies not met for transcription", style="red")
            return TranscriptionResult(success=False, error=f"{self.binary} not found")

        self.console.print("\n🎯 Starting transcription...")
        self.console.print(f"Audio file: {audio_path}", markup=False)
        self.console.print(f"Model: {request.model}", markup=False)
        self.console.print(f"Language: {request.language or 'auto-detect'}", markup=False)

        file_manager = FileManager(output_dir=request.output_dir)
        file_manager.ensure_output_directory()
        output_file = file_manager.transcript_path(audio_path, now=self.clock())

        cmd = self.build_command(request, output_file)
        logger.info(f"Running: {' '.join(cmd)}")
        self.console.print(f"Running: {' '.join(cmd)}", markup=False, emoji=False)

        start_time = time.time()
        process_result = self.runner.run(cmd)
        duration = time.time() - start_time

        if not process_result.success:
            error = process_result.stderr.strip() or f"exit code {process_result.returncode}"
            logger.error(f"Transcription failed ({process_result.returncode}): {error}")
            self.console.print("❌ Transcription error:", style="red")
            if process_result.stderr.strip():
                self.console.print(process_result.stderr.rstrip(), markup=False, emoji=False)
            self.console.print("❌ Transcription failed", style="red")
            return TranscriptionResult(success=False, error=error, duration_seconds=duration)

        self.console.print("📝 Transcription output:")
        if process_result.stdout.strip():
            self.console.print(process_result.stdout.rstrip(), markup=False, emoji=False)

        self.console.print("\n✅ Transcription completed successfully!", style="green")
        self.console.print(f"Duration: {duration:.2f} seconds")

        if not output_file.exists():
            logger.error(f"Transcription reported success but {output_file} was not created")
            self.console.print("❌ Output file was not created", style="red")
            return TranscriptionResult(
                success=False,
                error=f"Output file was not created: {output_file}",
                duration_seconds=duration,
            )

        self.console.print(f"Output file: {output_file}", markup=False)
        self.console.print(f"File size: {file_manager.file_size(str(output_file))} bytes")

        try:
            content = file_manager.read_transcript(str(output_file))
        except OSError as e:
            logger.error(f"Could not read transcript {output_file}: {e}")
            self.console.print(f"❌ Could not read transcription file: {e}", style="red", markup=False)
            return TranscriptionResult(
                success=False,
                error=f"Could not read transcription file: {e}",
                duration_seconds=duration,
            )

        preview = build_preview(content, self.preview_chars)
        self._display_preview(preview)

        logger.info(f"Transcript written: {output_file} ({len(content)} characters)")
        return TranscriptionResult(
            success=True,
            output_path=str(output_file),
            preview_text=preview,
            duration_seconds=duration,
        )

    def _display_preview(self, preview: str) -> None:
        if not preview:
            self.console.print("⚠️  Transcription file is empty", style="yellow")
            return

        self.console.print("\n📄 Transcription preview:")
        self.console.print("=" * 50)
        self.console.print(preview, markup=False, emoji=False)
        self.console.print("=" * 50)
