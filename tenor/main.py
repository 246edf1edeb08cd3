"""Main application entry point for Tenor."""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console

from . import __version__
from .audio.recorder import AudioRecorder
from .config import LOG_LEVELS, LoggingSettings, TenorConfig, TenorSettings
from .process.runner import ProcessRunner, SubprocessRunner
from .services.pipeline import RecordingPipeline
from .transcription.transcriber import Transcriber

logger = logging.getLogger(__name__)


def setup_logging(settings: LoggingSettings, level: Optional[str] = None) -> None:
    """Set up logging from the logging section of the configuration."""
    level = (level or settings.level).upper()

    handlers = []

    # File handler - everything, when a log file is configured
    if settings.file_path:
        log_dir = Path(settings.file_path).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.file_path)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Console handler - only if enabled in config
    if settings.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Tenor starting up")
    logger.info(f"Log file: {settings.file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_pipeline(
    settings: TenorSettings,
    runner: Optional[ProcessRunner] = None,
    console: Optional[Console] = None,
) -> RecordingPipeline:
    """Wire recorder, transcriber and pipeline from validated settings."""
    runner = runner or SubprocessRunner()
    console = console or Console()
    recorder = AudioRecorder.from_settings(settings.recording, runner=runner, console=console)
    transcriber = Transcriber.from_settings(settings.transcription, runner=runner, console=console)
    editor_command = settings.editor.command if settings.editor.enabled else None
    return RecordingPipeline(
        recorder,
        transcriber,
        editor_command=editor_command,
        runner=runner,
        console=console,
    )


def _load_settings(ctx: click.Context, overrides: Dict[str, Any]) -> TenorSettings:
    """Apply command-line overrides, validate, and start logging."""
    config: TenorConfig = ctx.obj["config"]
    for key_path, value in overrides.items():
        if value is not None:
            config.set(key_path, value)

    try:
        settings = config.to_settings()
    except ValueError as e:
        raise click.ClickException(str(e))

    setup_logging(settings.logging, ctx.obj.get("log_level"))
    return settings


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    help="Path to configuration YAML file (default: ./tenor.yaml if present)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Set logging level (overrides config)",
)
@click.version_option(__version__, prog_name="Tenor")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Tenor - record from the microphone until stopped, then transcribe.

    Without a command, runs the full record-then-transcribe pipeline.
    """
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = TenorConfig(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))
    ctx.obj["log_level"] = log_level
    ctx.obj.setdefault("runner", SubprocessRunner())

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--model", help="Whisper model identifier")
@click.option("--language", help="Language code hint (default: auto-detect)")
@click.option("--output-dir", type=click.Path(file_okay=False), help="Directory for transcripts")
@click.option("--editor", help="Command that opens the finished transcript")
@click.option("--no-editor", is_flag=True, help="Do not open the transcript afterwards")
@click.pass_context
def run(
    ctx: click.Context,
    model: Optional[str] = None,
    language: Optional[str] = None,
    output_dir: Optional[str] = None,
    editor: Optional[str] = None,
    no_editor: bool = False,
) -> None:
    """Record until Ctrl+C or SIGTERM, then transcribe the recording."""
    settings = _load_settings(ctx, {
        "transcription.model": model,
        "transcription.language": language,
        "transcription.output_dir": output_dir,
        "editor.command": editor,
        "editor.enabled": False if no_editor else None,
    })
    pipeline = build_pipeline(settings, runner=ctx.obj["runner"])
    ctx.exit(pipeline.run())


@cli.command()
@click.pass_context
def record(ctx: click.Context) -> None:
    """Record until Ctrl+C or SIGTERM and keep the audio file."""
    settings = _load_settings(ctx, {})
    pipeline = build_pipeline(settings, runner=ctx.obj["runner"])
    ctx.exit(pipeline.run(transcribe=False))


@cli.command()
@click.argument("audio_file", type=click.Path(dir_okay=False))
@click.option("--model", help="Whisper model identifier")
@click.option("--language", help="Language code hint (default: auto-detect)")
@click.option("--output-dir", type=click.Path(file_okay=False), help="Directory for transcripts")
@click.pass_context
def transcribe(
    ctx: click.Context,
    audio_file: str,
    model: Optional[str],
    language: Optional[str],
    output_dir: Optional[str],
) -> None:
    """Transcribe an existing AUDIO_FILE."""
    settings = _load_settings(ctx, {
        "transcription.model": model,
        "transcription.language": language,
        "transcription.output_dir": output_dir,
    })
    transcriber = Transcriber.from_settings(settings.transcription, runner=ctx.obj["runner"])
    output_path = transcriber.transcribe_file(audio_file)
    if output_path is None:
        ctx.exit(1)
    click.echo(output_path)


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check that the recording and transcription tools are installed."""
    settings = _load_settings(ctx, {})
    pipeline = build_pipeline(settings, runner=ctx.obj["runner"])
    ctx.exit(0 if pipeline.check_dependencies() else 1)


def main() -> None:
    """Main entry point for Tenor."""
    cli(prog_name="tenor")


if __name__ == "__main__":
    main()
