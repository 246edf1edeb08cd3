"""Simple YAML configuration loader for Tenor."""

import os
import sys
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "tenor.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _default_input() -> Dict[str, str]:
    """ffmpeg input for the default microphone on this platform."""
    if sys.platform.startswith("linux"):
        return {"input_format": "pulse", "input_device": "default"}
    return {"input_format": "avfoundation", "input_device": ":0"}


class RecordingSettings(BaseModel):
    binary: str = "ffmpeg"
    input_format: str = Field(default_factory=lambda: _default_input()["input_format"])
    input_device: str = Field(default_factory=lambda: _default_input()["input_device"])
    sample_rate: int = Field(default=44100, gt=0)
    channels: int = Field(default=1, ge=1, le=2)
    audio_format: str = "wav"
    temp_dir: Optional[str] = None
    temp_prefix: str = "audio_recording_"
    flush_delay: float = Field(default=0.2, ge=0)
    stop_timeout: float = Field(default=10.0, gt=0)
    poll_interval: float = Field(default=0.1, gt=0)


class TranscriptionSettings(BaseModel):
    binary: str = "mlx_whisper"
    model: str = "mlx-community/whisper-large-v3-mlx"
    language: Optional[str] = None
    output_dir: str = "./transcripts"
    preview_chars: int = Field(default=200, gt=0)

    @field_validator("language")
    @classmethod
    def _blank_language_is_auto(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class EditorSettings(BaseModel):
    command: Optional[str] = "cursor"
    enabled: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"
    file_path: Optional[str] = "logs/tenor.log"
    console_output: bool = False

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return level


class TenorSettings(BaseModel):
    """Validated view of the whole configuration."""
    recording: RecordingSettings = Field(default_factory=RecordingSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class TenorConfig:
    """Tenor configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses tenor.yaml
                        from the current directory when present and built-in
                        defaults otherwise.
        """
        if config_path:
            self.config_file: Optional[Path] = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        else:
            candidate = Path.cwd() / DEFAULT_CONFIG_NAME
            self.config_file = candidate if candidate.exists() else None

        if self.config_file is None:
            logger.info("No configuration file, using defaults")
            self.config: Dict[str, Any] = {}
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        self._resolve_paths(config)
        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (
            ('transcription', 'output_dir'),
            ('recording', 'temp_dir'),
            ('logging', 'file_path'),
        ):
            section_values = config.get(section)
            if not isinstance(section_values, dict):
                continue
            value = section_values.get(key)
            if value and not os.path.isabs(value):
                section_values[key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'transcription.model').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'transcription.language')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if not isinstance(config_dict.get(key), dict):
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def to_settings(self) -> TenorSettings:
        """Validate the loaded values.

        Raises:
            ValueError: If any value has the wrong type or is out of range
        """
        try:
            return TenorSettings.model_validate(copy.deepcopy(self.config))
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}")


__all__ = [
    "TenorConfig",
    "TenorSettings",
    "RecordingSettings",
    "TranscriptionSettings",
    "EditorSettings",
    "LoggingSettings",
]
