"""
Configuration management for termclean.

This module provides configuration loading, validation, and management
for the input, output and logging concerns around the cleaning pipeline.
The cleaning rules themselves are fixed and are not configurable.
"""

import logging
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from .models import ErrorSeverity, ProcessingError, ProcessingStage

logger = logging.getLogger(__name__)

SIZE_UNITS = {'B': 1, 'KB': 1024, 'MB': 1024**2, 'GB': 1024**3}

DEFAULT_CONFIG_FILE = "termclean.yaml"


def parse_size(value: str) -> int:
    """
    Convert a size string such as ``"10MB"`` into a number of bytes.

    Raises:
        ValueError: If the string is not a positive size with a B/KB/MB/GB unit
    """
    if not isinstance(value, str):
        raise ValueError("Size must be a string")

    text = value.strip().upper()
    try:
        if text[-2:] in SIZE_UNITS:
            size_value = float(text[:-2])
            unit = text[-2:]
        elif text[-1:] == 'B':
            size_value = float(text[:-1])
            unit = 'B'
        else:
            raise ValueError("Invalid size format")
    except (ValueError, IndexError):
        raise ValueError("Size must be in format like '100KB', '10MB', '1GB', etc.")

    if size_value <= 0:
        raise ValueError("Size must be positive")

    return int(size_value * SIZE_UNITS[unit])


class BaseConfig(BaseModel):
    """Base configuration class with common validation."""

    model_config = ConfigDict(
        extra="forbid",  # Don't allow extra fields
        validate_assignment=True
    )


class InputConfig(BaseConfig):
    """Configuration for acquiring and decoding input text."""
    max_input_size: str = Field(default="10MB")
    encoding: Optional[str] = None
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    fallback_encodings: List[str] = Field(default=["utf-8", "cp1252", "latin-1"])
    strict_encoding: bool = False
    file_patterns: List[str] = Field(default=["*.txt", "*.log", "*.out"])

    @field_validator('max_input_size')
    @classmethod
    def validate_input_size(cls, v):
        """Validate size format."""
        parse_size(v)
        return v

    @field_validator('fallback_encodings', 'file_patterns')
    @classmethod
    def validate_not_empty(cls, v):
        """Ensure list settings are not empty."""
        if not v:
            raise ValueError("At least one entry is required")
        return v

    def max_input_bytes(self) -> int:
        """Get the input size limit in bytes."""
        return parse_size(self.max_input_size)


class OutputConfig(BaseConfig):
    """Configuration for writing cleaned text and statistics."""
    show_stats: bool = False
    stats_format: str = Field(default="text", pattern="^(text|json)$")
    encoding: str = "utf-8"
    suffix: str = ""


class CleanerConfig(BaseConfig):
    """Main termclean configuration."""
    name: str = "termclean"
    version: str = "1.0.0"

    input: InputConfig = Field(default_factory=InputConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    @model_validator(mode='before')
    @classmethod
    def unwrap_section(cls, data):
        """Accept configs nested under a top-level ``termclean`` key."""
        if isinstance(data, dict) and 'termclean' in data and len(data) == 1:
            return data['termclean'] or {}
        return data


class ConfigManager:
    """
    Configuration manager for loading and validating YAML configurations.

    Handles loading of configuration files and provides validated
    configuration objects for the command-line front end.
    """

    def __init__(self, config_dir: str = "configs"):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir)
        self._configs: Dict[str, Any] = {}

        if not self.config_dir.exists():
            raise FileNotFoundError(f"Configuration directory not found: {config_dir}")

    def load_cleaner_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> CleanerConfig:
        """
        Load and validate the cleaner configuration.

        Args:
            config_file: Configuration file name inside the config directory

        Returns:
            Validated CleanerConfig object

        Raises:
            ValueError: If configuration is invalid
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            # Create default config if it doesn't exist
            default_config = CleanerConfig()
            self._save_config(config_path, default_config.model_dump())
            self._configs['cleaner'] = default_config
            return default_config

        cleaner_config = _read_config_file(config_path)
        self._configs['cleaner'] = cleaner_config
        return cleaner_config

    def save_config_template(self, config_file: str = DEFAULT_CONFIG_FILE) -> Path:
        """
        Write the default configuration to ``config_file`` and return its path.

        Raises:
            ProcessingError: If the file cannot be written
        """
        config_path = self.config_dir / config_file
        try:
            _write_config(config_path, CleanerConfig().model_dump())
        except OSError as e:
            raise ProcessingError(
                stage=ProcessingStage.OUTPUT.value,
                error_type="WriteError",
                message=f"Cannot write {config_path}: {e.strerror or e}",
                severity=ErrorSeverity.HIGH,
                document_id=str(config_path)
            )
        return config_path

    def _save_config(self, config_path: Path, config_data: Dict[str, Any]) -> None:
        """Save configuration to file, warning if it cannot be written."""
        try:
            _write_config(config_path, config_data)
            logger.info("Wrote default configuration to %s", config_path)
        except OSError as e:
            logger.warning("Could not save default config to %s: %s", config_path, e)

    def get_config(self, config_key: str) -> Optional[Any]:
        """Get cached configuration by key."""
        return self._configs.get(config_key)


def _write_config(config_path: Path, config_data: Dict[str, Any]) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_data, f, default_flow_style=False, indent=2, sort_keys=False)


def _read_config_file(config_path: Path) -> CleanerConfig:
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path.name}: {e}")

    if not config_data:
        config_data = {}
    if not isinstance(config_data, dict):
        raise ValueError(f"Invalid config in {config_path.name}: expected a mapping")

    try:
        return CleanerConfig(**config_data)
    except ValueError as e:
        raise ValueError(f"Error loading cleaner config: {e}")


def load_config(config_path: Optional[str] = None) -> CleanerConfig:
    """
    Load configuration from an explicit YAML file, or return defaults.

    Args:
        config_path: Path to a YAML configuration file, or None for defaults

    Returns:
        Validated CleanerConfig instance

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not valid YAML or fails validation
    """
    if not config_path:
        return CleanerConfig()

    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    return _read_config_file(path)
