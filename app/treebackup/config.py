"""Backup configuration and settings.

This module provides the configuration model and I/O functions for
treebackup. Configuration is stored in ~/.config/treebackup/config.toml;
a missing file means all defaults apply.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from treebackup.core.paths import DEFAULT_IGNORE_FILE_NAME, get_config_path


class BackupConfig(BaseModel):
    """Configuration for backup runs.

    Attributes:
        ignore_file_name: Pattern file looked up in the source root when
            no ignore file is passed explicitly.
        verify_content: Compare bytes before hard linking from the reference.
        show_progress: Print one line per backed-up entry.
    """

    model_config = ConfigDict(extra="forbid")

    ignore_file_name: Annotated[
        str,
        Field(min_length=1, description="Ignore pattern file name in the source root"),
    ] = DEFAULT_IGNORE_FILE_NAME
    verify_content: Annotated[
        bool,
        Field(description="Verify file content before hard linking"),
    ] = False
    show_progress: Annotated[
        bool,
        Field(description="Print a line for every action"),
    ] = True

    @field_validator("ignore_file_name")
    @classmethod
    def validate_bare_name(cls, v: str) -> str:
        """Ensure the ignore file name has no directory components."""
        if Path(v).name != v:
            msg = f"ignore_file_name must be a bare file name, got '{v}'"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> BackupConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated BackupConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return BackupConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e


def load_config_or_default(path: Path | None = None) -> BackupConfig:
    """Load configuration, falling back to defaults if the file is missing.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return BackupConfig()


def save_config(config: BackupConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The BackupConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config.model_dump(), f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config {config_path}: {e}") from e

    return config_path
