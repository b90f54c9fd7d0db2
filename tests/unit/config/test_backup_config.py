"""Unit tests for backup configuration loading and saving."""

import tomllib
from pathlib import Path

import pytest
from treebackup.config import (
    BackupConfig,
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    load_config,
    load_config_or_default,
    save_config,
)
from treebackup.core.paths import get_config_path


class TestBackupConfig:
    """Tests for the BackupConfig model."""

    def test_defaults(self) -> None:
        """Defaults match the original tool's conventions."""
        config = BackupConfig()

        assert config.ignore_file_name == "wbck-ignore.txt"
        assert config.verify_content is False
        assert config.show_progress is True

    def test_rejects_nested_ignore_file_name(self) -> None:
        """The ignore file name must not contain directories."""
        with pytest.raises(ValueError, match="bare file name"):
            BackupConfig(ignore_file_name="sub/ignore.txt")

    def test_rejects_unknown_keys(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValueError):
            BackupConfig.model_validate({"compression": True})


class TestLoadConfig:
    """Tests for load_config and load_config_or_default."""

    def test_not_found(self, tmp_path: Path) -> None:
        """A missing file raises ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "config.toml")

    def test_default_when_missing(self, tmp_path: Path) -> None:
        """load_config_or_default falls back to defaults."""
        assert load_config_or_default(tmp_path / "config.toml") == BackupConfig()

    def test_loads_values(self, tmp_path: Path) -> None:
        """Values from the file are applied."""
        path = tmp_path / "config.toml"
        path.write_text('ignore_file_name = ".backupignore"\nverify_content = true\n')

        config = load_config(path)

        assert config.ignore_file_name == ".backupignore"
        assert config.verify_content is True
        assert config.show_progress is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("verify_content = \n")

        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config_or_default(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text('verify_content = "maybe"\n')

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_uses_xdg_path_by_default(self, isolated_config_home: Path) -> None:
        """Without a path the XDG config file is read."""
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("show_progress = false\n")

        assert path.is_relative_to(isolated_config_home)
        assert load_config().show_progress is False


class TestSaveConfig:
    """Tests for save_config."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back unchanged."""
        path = tmp_path / "nested" / "config.toml"
        config = BackupConfig(verify_content=True)

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config
        with open(path, "rb") as f:
            assert tomllib.load(f)["ignore_file_name"] == "wbck-ignore.txt"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Only the config file remains after saving."""
        save_config(BackupConfig(), tmp_path / "config.toml")

        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]

    def test_write_failure(self, tmp_path: Path) -> None:
        """Unwritable locations raise ConfigError."""
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(ConfigError, match="Failed to write config"):
            save_config(BackupConfig(), blocker / "config.toml")
