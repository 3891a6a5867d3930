"""Tests for hunkwork.config and hunkwork.log modules."""

import logging

import pytest

from hunkwork.config import (
    ConfigError,
    EngineConfig,
    get_config_file_path,
    load_config,
    load_config_data,
)
from hunkwork.log import configure_logging
from hunkwork.stash.models import TEMP_STASH_MESSAGE


class TestEngineConfig:
    """Tests for EngineConfig defaults and validation."""

    def test_defaults(self):
        """Test the default engine settings."""
        config = EngineConfig()

        assert config.git_executable == "git"
        assert config.patch_executable is None
        assert config.context_lines == 3
        assert config.patch_fuzz == 3
        assert config.temp_stash_message == TEMP_STASH_MESSAGE
        assert config.max_error_chars == 500
        assert config.history_page_size == 500

    def test_unknown_keys_ignored(self):
        config = EngineConfig(context_lines=5, editor="vim")

        assert config.context_lines == 5
        assert not hasattr(config, "editor")


class TestConfigPaths:
    """Tests for config path functions."""

    def test_config_file_in_home_dir(self, mocker, temp_dir):
        mocker.patch("hunkwork.config._CONFIG_DIR", temp_dir / ".hunkwork")

        assert get_config_file_path() == temp_dir / ".hunkwork" / "config.yaml"


class TestLoadConfig:
    """Tests for loading config.yaml."""

    def test_missing_file_uses_defaults(self, temp_dir):
        """Test that a missing file yields all defaults."""
        missing = temp_dir / "nope.yaml"

        assert load_config_data(missing) == {}
        assert load_config(missing) == EngineConfig()

    def test_reads_values(self, temp_dir):
        config_file = temp_dir / "config.yaml"
        config_file.write_text("context_lines: 1\npatch_fuzz: 0\nlog_level: DEBUG\n")

        config = load_config(config_file)

        assert config.context_lines == 1
        assert config.patch_fuzz == 0
        assert config.log_level == "DEBUG"

    def test_empty_file(self, temp_dir):
        config_file = temp_dir / "config.yaml"
        config_file.write_text("")

        assert load_config(config_file) == EngineConfig()

    def test_invalid_yaml(self, temp_dir):
        """Test that malformed YAML raises ConfigError."""
        config_file = temp_dir / "config.yaml"
        config_file.write_text("context_lines: [1,\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(config_file)

        assert "Failed to load config" in str(exc_info.value)

    def test_not_a_mapping(self, temp_dir):
        config_file = temp_dir / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_invalid_value(self, temp_dir):
        """Test that out-of-range values are rejected."""
        config_file = temp_dir / "config.yaml"
        config_file.write_text("context_lines: -1\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(config_file)

        assert "Invalid config" in str(exc_info.value)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_single_handler(self):
        configure_logging("WARNING")
        configure_logging("DEBUG", json_output=True)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("git").level == logging.WARNING
