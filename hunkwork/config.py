"""Engine configuration for hunkwork.

Settings live in ~/.hunkwork/config.yaml (or a file passed explicitly).
The engine only reads this file; a missing file means all defaults.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hunkwork.git.exceptions import DEFAULT_MAX_ERROR_CHARS
from hunkwork.stash.models import TEMP_STASH_MESSAGE


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is invalid."""
    pass


_CONFIG_DIR = Path.home() / ".hunkwork"


class EngineConfig(BaseModel):
    """Settings shared by the runner, reconciler, hunk engine and CLI."""

    model_config = ConfigDict(extra="ignore")

    git_executable: str = "git"
    patch_executable: Optional[str] = None
    context_lines: int = Field(default=3, ge=0)
    patch_fuzz: int = Field(default=3, ge=0)
    temp_stash_message: str = TEMP_STASH_MESSAGE
    max_error_chars: int = Field(default=DEFAULT_MAX_ERROR_CHARS, gt=0)
    history_page_size: int = Field(default=500, gt=0)
    log_level: str = "INFO"
    log_json: bool = False


def get_config_dir() -> Path:
    """Get the hunkwork configuration directory.

    Returns:
        Path to ~/.hunkwork/
    """
    return _CONFIG_DIR


def get_config_file_path() -> Path:
    """Get path to config.yaml file.

    Returns:
        Path to ~/.hunkwork/config.yaml
    """
    return get_config_dir() / "config.yaml"


def load_config_data(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load raw configuration values from YAML.

    Args:
        config_file: File to read; defaults to ~/.hunkwork/config.yaml.

    Returns:
        Dictionary with configuration values. Empty dict if file doesn't exist.
    """
    config_file = Path(config_file) if config_file else get_config_file_path()

    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {config_file}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Failed to load config from {config_file}: expected a mapping")
    return data


def load_config(config_file: Optional[Path] = None) -> EngineConfig:
    """Load the engine configuration, filling in defaults.

    Args:
        config_file: File to read; defaults to ~/.hunkwork/config.yaml.

    Raises:
        ConfigError: If the file is unreadable or holds invalid values.
    """
    data = load_config_data(config_file)
    try:
        return EngineConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_file or get_config_file_path()}: {e}")
