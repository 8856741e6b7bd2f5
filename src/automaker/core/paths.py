"""XDG-compliant path helpers for Automaker data storage."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

PROJECT_STATE_DIRNAME = ".automaker"


def get_data_dir() -> Path:
    """Get the data directory for Automaker (settings, logs)."""
    override = os.environ.get("AUTOMAKER_DATA_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_data_dir("automaker"))


def get_config_dir() -> Path:
    """Get the config directory for Automaker (config.toml)."""
    override = os.environ.get("AUTOMAKER_CONFIG_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_config_dir("automaker"))


def get_config_path() -> Path:
    """Get the path to the main config file."""
    return get_config_dir() / "config.toml"


def get_settings_path() -> Path:
    """Get the path to the settings file shared with the settings surface."""
    return get_data_dir() / "settings.json"


def get_features_dir(project_path: Path) -> Path:
    """Get the directory holding per-feature folders inside a project."""
    return project_path / PROJECT_STATE_DIRNAME / "features"


def ensure_directories() -> None:
    """Create all required directories."""
    get_data_dir().mkdir(parents=True, exist_ok=True)
    get_config_dir().mkdir(parents=True, exist_ok=True)
