"""Config – 12-factor settings and loaders."""

from isolab.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    HarnessSettings,
    Settings,
    SettingsLoader,
)
from isolab.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "HarnessSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
