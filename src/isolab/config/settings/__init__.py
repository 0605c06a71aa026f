"""Config settings – 12-factor env-based configuration."""
from isolab.config.settings.base import Settings
from isolab.config.settings.harness import HarnessSettings
from isolab.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "HarnessSettings", "Settings", "SettingsLoader"]
