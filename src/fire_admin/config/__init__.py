"""Config – settings dataclasses and loaders."""

from fire_admin.config.settings import EnvSettingsLoader, MessagingSettings, Settings, SettingsLoader
from fire_admin.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MessagingSettings",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
