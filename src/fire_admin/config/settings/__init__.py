"""Config settings – environment-based configuration."""
from fire_admin.config.settings.base import Settings
from fire_admin.config.settings.loaders import EnvSettingsLoader, SettingsLoader
from fire_admin.config.settings.messaging import MessagingSettings

__all__ = ["EnvSettingsLoader", "MessagingSettings", "Settings", "SettingsLoader"]
