"""
Core configuration module for the usergate project.

Provides centralized configuration management with support for directory paths,
environment variable overrides and secret masking.
"""

from usergate.core.config.config import Config, CoreConfig, CoreSettings, SettingsLike

__all__ = ["Config", "CoreConfig", "CoreSettings", "SettingsLike"]
