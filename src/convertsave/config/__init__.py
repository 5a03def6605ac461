"""Configuration: environment, data paths, tool overrides and settings."""

from convertsave.config.builder import (
    SettingsBuilder,
    SettingsSource,
    source_from_env,
    source_from_file,
)
from convertsave.config.env import EnvReader
from convertsave.config.loader import (
    SettingsParseError,
    clear_settings_cache,
    get_settings,
    load_settings_file,
)
from convertsave.config.models import (
    AppSettings,
    LicenseConfig,
    LoggingConfig,
    ServerConfig,
)
from convertsave.config.paths import APP_ID, DEV_APP_ID, AppPaths
from convertsave.config.tool_config import ToolConfig, ToolConfigStore

__all__ = [
    # Builder
    "SettingsBuilder",
    "SettingsSource",
    "source_from_env",
    "source_from_file",
    # Environment
    "EnvReader",
    # Loader
    "SettingsParseError",
    "clear_settings_cache",
    "get_settings",
    "load_settings_file",
    # Models
    "AppSettings",
    "LicenseConfig",
    "LoggingConfig",
    "ServerConfig",
    # Paths
    "APP_ID",
    "DEV_APP_ID",
    "AppPaths",
    # Tool overrides
    "ToolConfig",
    "ToolConfigStore",
]
