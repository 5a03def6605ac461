"""Settings loader with precedence handling.

Settings are loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_settings)
2. Environment variables (CONVERTSAVE_*)
3. settings.toml in the app data directory
4. Default values

Environment variables:
- CONVERTSAVE_DATA_DIR: Replaces the platform data directory
- CONVERTSAVE_DEV: "1" selects the development app identifier
- CONVERTSAVE_API_URL: License server root
- CONVERTSAVE_LOG_LEVEL / CONVERTSAVE_LOG_FILE / CONVERTSAVE_LOG_FORMAT
- CONVERTSAVE_SERVER_BIND / CONVERTSAVE_SERVER_PORT
"""

from __future__ import annotations

import logging
import threading
import tomllib
from pathlib import Path
from typing import Any

from convertsave.config.builder import (
    SettingsBuilder,
    SettingsSource,
    source_from_env,
    source_from_file,
)
from convertsave.config.env import EnvReader
from convertsave.config.models import AppSettings
from convertsave.config.paths import AppPaths
from convertsave.exceptions import ConvertSaveError

logger = logging.getLogger(__name__)

# Cache for loaded settings files (path -> (parsed dict, mtime))
_settings_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_settings_cache_lock = threading.Lock()


class SettingsParseError(ConvertSaveError):
    """Raised when settings.toml is not valid TOML (strict mode only)."""


def load_settings_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Load settings from a TOML file.

    Results are cached with mtime-based invalidation.

    Args:
        path: Path to settings.toml.
        strict: If True, raise SettingsParseError on parse failures.
                If False (default), return an empty dict on errors.

    Returns:
        Parsed settings dict. Empty dict if the file doesn't exist.

    Raises:
        SettingsParseError: When strict=True and the file cannot be parsed.
    """
    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _settings_cache_lock:
        cached = _settings_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result: dict[str, Any] = {}
        if current_mtime:
            try:
                with path.open("rb") as f:
                    result = tomllib.load(f)
                logger.debug("Loaded settings from %s", path)
            except (OSError, tomllib.TOMLDecodeError) as e:
                if strict:
                    raise SettingsParseError(f"Invalid settings file {path}: {e}") from e
                logger.warning("Failed to load settings file %s: %s", path, e)
        _settings_cache[path] = (result, current_mtime)
        return result


def clear_settings_cache() -> None:
    """Clear the settings file cache. Primarily useful for testing."""
    with _settings_cache_lock:
        _settings_cache.clear()


def get_settings(
    settings_path: Path | None = None,
    *,
    cli_source: SettingsSource | None = None,
    env_reader: EnvReader | None = None,
    strict: bool = False,
) -> AppSettings:
    """Get settings with full precedence handling.

    Args:
        settings_path: Explicit settings file (defaults to the app dir).
        cli_source: Values given on the command line.
        env_reader: Optional EnvReader for testing.
        strict: If True, raise on settings file parse failures.

    Returns:
        AppSettings with merged values.
    """
    reader = env_reader or EnvReader()
    if settings_path is None:
        settings_path = AppPaths.from_env(reader).settings_file

    file_config = load_settings_file(settings_path, strict=strict)

    builder = SettingsBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    if cli_source is not None:
        builder.apply(cli_source, source_name="cli")
    return builder.build()
