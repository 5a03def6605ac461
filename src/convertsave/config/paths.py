"""Per-user application data locations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from convertsave.config.env import ENV_DATA_DIR, ENV_DEV, EnvReader
from convertsave.core.platform import Platform, current_platform

APP_ID = "com.convertsave.app"
DEV_APP_ID = "com.convertsave.app.dev"

CONFIG_FILE_NAME = "config.json"
LICENSE_FILE_NAME = "license.dat"
SETTINGS_FILE_NAME = "settings.toml"
LOG_DIR_NAME = "logs"


@dataclass(frozen=True)
class AppPaths:
    """Resolved locations of everything ConvertSave stores on disk.

    Attributes:
        data_root: Platform data directory (e.g., ~/Library/Application Support).
        app_id: Identifier segment; differs between dev and release builds.
    """

    data_root: Path
    app_id: str = APP_ID

    @property
    def app_dir(self) -> Path:
        return self.data_root / self.app_id

    @property
    def config_file(self) -> Path:
        return self.app_dir / CONFIG_FILE_NAME

    @property
    def license_file(self) -> Path:
        return self.app_dir / LICENSE_FILE_NAME

    @property
    def settings_file(self) -> Path:
        return self.app_dir / SETTINGS_FILE_NAME

    @property
    def log_dir(self) -> Path:
        return self.app_dir / LOG_DIR_NAME

    def tool_dir(self, tool: str) -> Path:
        """Cache directory for a provisioned tool."""
        return self.app_dir / tool

    @classmethod
    def from_env(
        cls,
        env: EnvReader | None = None,
        platform: Platform | None = None,
    ) -> AppPaths:
        """Build AppPaths for the running process.

        CONVERTSAVE_DATA_DIR replaces the platform data root and
        CONVERTSAVE_DEV=1 selects the development app identifier.
        """
        reader = env or EnvReader()
        plat = platform or current_platform()
        root = reader.get_path(ENV_DATA_DIR, must_exist=False)
        if root is None:
            root = plat.user_data_dir(dict(reader.environ))
        app_id = DEV_APP_ID if reader.get_bool(ENV_DEV, False) else APP_ID
        return cls(data_root=root, app_id=app_id)
