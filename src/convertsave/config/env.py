"""Typed access to CONVERTSAVE_* environment variables.

Pass ``env=`` to read from a plain dict instead of the process environment.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_DATA_DIR = "CONVERTSAVE_DATA_DIR"
ENV_DEV = "CONVERTSAVE_DEV"
ENV_API_URL = "CONVERTSAVE_API_URL"
ENV_LICENSE_KEY = "LICENSE_ENCRYPTION_KEY"
ENV_LOG_LEVEL = "CONVERTSAVE_LOG_LEVEL"
ENV_LOG_FILE = "CONVERTSAVE_LOG_FILE"
ENV_LOG_FORMAT = "CONVERTSAVE_LOG_FORMAT"
ENV_SERVER_BIND = "CONVERTSAVE_SERVER_BIND"
ENV_SERVER_PORT = "CONVERTSAVE_SERVER_PORT"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class EnvReader:
    """Reads variables from a mapping, converting and validating them.

    Every getter returns ``default`` when the variable is unset; malformed
    values are logged and also fall back to ``default``.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    @property
    def environ(self) -> Mapping[str, str]:
        return self._env

    def get_str(self, var: str, default: str | None = None) -> str | None:
        # An exported but empty variable counts as unset
        return self._env.get(var) or default

    def get_int(self, var: str, default: int | None = None) -> int | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("%s=%r is not an integer; using %r", var, raw, default)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        raw = self._env.get(var)
        return default if raw is None else raw.strip().lower() in _TRUTHY

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Expanded path from ``var``.

        With ``must_exist`` a path that is not on disk is treated as unset.
        """
        raw = self._env.get(var)
        if not raw:
            return default
        path = Path(raw).expanduser()
        if must_exist and not path.exists():
            logger.warning("%s points to a missing path: %s", var, path)
            return default
        return path
