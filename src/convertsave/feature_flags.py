"""Opt-in switches for conversions that are off by default.

``CONVERTSAVE_FEATURE_<NAME>=1`` turns a flag on; any other value leaves
it off.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

logger = logging.getLogger(__name__)

_PREFIX = "CONVERTSAVE_FEATURE_"

DOCUMENT_CONVERSION = "DOCUMENT_CONVERSION"

FLAGS: dict[str, str] = {
    DOCUMENT_CONVERSION: "Route markup/document formats through pandoc",
}


def flag_variable(flag: str) -> str:
    """Environment variable that controls ``flag``."""
    return _PREFIX + flag.upper()


def is_enabled(flag: str, env: Mapping[str, str] | None = None) -> bool:
    """True only when the flag's variable is exactly ``"1"``.

    Args:
        flag: Flag name in any case, e.g. ``"document_conversion"``.
        env: Mapping to read instead of os.environ.
    """
    source = os.environ if env is None else env
    return source.get(flag_variable(flag)) == "1"


def log_enabled_flags() -> None:
    enabled = sorted(name for name in FLAGS if is_enabled(name))
    if enabled:
        logger.info("Enabled feature flags: %s", ", ".join(enabled))
