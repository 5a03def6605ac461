"""Core utilities shared across ConvertSave.

Platform abstraction, subprocess wrappers, file helpers and formatting.
"""

from convertsave.core.file_utils import (
    MAX_NAME_COUNTER,
    FileInfo,
    ensure_directory,
    get_file_info,
    reveal_in_file_manager,
    unique_output_path,
)
from convertsave.core.formatting import (
    format_file_size,
    format_status_mark,
    format_version,
)
from convertsave.core.platform import (
    OSFamily,
    Platform,
    current_platform,
    enclosing_app_bundle,
    is_inside_app_bundle,
    running_executable_dir,
)
from convertsave.core.subprocess_utils import (
    CommandOutput,
    run_command,
    run_command_async,
)

__all__ = [
    # Files
    "MAX_NAME_COUNTER",
    "FileInfo",
    "ensure_directory",
    "get_file_info",
    "reveal_in_file_manager",
    "unique_output_path",
    # Formatting
    "format_file_size",
    "format_status_mark",
    "format_version",
    # Platform
    "OSFamily",
    "Platform",
    "current_platform",
    "enclosing_app_bundle",
    "is_inside_app_bundle",
    "running_executable_dir",
    # Subprocess
    "CommandOutput",
    "run_command",
    "run_command_async",
]
