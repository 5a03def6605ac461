"""Process exit codes for the convertsave CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes; 0 is success."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_ARGUMENTS = 2
    UNSUPPORTED_CONVERSION = 3
    TOOL_NOT_FOUND = 4
    CONVERSION_FAILED = 5
    DOWNLOAD_FAILED = 6
    LICENSE_ERROR = 7
    FILESYSTEM_ERROR = 8
    INTERRUPTED = 130
