"""Exception hierarchy for ConvertSave.

Every error that can reach the UI derives from ConvertSaveError and carries
a human-readable message. The command layer turns these into plain strings.
"""

from __future__ import annotations

from pathlib import Path


class ConvertSaveError(Exception):
    """Base exception for all ConvertSave errors."""


class UnsupportedConversionError(ConvertSaveError):
    """Raised when the routing table has no tool for a format pair.

    Attributes:
        input_ext: Normalized input extension.
        output_ext: Normalized output extension.
    """

    def __init__(self, input_ext: str, output_ext: str) -> None:
        self.input_ext = input_ext
        self.output_ext = output_ext
        source = input_ext.upper() or "(no extension)"
        target = output_ext.upper() or "(no extension)"
        super().__init__(f"Conversion from {source} to {target} is not supported.")


class ToolNotFoundError(ConvertSaveError):
    """Raised when no usable binary exists for a tool.

    Attributes:
        tool: Tool identifier value (e.g., "ffmpeg").
        hint: Optional install hint shown to the user.
    """

    def __init__(self, tool: str, hint: str | None = None) -> None:
        self.tool = tool
        self.hint = hint
        message = f"{tool} is not installed."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class ProvisionError(ConvertSaveError):
    """Base exception for tool download and installation failures."""


class DownloadError(ProvisionError):
    """Raised when a tool archive cannot be fetched.

    Attributes:
        url: URL that was requested.
        kind: One of "timeout", "connect", "status", "other".
        status_code: HTTP status for kind == "status".
    """

    def __init__(
        self,
        url: str,
        kind: str,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.kind = kind
        self.status_code = status_code
        if kind == "timeout":
            message = f"Download timed out: {url}"
        elif kind == "connect":
            message = f"Could not connect to download server: {detail}"
        elif kind == "status":
            message = f"Download failed with HTTP {status_code}: {url}"
        else:
            message = f"Download failed: {detail}"
        super().__init__(message)


class ArchiveError(ProvisionError):
    """Raised when a downloaded archive cannot be read."""


class MissingEntryError(ProvisionError):
    """Raised when the expected binary is absent from an archive or install.

    Attributes:
        expected: Name or path that was expected.
        contents: Directory listing or archive entries, for diagnostics.
    """

    def __init__(self, expected: str, contents: list[str] | None = None) -> None:
        self.expected = expected
        self.contents = contents or []
        message = f"Expected '{expected}' was not found after extraction."
        if self.contents:
            listing = ", ".join(self.contents[:50])
            message = f"{message} Found: {listing}"
        super().__init__(message)


class ConversionError(ConvertSaveError):
    """Raised when an external converter exits unsuccessfully.

    Attributes:
        returncode: Exit code of the child process.
        stderr: Raw stderr of the child process.
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class LicenseError(ConvertSaveError):
    """Raised for license activation, refresh and storage failures.

    Attributes:
        kind: Error category (see convertsave.license.models.LicenseErrorKind).
    """

    def __init__(self, message: str, kind: str = "invalid") -> None:
        self.kind = kind
        super().__init__(message)


class FilesystemError(ConvertSaveError):
    """Raised for filesystem failures with a user-facing description.

    Attributes:
        path: The path the operation failed on.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


def describe_os_error(error: OSError, path: Path | str, action: str) -> FilesystemError:
    """Translate an OSError into a FilesystemError with a readable message.

    Args:
        error: The original error.
        path: Path the operation was performed on.
        action: Verb phrase describing the operation (e.g., "create folder").

    Returns:
        FilesystemError suitable for showing to the user.
    """
    path = Path(path)
    if isinstance(error, PermissionError):
        message = f"Permission denied: cannot {action} {path}"
    elif isinstance(error, FileNotFoundError):
        message = f"Not found: cannot {action} {path}"
    elif getattr(error, "errno", None) == 36 or getattr(error, "winerror", None) == 206:
        # ENAMETOOLONG / ERROR_FILENAME_EXCED_RANGE
        message = f"Path too long: cannot {action} {path}"
    else:
        message = f"Failed to {action} {path}: {error}"
    return FilesystemError(message, path=path)
