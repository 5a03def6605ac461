"""Display helpers for CLI output."""

_UNITS = (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024))


def format_file_size(size_bytes: int) -> str:
    """Render a byte count with one decimal in the largest fitting unit.

    Values under 1 KiB are shown as whole bytes, e.g. ``"512 B"``.
    """
    for unit, scale in _UNITS:
        if size_bytes >= scale:
            return f"{size_bytes / scale:.1f} {unit}"
    return f"{size_bytes} B"


def format_status_mark(available: bool) -> str:
    return "✓" if available else "✗"


def format_version(version: str | None) -> str:
    """Version text, or ``"not found"`` for a missing tool."""
    return version or "not found"
