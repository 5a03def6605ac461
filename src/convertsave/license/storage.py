"""The encrypted license blob on disk (``license.dat``)."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from convertsave.exceptions import describe_os_error

logger = logging.getLogger(__name__)


class LicenseStore:
    """Reads, writes and deletes the license blob.

    The blob is stored as received from the server; it is only ever
    decrypted in memory.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str | None:
        """Return the stored blob, or None if there is none."""
        try:
            blob = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise describe_os_error(e, self.path, "read") from e
        return blob or None

    def write(self, blob: str) -> None:
        """Replace the stored blob atomically.

        Raises:
            FilesystemError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".license-")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise describe_os_error(e, self.path, "write") from e
        logger.debug("Saved license to %s", self.path)

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise describe_os_error(e, self.path, "delete") from e
        logger.debug("Removed license file %s", self.path)
