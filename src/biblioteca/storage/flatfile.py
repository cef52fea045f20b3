"""Line-oriented text files in a data directory."""

import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import PersistenceError


class FlatFileStore:
    """Reads and overwrites whole text files, one record per line."""

    def __init__(self, data_dir: Path, logger: Optional[logging.Logger] = None):
        """Initialize file store.

        Args:
            data_dir: Directory holding the data files (created if missing)
            logger: Logger for I/O diagnostics
        """
        self.data_dir = Path(data_dir)
        self.logger = logger or logging.getLogger(__name__)
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Ensure the data directory exists."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info("Created data directory: %s", self.data_dir)

    def path_for(self, filename: str) -> Path:
        return self.data_dir / filename

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).exists()

    def read_lines(self, filename: str) -> list[bytes]:
        """Read all lines of a file as undecoded bytes.

        A missing file reads as empty. Decoding is left to the caller so one
        bad line cannot make the rest of the file unreadable.

        Raises:
            PersistenceError: If the file exists but cannot be read
        """
        path = self.path_for(filename)
        if not path.exists():
            self.logger.debug("File does not exist, treating as empty: %s", filename)
            return []

        try:
            with open(path, "rb") as f:
                lines = f.read().splitlines()
        except OSError as e:
            self.logger.error("Failed to read %s", path, exc_info=True)
            raise PersistenceError(
                f"Failed to read {path}: {e}",
                "Stored data could not be loaded.",
            ) from e

        self.logger.debug("Read %d lines from %s", len(lines), filename)
        return lines

    def write_lines(self, filename: str, lines: list[str]) -> None:
        """Replace a file's content with the given lines.

        Writes to a temporary sibling first and swaps it in, so a crash
        mid-write leaves the previous snapshot intact.

        Raises:
            PersistenceError: If the write fails
        """
        path = self.path_for(filename)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
                for line in lines:
                    f.write(line)
                    f.write("\n")
            os.replace(tmp_path, path)
        except OSError as e:
            self.logger.error("Failed to write %s", path, exc_info=True)
            if tmp_path.exists():
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(
                f"Failed to write {path}: {e}",
                "The change was applied but could not be saved to disk.",
            ) from e

        self.logger.debug("Wrote %d lines to %s", len(lines), filename)
