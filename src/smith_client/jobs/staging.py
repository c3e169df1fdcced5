"""
Local storage touched by print data handling.

The firmware expects the print data directory to contain a single file when
it receives the process print data command, so the directory is purged
before every download. A file may be left over from an earlier error.
"""
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class PrintDataDirectory:
    def __init__(self, path):
        self.path = Path(path)

    def purge(self):
        """Remove everything in the directory. Creates it if missing."""
        self.path.mkdir(parents=True, exist_ok=True)
        for entry in self.path.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink(missing_ok=True)
            logger.debug(f"Purged {entry}")

    def staging_path(self, filename: str) -> Path:
        return self.path / filename

    def open_staging_file(self, filename: str):
        """Open a new file for writing the downloaded payload."""
        return open(self.staging_path(filename), 'wb')


def write_settings(path, blob: bytes):
    """Overwrite the print settings file the firmware loads settings from."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(blob)
    logger.debug(f"Wrote {len(blob)} bytes of print settings to {path}")
