"""
Print data job model — maps from the payload of a ``print_data`` command.
No database, no ORM. Pure data class.
"""
import json
import logging
import posixpath
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrintDataJob:
    file_url: str
    settings: Any = ''          # opaque blob handed to the firmware via the settings file

    @classmethod
    def from_payload(cls, payload: dict) -> 'PrintDataJob':
        """Build a PrintDataJob from a decoded ``print_data`` command payload."""
        if not isinstance(payload, dict):
            raise ValueError(f"print_data payload must be an object, got {type(payload).__name__}")

        file_url = payload.get('file_url') or payload.get('fileURL') or ''
        if not isinstance(file_url, str):
            raise ValueError(f"print_data file_url must be a string, got {type(file_url).__name__}")
        if not file_url.strip():
            raise ValueError("print_data payload has no file_url")

        return cls(file_url=file_url.strip(), settings=payload.get('settings', ''))

    def __post_init__(self):
        # Fail on construction rather than mid-download
        if not isinstance(self.file_url, str):
            raise ValueError(f"file_url must be a string, got {type(self.file_url).__name__}")
        self._validate_filename()

    @property
    def filename(self) -> str:
        """Last component of the URL path; names the staged file."""
        return posixpath.basename(urlparse(self.file_url).path)

    def _validate_filename(self):
        if self.filename in ('', '.', '..'):
            raise ValueError(f"Cannot derive a file name from URL: {self.file_url!r}")

    def settings_bytes(self) -> bytes:
        """Settings blob as written to the print settings file."""
        if isinstance(self.settings, bytes):
            return self.settings
        if isinstance(self.settings, str):
            return self.settings.encode('utf-8')
        return json.dumps(self.settings).encode('utf-8')

    def __str__(self):
        return f"PrintDataJob(url={self.file_url} file={self.filename})"
