"""
File-backed channels to the printer firmware.

  StatusFile  — JSON document the firmware rewrites on every status change
  CommandPipe — named pipe (or plain file) the firmware reads commands from
"""
import json
import logging
from pathlib import Path

from smith_client.printer.state import PrinterError, PrinterStatus, NO_SUBSTATE

logger = logging.getLogger(__name__)


class StatusFile:
    """Reads the latest printer status published by the firmware."""

    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> PrinterStatus:
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PrinterError(f"Cannot read printer status from {self.path}: {e}") from e

        if not isinstance(data, dict) or not data.get('state'):
            raise PrinterError(f"Printer status in {self.path} has no state: {data!r}")

        return PrinterStatus(
            state=str(data['state']),
            substate=str(data.get('substate') or NO_SUBSTATE),
        )

    def write(self, status: PrinterStatus):
        """Publish a status (used by the virtual printer and tests)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump({'state': status.state, 'substate': status.substate}, f)


class CommandPipe:
    """Sends newline-terminated command tokens to the firmware."""

    def __init__(self, path):
        self.path = Path(path)

    def send(self, command: str):
        logger.info(f"Command → {self.path}: {command}")
        try:
            # Opened per command; the firmware end may be reopened between commands
            with open(self.path, 'a') as pipe:
                pipe.write(command + '\n')
        except OSError as e:
            raise PrinterError(f"Cannot send {command} to {self.path}: {e}") from e
