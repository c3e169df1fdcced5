"""
Printer command processor — routes commands received by the client.

Commands are decoded JSON objects:
  {"command": "print_data", "payload": {"file_url": "...", "settings": ...}}

Only print_data is handled here. One print_data attempt runs at a time;
a print_data command arriving while another is in flight is rejected.
"""
import logging
from typing import Optional

from smith_client.jobs.ingestor import PrintDataIngestor
from smith_client.jobs.models import PrintDataJob

logger = logging.getLogger(__name__)

PRINT_DATA_COMMAND = 'print_data'

# Most recent print_data attempt (in-memory, resets on restart)
_current: Optional[PrintDataIngestor] = None


def process_command(command: dict, printer, settings_file, downloader=None) -> bool:
    """
    Entry point — dispatch a decoded command to its handler.
    Must be called from inside the running event loop.

    Returns:
        True if the command was accepted (the attempt itself reports through logs).
    """
    name = command.get('command') if isinstance(command, dict) else None
    if not isinstance(name, str):
        logger.warning(f"Malformed command: {command!r} — ignoring")
        return False
    name = name.strip().lower()

    if name == PRINT_DATA_COMMAND:
        return _handle_print_data(command.get('payload') or {}, printer, settings_file, downloader)
    else:
        logger.warning(f"Unrecognised command: {name!r} — ignoring")
        return False


def _handle_print_data(payload: dict, printer, settings_file, downloader) -> bool:
    global _current

    try:
        job = PrintDataJob.from_payload(payload)
    except ValueError as e:
        logger.error(f"Failed to parse print_data payload: {e}")
        return False

    if _current is not None and _current.in_progress:
        logger.error(
            f"Rejecting print_data for {job.file_url}: "
            f"download of {_current.job.file_url} still in progress"
        )
        return False

    logger.info(f"Processing: {job}")
    _current = PrintDataIngestor(printer, job, settings_file, downloader=downloader)
    _current.handle()
    return True


def current_attempt() -> Optional[PrintDataIngestor]:
    return _current


def reset():
    """Forget the current attempt (tests, restart)."""
    global _current
    _current = None
