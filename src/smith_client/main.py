"""
Runtime wiring for the Smith print client.
Builds the printer channels from configuration and runs print_data commands
on an asyncio event loop.
"""
import asyncio
import json

from smith_client.config.manager import ConfigManager
from smith_client.jobs import processor
from smith_client.jobs.downloader import PayloadDownloader
from smith_client.jobs.ingestor import IngestionState
from smith_client.jobs.staging import PrintDataDirectory
from smith_client.logging import get_logger, setup_logging
from smith_client.printer.channels import CommandPipe, StatusFile
from smith_client.printer.printer import Printer

logger = get_logger(__name__)


def build_printer(config: ConfigManager) -> Printer:
    return Printer(
        status_source=StatusFile(config.get('printer.status_file')),
        command_channel=CommandPipe(config.get('printer.command_pipe')),
        print_data_dir=PrintDataDirectory(config.get('paths.print_data_dir')),
    )


def build_downloader(config: ConfigManager) -> PayloadDownloader:
    return PayloadDownloader(
        timeout=float(config.get('download.timeout')),
        chunk_size=int(config.get('download.chunk_size')),
    )


def parse_settings(value: str):
    """Settings from the command line: a JSON file path, inline JSON, or raw text."""
    if not value:
        return ''
    if value.startswith('@'):
        with open(value[1:], 'r') as f:
            return f.read()
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


async def run_print_data(config: ConfigManager, file_url: str, settings='') -> IngestionState:
    """Handle one print_data command and wait for it to finish."""
    printer = build_printer(config)
    command = {
        'command': processor.PRINT_DATA_COMMAND,
        'payload': {'file_url': file_url, 'settings': settings},
    }
    if not processor.process_command(
        command, printer, config.get('paths.print_settings_file'), build_downloader(config)
    ):
        return IngestionState.ABORTED

    state = await processor.current_attempt().join()
    logger.info(f"print_data for {file_url} finished: {state.value}")
    return state


def main(config_file=None, file_url=None, settings='') -> int:
    """Run one print_data attempt. Returns a process exit code."""
    config = ConfigManager(config_file)
    setup_logging(config.get('logging.level'), config.get('logging.file') or None)

    if not config.exists():
        logger.warning("No config file found, using built-in defaults")

    try:
        state = asyncio.run(run_print_data(config, file_url, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1
    return 0 if state is IngestionState.DONE else 1
