#!/usr/bin/env python3
"""
Virtual Printer — stands in for the printer firmware on a development machine.

Publishes a status file, follows the command pipe (a plain file here) and
reacts to the print data commands:

    SHOWPRINTDATALOADING  — logged
    PROCESSPRINTDATA      — checks the print data dir holds exactly one file,
                            state → PrintDataLoad, then back to Home
    APPLYPRINTSETTINGS    — logs the settings file contents

Usage:
    python virtual_printer.py
    python virtual_printer.py --workdir /tmp/smith --fail-downloads

Point the client at the same paths (smith-client config --command-pipe ...).
"""

import argparse
import logging
import time
from pathlib import Path

from smith_client.printer.channels import StatusFile
from smith_client.printer.commands import (
    CMD_APPLY_PRINT_SETTINGS, CMD_PRINT_DATA_LOAD, CMD_PROCESS_PRINT_DATA,
)
from smith_client.printer.state import (
    DOWNLOAD_FAILED_SUBSTATE, HOME_STATE, NO_SUBSTATE, PRINT_DATA_LOAD_STATE, PrinterStatus,
)

logger = logging.getLogger('virtual_printer')

POLL_INTERVAL = 0.2


class VirtualPrinter:
    def __init__(self, workdir: Path, fail_downloads: bool = False):
        self.command_pipe = workdir / 'CommandPipe'
        self.status = StatusFile(workdir / 'printer_status.json')
        self.print_data_dir = workdir / 'print_data'
        self.settings_file = workdir / 'print_settings.json'
        self.fail_downloads = fail_downloads
        self._offset = 0

    def start(self):
        self.print_data_dir.mkdir(parents=True, exist_ok=True)
        self.command_pipe.write_text('')
        self.status.write(PrinterStatus(HOME_STATE, NO_SUBSTATE))
        logger.info(f"Virtual printer ready — commands: {self.command_pipe}")
        logger.info(f"Status file: {self.status.path}")

        try:
            while True:
                for command in self._read_commands():
                    self.handle_command(command)
                time.sleep(POLL_INTERVAL)
        except KeyboardInterrupt:
            logger.info('Stopped.')

    def _read_commands(self):
        with open(self.command_pipe, 'r') as f:
            f.seek(self._offset)
            data = f.read()
            self._offset = f.tell()
        return [line.strip() for line in data.splitlines() if line.strip()]

    def handle_command(self, command: str):
        logger.info(f"Received {command}")
        if command == CMD_PRINT_DATA_LOAD:
            if self.fail_downloads:
                logger.warning('Flagging download as failed')
                self.status.write(PrinterStatus(HOME_STATE, DOWNLOAD_FAILED_SUBSTATE))
        elif command == CMD_PROCESS_PRINT_DATA:
            files = list(self.print_data_dir.iterdir())
            if len(files) != 1:
                logger.error(f"Expected one print data file, found {len(files)}")
                return
            logger.info(f"Processing {files[0].name} ({files[0].stat().st_size:,} bytes)")
            self.status.write(PrinterStatus(PRINT_DATA_LOAD_STATE, NO_SUBSTATE))
            time.sleep(1)
            self.status.write(PrinterStatus(HOME_STATE, NO_SUBSTATE))
        elif command == CMD_APPLY_PRINT_SETTINGS:
            if self.settings_file.exists():
                logger.info(f"Settings: {self.settings_file.read_text()[:200]}")
            else:
                logger.error(f"No settings file at {self.settings_file}")
        else:
            logger.warning(f"Unknown command {command!r}")


def main():
    parser = argparse.ArgumentParser(
        description='Virtual Printer — fake firmware for the print client'
    )
    parser.add_argument(
        '--workdir', default='virtual_printer',
        help='Directory for the command pipe, status and print data (default: ./virtual_printer)'
    )
    parser.add_argument(
        '--fail-downloads', action='store_true',
        help='Set the DownloadFailed substate when print data loading starts'
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    VirtualPrinter(Path(args.workdir), args.fail_downloads).start()


if __name__ == '__main__':
    main()
