"""
print_data command handling.

Downloads the file named in the command payload into the print data
directory, then sends the commands that make the firmware load the print
data and apply the print settings.

    IDLE → VALIDATING → DOWNLOADING → COMPLETED → DISPATCHING → DONE
                 │              │            │             │
                 ▼              ▼            ▼             ▼
              ABORTED   DOWNLOAD_FAILED   ABORTED       ABORTED

Printer state is re-checked after the download and again after the loading
command: the download can take arbitrarily long and the printer may change
state while it runs (operator action, firmware flagging a failed download).
Every failure is logged and ends the attempt; nothing is raised to the
caller of handle().
"""
import asyncio
import enum
import logging
from contextlib import aclosing
from typing import List, Optional

from smith_client.jobs.downloader import (
    ChunkReceived, DownloadFailed, DownloadFailure, DownloadSucceeded, PayloadDownloader,
)
from smith_client.jobs.models import PrintDataJob
from smith_client.jobs.staging import write_settings
from smith_client.printer.commands import (
    CMD_APPLY_PRINT_SETTINGS, CMD_PRINT_DATA_LOAD, CMD_PROCESS_PRINT_DATA,
)
from smith_client.printer.state import PrinterError, is_home, is_ready_for_print_data

logger = logging.getLogger(__name__)


class IngestionState(enum.Enum):
    IDLE = 'idle'
    VALIDATING = 'validating'
    DOWNLOADING = 'downloading'
    COMPLETED = 'completed'
    DOWNLOAD_FAILED = 'download_failed'
    DISPATCHING = 'dispatching'
    DONE = 'done'
    ABORTED = 'aborted'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    IngestionState.DOWNLOAD_FAILED,
    IngestionState.DONE,
    IngestionState.ABORTED,
})

TRANSITIONS = {
    IngestionState.IDLE: {IngestionState.VALIDATING},
    IngestionState.VALIDATING: {IngestionState.DOWNLOADING, IngestionState.ABORTED},
    IngestionState.DOWNLOADING: {IngestionState.COMPLETED, IngestionState.DOWNLOAD_FAILED},
    IngestionState.COMPLETED: {IngestionState.DISPATCHING, IngestionState.ABORTED},
    IngestionState.DISPATCHING: {IngestionState.DONE, IngestionState.ABORTED},
    # A finished ingestor can be handled again
    IngestionState.DOWNLOAD_FAILED: {IngestionState.VALIDATING},
    IngestionState.DONE: {IngestionState.VALIDATING},
    IngestionState.ABORTED: {IngestionState.VALIDATING},
}


class PrintDataIngestor:
    def __init__(self, printer, job: PrintDataJob, settings_file,
                 downloader: Optional[PayloadDownloader] = None):
        """
        Args:
            printer: Printer facade (status guard, commands, print data dir).
            job: URL and settings from the print_data command payload.
            settings_file: Path the firmware loads print settings from.
            downloader: PayloadDownloader, or any object with a compatible
                ``fetch(url)`` async generator.
        """
        self.printer = printer
        self.job = job
        self.settings_file = settings_file
        self.downloader = downloader or PayloadDownloader()

        self.state = IngestionState.IDLE
        self.history: List[IngestionState] = [IngestionState.IDLE]
        self._finished: Optional[asyncio.Future] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def in_progress(self) -> bool:
        return self.state is not IngestionState.IDLE and not self.state.is_terminal

    def handle(self):
        """
        Start an attempt. Returns before any I/O; the download starts on the
        next event loop iteration. Must be called with a running loop.
        """
        if self.in_progress:
            logger.error(
                f"print_data command for {self.job.file_url} ignored, "
                f"attempt already in progress ({self.state.value})"
            )
            return

        loop = asyncio.get_running_loop()
        self._finished = loop.create_future()
        self.history = [self.state]
        self._transition(IngestionState.VALIDATING)

        # Only start a download if the printer is in the home state
        error = self._check_state(is_home, 'print data download')
        if error:
            logger.error(f"{error}, not downloading print data, aborting print_data command handling")
            self._finish(IngestionState.ABORTED)
            return

        loop.call_soon(self._start_download)

    async def join(self) -> IngestionState:
        """Wait for the current attempt to reach a terminal state."""
        if self._finished is None:
            return self.state
        return await asyncio.shield(self._finished)

    def _start_download(self):
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        try:
            self._transition(IngestionState.DOWNLOADING)
            try:
                path = await self._download()
            except DownloadFailure as e:
                logger.error(str(e))
                self._finish(IngestionState.DOWNLOAD_FAILED)
                return

            logger.info(f"Print data download of {self.job.file_url} complete, file downloaded to {path}")
            self._transition(IngestionState.COMPLETED)
            self._finish(self._dispatch())
        except Exception as e:
            # Keep join() from hanging on a bug; the caller still sees no exception
            logger.error(f"Unexpected error handling print data from {self.job.file_url}: {e}", exc_info=True)
            if not self.state.is_terminal:
                self.state = IngestionState.ABORTED
                self.history.append(self.state)
            self._resolve()

    async def _download(self):
        """Stage the payload. Returns the staged path; raises DownloadFailure."""
        url = self.job.file_url
        print_data_dir = self.printer.print_data_dir
        outcome = None
        try:
            self.printer.purge_print_data_dir()
            # Closed exactly once, before the outcome is acted on
            with print_data_dir.open_staging_file(self.job.filename) as staging_file:
                async with aclosing(self.downloader.fetch(url)) as events:
                    async for event in events:
                        if isinstance(event, ChunkReceived):
                            staging_file.write(event.data)
                        elif isinstance(event, (DownloadSucceeded, DownloadFailed)):
                            outcome = event
                            break
        except OSError as e:
            raise DownloadFailure(url, f"cannot stage print data: {e}") from e

        if outcome is None:
            raise DownloadFailure(url, 'download ended without a result')
        if isinstance(outcome, DownloadFailed):
            raise DownloadFailure(url, outcome.cause)
        return print_data_dir.staging_path(self.job.filename)

    def _dispatch(self) -> IngestionState:
        """Send the command sequence. Returns the terminal state."""
        # Validate printer state and command printer to show loading screen
        error = self._check_state(is_ready_for_print_data, 'print data loading')
        if error:
            logger.error(f"{error}, aborting print_data command handling")
            return IngestionState.ABORTED

        self._transition(IngestionState.DISPATCHING)
        try:
            self.printer.send_command(CMD_PRINT_DATA_LOAD)

            # Make sure printer is ready to process print data
            error = self._check_state(is_ready_for_print_data, 'print data processing')
            if error:
                logger.error(f"{error}, aborting print_data command handling")
                return IngestionState.ABORTED

            write_settings(self.settings_file, self.job.settings_bytes())
            self.printer.send_command(CMD_PROCESS_PRINT_DATA)
            self.printer.send_command(CMD_APPLY_PRINT_SETTINGS)
        except PrinterError as e:
            logger.error(f"{e}, aborting print_data command handling")
            return IngestionState.ABORTED
        except OSError as e:
            logger.error(f"Cannot write print settings to {self.settings_file}: {e}, "
                         f"aborting print_data command handling")
            return IngestionState.ABORTED

        logger.info(f"Print data from {self.job.file_url} handed to printer")
        return IngestionState.DONE

    def _check_state(self, predicate, context: str):
        """Guard check; an unreadable status counts as a failed check."""
        try:
            return self.printer.check_state(predicate, context)
        except PrinterError as e:
            return e

    def _transition(self, new_state: IngestionState):
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal print_data transition {self.state.value} → {new_state.value}")
        logger.debug(f"print_data {self.job.file_url}: {self.state.value} → {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _finish(self, terminal: IngestionState):
        self._transition(terminal)
        self._resolve()

    def _resolve(self):
        if self._finished is not None and not self._finished.done():
            self._finished.set_result(self.state)
