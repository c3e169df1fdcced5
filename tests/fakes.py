"""Stand-ins for the printer firmware and the network used across tests."""
import io

from smith_client.jobs.downloader import ChunkReceived, DownloadFailed, DownloadSucceeded
from smith_client.jobs.staging import PrintDataDirectory
from smith_client.printer.printer import Printer
from smith_client.printer.state import (
    DOWNLOAD_FAILED_SUBSTATE, HOME_STATE, PrinterError, PrinterStatus,
)

HOME = PrinterStatus(HOME_STATE, 'Normal')
HOME_DOWNLOAD_FAILED = PrinterStatus(HOME_STATE, DOWNLOAD_FAILED_SUBSTATE)
PRINTING = PrinterStatus('Printing', '')


class ScriptedStatus:
    """Returns the scripted statuses in order, then keeps returning the last one."""

    def __init__(self, *statuses):
        self.statuses = list(statuses)
        self.reads = 0

    def read(self):
        index = min(self.reads, len(self.statuses) - 1)
        self.reads += 1
        status = self.statuses[index]
        if isinstance(status, Exception):
            raise status
        return status


class RecordingChannel:
    """Command channel that records tokens; shares an event log with other fakes."""

    def __init__(self, events=None, fail_on=None):
        self.events = events if events is not None else []
        self.fail_on = fail_on

    def send(self, command):
        if command == self.fail_on:
            raise PrinterError(f"pipe closed while sending {command}")
        self.events.append(('send', command))

    @property
    def commands(self):
        return [value for kind, value in self.events if kind == 'send']


class CountingFile(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.close_count = 0
        self.contents = b''

    def close(self):
        if not self.closed:
            self.contents = self.getvalue()
        self.close_count += 1
        super().close()


class MemoryPrintDataDirectory(PrintDataDirectory):
    """Print data directory whose staging files live in memory."""

    def __init__(self, path):
        super().__init__(path)
        self.files = {}
        self.purges = 0

    def purge(self):
        self.purges += 1
        self.files.clear()

    def open_staging_file(self, filename):
        self.files[filename] = CountingFile()
        return self.files[filename]


class FakeDownloader:
    """
    Replays download events. ``between`` maps an event index to a callable
    run just before that event is delivered.
    """

    def __init__(self, events, between=None):
        self.events = list(events)
        self.between = between or {}
        self.urls = []

    async def fetch(self, url):
        self.urls.append(url)
        for index, event in enumerate(self.events):
            if index in self.between:
                self.between[index]()
            yield event


def successful_download(url, *chunks):
    return FakeDownloader(
        [ChunkReceived(c) for c in chunks] + [DownloadSucceeded(url, sum(len(c) for c in chunks))]
    )


def failed_download(url, *chunks, cause='connection reset'):
    return FakeDownloader([ChunkReceived(c) for c in chunks] + [DownloadFailed(url, cause)])


def make_printer(status, print_data_dir, channel=None):
    return Printer(status, channel or RecordingChannel(), print_data_dir)
