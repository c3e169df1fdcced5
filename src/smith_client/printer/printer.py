"""
Printer facade used by command handlers.

Bundles the status source, the state guard, the command channel and the
print data directory so a handler only needs one collaborator.
"""
import logging

from smith_client.printer.state import PrinterStatus, StateGuard, StatePredicate

logger = logging.getLogger(__name__)


class Printer:
    def __init__(self, status_source, command_channel, print_data_dir):
        """
        Args:
            status_source: ``read() -> PrinterStatus``
            command_channel: ``send(command)``
            print_data_dir: PrintDataDirectory holding the staged payload.
        """
        self.status_source = status_source
        self.command_channel = command_channel
        self.print_data_dir = print_data_dir
        self.guard = StateGuard(status_source)

    def status(self) -> PrinterStatus:
        return self.status_source.read()

    def validate_state(self, predicate: StatePredicate, context: str = 'command') -> PrinterStatus:
        return self.guard.validate(predicate, context)

    def check_state(self, predicate: StatePredicate, context: str = 'command'):
        return self.guard.check(predicate, context)

    def send_command(self, command: str):
        self.command_channel.send(command)

    def purge_print_data_dir(self):
        self.print_data_dir.purge()
