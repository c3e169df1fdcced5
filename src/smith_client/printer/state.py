"""
Printer status model and the state guard.

The printer firmware owns its state machine; the client only reads the
(state, substate) pair and refuses to act when the device is not where a
command expects it to be.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

HOME_STATE = 'Home'
PRINT_DATA_LOAD_STATE = 'PrintDataLoad'

NO_SUBSTATE = ''
DOWNLOAD_FAILED_SUBSTATE = 'DownloadFailed'


class PrinterError(Exception):
    """Error reading from or sending to the printer."""
    pass


class InvalidState(PrinterError):
    """Printer is not in a state that allows the requested action."""

    def __init__(self, context: str, state: str, substate: str):
        self.context = context
        self.state = state
        self.substate = substate
        super().__init__(
            f"Printer in invalid state for {context} "
            f"(state: {state!r}, substate: {substate!r})"
        )


@dataclass(frozen=True)
class PrinterStatus:
    state: str
    substate: str = NO_SUBSTATE

    def __str__(self):
        if self.substate:
            return f"{self.state}/{self.substate}"
        return self.state


StatePredicate = Callable[[str, str], bool]


def is_home(state: str, substate: str) -> bool:
    return state == HOME_STATE


def is_ready_for_print_data(state: str, substate: str) -> bool:
    """Home and not flagged by the firmware as a failed download."""
    return state == HOME_STATE and substate != DOWNLOAD_FAILED_SUBSTATE


class StateGuard:
    """Evaluates predicates over the current printer status."""

    def __init__(self, status_source):
        """
        Args:
            status_source: Object with a ``read() -> PrinterStatus`` method.
        """
        self.status_source = status_source

    def validate(self, predicate: StatePredicate, context: str = 'command') -> PrinterStatus:
        """
        Read the printer status and check it against ``predicate``.

        Returns:
            The status that satisfied the predicate.

        Raises:
            InvalidState: predicate is false for the current status.
        """
        status = self.status_source.read()
        if not predicate(status.state, status.substate):
            raise InvalidState(context, status.state, status.substate)
        return status

    def check(self, predicate: StatePredicate, context: str = 'command') -> Optional[InvalidState]:
        """Same as validate() but returns the InvalidState instead of raising it."""
        try:
            self.validate(predicate, context)
        except InvalidState as e:
            logger.debug(f"State check failed: {e}")
            return e
        return None
