"""Error sinks for failures that cannot be raised to the producer."""

import logging
import threading
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)


class ErrorSink(Protocol):
    def error(self, message: str, exc: Exception) -> None: ...


class LoggingErrorSink:
    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def error(self, message: str, exc: Exception) -> None:
        self.log.error("%s: %s", message, exc)


class StreamErrorSink:
    """
    Writes one line per failure to a text stream, e.g. ``sys.stderr``.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._lock = threading.Lock()

    def error(self, message: str, exc: Exception) -> None:
        with self._lock:
            self.stream.write(f"{message}: {exc}\n")
            self.stream.flush()
