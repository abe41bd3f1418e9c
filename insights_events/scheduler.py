from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from insights_events.config.log_codes import SCHEDULER_SYNC_CRASHED, SCHEDULER_SYNC_FAILED
from insights_events.errors import InsightsError

if TYPE_CHECKING:
    from insights_events.client import InsightsClient

logger = logging.getLogger(__name__)


class PeriodicSync:
    """
    Calls ``client.sync()`` every ``interval`` seconds on a daemon thread.

    Failed syncs are logged and the loop keeps going; the failed batch is
    lost like any other failed flush.
    """

    def __init__(self, client: InsightsClient, interval: float = 10.0):
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.client = client
        self.interval = interval

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "PeriodicSync":
        if self.running:
            raise RuntimeError("PeriodicSync already started")

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="insights-periodic-sync", daemon=True
        )
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self._sync_once()

    def _sync_once(self) -> None:
        try:
            self.client.sync()
        except InsightsError as e:
            self.failures += 1
            logger.warning(SCHEDULER_SYNC_FAILED, extra={"error": str(e)})
        except Exception:
            self.failures += 1
            logger.exception(SCHEDULER_SYNC_CRASHED)

    def stop(self, flush: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the loop and, by default, post whatever accumulated since the
        last tick.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        if flush:
            self.client.sync()

    def __enter__(self) -> "PeriodicSync":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
