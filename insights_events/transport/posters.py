from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Callable, Optional, Set

import httpx

from insights_events.config.log_codes import TRANSPORT_REQUEST_CANCELLED
from insights_events.constants import REQUEST_TIMEOUT
from insights_events.errors import (
    InsightsError,
    RequestCancelledError,
)
from .http_utils import send_request
from .sinks import ErrorSink, LoggingErrorSink

logger = logging.getLogger(__name__)

# Executes a flush request; returns on success, raises on failure.
Poster = Callable[[httpx.Request], None]


class StandardPoster:
    """
    Synchronous poster: the flush blocks until the collector answers or the
    request runs out of time.

    Failures are raised to whoever triggered the flush.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._owns_client = http_client is None
        self.client = http_client if http_client is not None else httpx.Client()
        self.timeout = timeout

    def __call__(self, request: httpx.Request) -> None:
        send_request(self.client, request, timeout=self.timeout)

    def close(self) -> None:
        # Don't close injected client - let caller manage lifecycle
        if self._owns_client:
            self.client.close()


class AsyncPoster:
    """
    Fire-and-forget poster.

    Returns as soon as the request is queued. Each request runs on a worker
    thread and is tracked until it completes, so shutdown can wait for
    outstanding flushes or cancel them. Failures only ever reach the error
    sink.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        error_sink: Optional[ErrorSink] = None,
        cancel_event: Optional[threading.Event] = None,
        max_workers: int = 2,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._owns_client = http_client is None
        self.client = http_client if http_client is not None else httpx.Client()
        self.error_sink = error_sink if error_sink is not None else LoggingErrorSink()
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.timeout = timeout

        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="insights-post"
        )
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._futures)

    def __call__(self, request: httpx.Request) -> None:
        with self._lock:
            if self._closed:
                self.error_sink.error(
                    "Batch dropped", RuntimeError("poster is closed")
                )
                return
            future = self._pool.submit(self._deliver, request)
            self._futures.add(future)

        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

        if future.cancelled():
            self.error_sink.error(
                "Batch delivery failed",
                RequestCancelledError(reason="cancelled before sending"),
            )
        elif future.exception() is not None:
            self.error_sink.error("Batch delivery failed", future.exception())

    def _deliver(self, request: httpx.Request) -> None:
        if self.cancel_event.is_set():
            logger.debug(TRANSPORT_REQUEST_CANCELLED, extra={"url": str(request.url)})
            self.error_sink.error(
                "Batch delivery failed",
                RequestCancelledError(reason="cancelled before sending"),
            )
            return

        try:
            send_request(
                self.client,
                request,
                timeout=self.timeout,
                cancel_event=self.cancel_event,
            )
        except InsightsError as e:
            self.error_sink.error("Batch delivery failed", e)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every outstanding request.

        Returns:
            bool: True if nothing is left in flight.
        """
        with self._lock:
            futures = list(self._futures)
        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def cancel(self) -> None:
        """
        Abort outstanding requests; queued ones never start, in-flight ones
        fail with ``RequestCancelledError`` at their next chunk or as soon as
        the response arrives.
        """
        self.cancel_event.set()

    def close(self, wait: bool = True, cancel: bool = False) -> None:
        """
        Stop accepting requests.

        With ``wait=False`` this returns at once; a client created by the
        poster is then closed from a background thread once the last request
        finishes. An injected client is always left to the caller.
        """
        with self._lock:
            self._closed = True

        if cancel:
            self.cancel()

        self._pool.shutdown(wait=wait, cancel_futures=cancel)

        if not self._owns_client:
            return

        if wait:
            self.client.close()
        else:
            threading.Thread(
                target=self._close_client_when_idle,
                name="insights-post-close",
                daemon=True,
            ).start()

    def _close_client_when_idle(self) -> None:
        self._pool.shutdown(wait=True)
        self.client.close()
