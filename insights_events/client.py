"""
Thread safe event client for the Insights insert API.

Events are serialized as they are recorded and kept in memory until the
buffer grows past its size limit or ``sync`` is called; either way the whole
generation is posted as one gzip compressed JSON array. A failed post drops
the batch, nothing is retried or persisted.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional

import httpx

from insights_events.buffer import Batch, EventBuffer
from insights_events.config import InsightsConfig
from insights_events.config.log_codes import (
    CLIENT_EVENT_REJECTED,
    CLIENT_FLUSH_FAILED,
    CLIENT_THRESHOLD_REACHED,
)
from insights_events.constants import (
    DEFAULT_COLLECTOR_HOST,
    EVENTS_ENDPOINT,
    MAX_BUFFER_SIZE,
    REQUEST_TIMEOUT,
)
from insights_events.encoding import encode_event
from insights_events.errors import InsightsError
from insights_events import pipeline
from insights_events.transport import Poster, StandardPoster

logger = logging.getLogger(__name__)


class InsightsClient:
    """
    Buffers events and posts them in batches.

    Safe to share between threads. The buffer lock only covers appending and
    the snapshot-and-reset of a generation; the network call runs under a
    separate flush lock, taken before the buffer lock is released, so batches
    reach the poster in the order they were cut.
    """

    def __init__(
        self,
        account_id: str,
        insert_key: str,
        poster: Optional[Poster] = None,
        url: Optional[str] = None,
        max_buffer_size: int = MAX_BUFFER_SIZE,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._account_id = account_id
        self._insert_key = insert_key
        self._url = url or EVENTS_ENDPOINT.format(
            host=DEFAULT_COLLECTOR_HOST, account_id=account_id
        )
        self._timeout = timeout

        self._owns_poster = poster is None
        self._poster: Poster = (
            poster if poster is not None else StandardPoster(timeout=timeout)
        )

        self._buffer = EventBuffer(max_size=max_buffer_size)
        self._flush_lock = threading.Lock()

    @classmethod
    def from_config(
        cls, config: InsightsConfig, poster: Optional[Poster] = None, **kwargs
    ) -> "InsightsClient":
        owns_poster = poster is None
        if poster is None:
            proxy = config.proxy.as_url() if config.proxy else None
            poster = StandardPoster(
                http_client=httpx.Client(proxy=proxy), timeout=config.timeout
            )
        client = cls(
            config.account_id,
            config.insert_key,
            poster=poster,
            url=config.events_url,
            timeout=config.timeout,
            **kwargs,
        )
        client._owns_poster = owns_poster
        return client

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def url(self) -> str:
        return self._url

    @property
    def poster(self) -> Poster:
        return self._poster

    @property
    def pending_events(self) -> int:
        return self._buffer.count

    @property
    def pending_bytes(self) -> int:
        return self._buffer.size

    def record_event(self, name: str, record: Mapping[str, Any]) -> None:
        """
        Add an event to the current batch.

        When the batch grows past the size limit it is posted before this call
        returns, and the buffer starts over empty whether the post succeeded
        or not.

        Args:
            name (str): The event type, stored under ``eventType``.
            record (Mapping[str, Any]): The event attributes.

        Raises:
            InvalidInputError: If the name is empty or the record is missing.
            EncodingError: If the record cannot be serialized.
            TransportError: If a triggered flush failed on the network.
            RemoteRejectedError: If a triggered flush was refused.
        """
        try:
            fragment = encode_event(name, record)
        except InsightsError as e:
            logger.debug(CLIENT_EVENT_REJECTED, extra={"event_type": name, "reason": str(e)})
            raise

        self._buffer.lock.acquire()
        try:
            batch = self._buffer.append(fragment)
            if batch is None:
                return
            logger.info(
                CLIENT_THRESHOLD_REACHED,
                extra={"events": len(batch), "bytes": batch.size},
            )
            self._flush_lock.acquire()
        finally:
            self._buffer.lock.release()

        self._flush_locked(batch)

    def sync(self) -> None:
        """
        Post the current batch now, even if it is empty.

        Raises:
            TransportError: If the post failed on the network.
            RemoteRejectedError: If the post was refused.
        """
        with self._buffer.lock:
            batch = self._buffer.drain()
            self._flush_lock.acquire()

        self._flush_locked(batch)

    def _flush_locked(self, batch: Batch) -> None:
        try:
            pipeline.flush(
                batch,
                self._poster,
                url=self._url,
                insert_key=self._insert_key,
                timeout=self._timeout,
            )
        except InsightsError as e:
            logger.warning(
                CLIENT_FLUSH_FAILED,
                extra={"events": len(batch), "generation": batch.generation, "error": str(e)},
            )
            raise
        finally:
            self._flush_lock.release()

    def close(self) -> None:
        """
        Post whatever is left and release the poster if it was created here.
        """
        try:
            self.sync()
        finally:
            if self._owns_poster:
                close = getattr(self._poster, "close", None)
                if close is not None:
                    close()

    def __enter__(self) -> "InsightsClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"InsightsClient(account_id={self._account_id!r}, url={self._url!r})"


def new_client(account_id: str, insert_key: str, **kwargs) -> InsightsClient:
    """
    Create a client posting to the default collector with a synchronous poster.
    """
    return InsightsClient(account_id, insert_key, **kwargs)
