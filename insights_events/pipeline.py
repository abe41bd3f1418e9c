"""
Flush pipeline: turns a captured batch into a streaming gzip POST.
"""
import logging

import httpx

from insights_events.buffer import Batch
from insights_events.config.log_codes import CLIENT_FLUSH_STARTED
from insights_events.constants import (
    COMPRESSION_CHUNK_SIZE,
    INSERT_KEY_HEADER,
    REQUEST_TIMEOUT,
)
from insights_events.encoding import gzip_stream, iter_document
from insights_events.errors import TransportError
from insights_events.logs_helpers import log_call
from insights_events.meta import get_meta_http_headers
from insights_events.transport import Poster
from insights_events.transport.http_utils import with_timeout

logger = logging.getLogger(__name__)


def build_headers(insert_key: str) -> dict:
    headers = {
        "Content-Type": "application/json",
        "Content-Encoding": "gzip",
        INSERT_KEY_HEADER: insert_key,
    }
    headers.update(get_meta_http_headers())
    return headers


@log_call(show_args=False)
def build_request(
    batch: Batch,
    url: str,
    insert_key: str,
    timeout: float = REQUEST_TIMEOUT,
    chunk_size: int = COMPRESSION_CHUNK_SIZE,
) -> httpx.Request:
    """
    Build the POST for one batch.

    The body is a generator: the JSON array is assembled and compressed only
    as the transport reads it, and is sent with chunked transfer encoding.

    Args:
        batch (Batch): The captured buffer generation, possibly empty.
        url (str): The events endpoint.
        insert_key (str): Credential sent in the ``X-Insert-Key`` header.
        timeout (float): Per-request timeout.
        chunk_size (int): Compressor input size.

    Returns:
        httpx.Request: The request, ready to be handed to a poster.
    """
    body = gzip_stream(iter_document(batch.fragments), chunk_size=chunk_size)
    request = httpx.Request(
        "POST", url, headers=build_headers(insert_key), content=body
    )
    return with_timeout(request, timeout)


def flush(
    batch: Batch,
    poster: Poster,
    url: str,
    insert_key: str,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Post a batch through the given poster.

    Whatever the poster raises is propagated as is; nothing is retried.

    Raises:
        TransportError: If the request could not be built.
    """
    logger.debug(
        CLIENT_FLUSH_STARTED,
        extra={"events": len(batch), "bytes": batch.size, "generation": batch.generation},
    )

    try:
        request = build_request(batch, url, insert_key, timeout=timeout)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError, TypeError) as e:
        raise TransportError(reason=f"invalid request: {e}") from e

    poster(request)
