import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx

from insights_events.config.log_codes import (
    TRANSPORT_DEADLINE_EXCEEDED,
    TRANSPORT_REQUEST_CANCELLED,
    TRANSPORT_REQUEST_FAILED,
    TRANSPORT_REQUEST_REJECTED,
)
from insights_events.constants import REQUEST_TIMEOUT
from insights_events.errors import (
    RemoteRejectedError,
    RequestCancelledError,
    RequestTimeoutError,
    TransportError,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUS = httpx.codes.OK


class Deadline:
    """
    Wall clock budget for a whole request: upload, headers and response body.

    ``httpx.Timeout`` only bounds each individual network wait, so a body
    trickling in one byte at a time never trips it. ``check`` is called at
    every chunk boundary in both directions.
    """

    def __init__(self, timeout: float, cancel_event: Optional[threading.Event] = None):
        self.timeout = timeout
        self.expires_at = time.monotonic() + timeout
        self.cancel_event = cancel_event

    def check(self, url: str = "") -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.debug(TRANSPORT_REQUEST_CANCELLED, extra={"url": url})
            raise RequestCancelledError(reason="cancellation requested")

        if time.monotonic() >= self.expires_at:
            logger.debug(TRANSPORT_DEADLINE_EXCEEDED, extra={"url": url})
            raise RequestTimeoutError(
                reason=f"request did not complete within {self.timeout}s"
            )


def with_timeout(request: httpx.Request, timeout: float) -> httpx.Request:
    """
    Attach a per-request timeout, the way ``httpx.Client.build_request`` does.
    """
    request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()
    return request


def _guarded_stream(stream: httpx.SyncByteStream, deadline: Deadline, url: str) -> Iterator[bytes]:
    for chunk in stream:
        deadline.check(url)
        yield chunk


def _guard(request: httpx.Request, deadline: Deadline) -> httpx.Request:
    url = str(request.url)
    guarded = httpx.Request(
        request.method,
        request.url,
        headers=request.headers,
        content=_guarded_stream(request.stream, deadline, url),
        extensions=dict(request.extensions),
    )
    return with_timeout(guarded, deadline.timeout)


@contextmanager
def _translate_errors(request: httpx.Request):
    try:
        yield
    except httpx.TimeoutException as e:
        logger.debug(TRANSPORT_REQUEST_FAILED, extra={"url": str(request.url)})
        raise RequestTimeoutError(reason=str(e) or type(e).__name__) from e
    except httpx.RequestError as e:
        logger.debug(TRANSPORT_REQUEST_FAILED, extra={"url": str(request.url)})
        raise TransportError(reason=str(e) or type(e).__name__) from e
    except httpx.StreamError as e:
        logger.debug(TRANSPORT_REQUEST_FAILED, extra={"url": str(request.url)})
        raise TransportError(reason=str(e) or type(e).__name__) from e


def send_request(
    client: httpx.Client,
    request: httpx.Request,
    timeout: float = REQUEST_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
) -> None:
    """
    Execute a request and classify the outcome.

    The whole exchange shares one deadline, checked between body chunks on
    the way out and on the way back. Setting ``cancel_event`` aborts the
    request at the next check, including after the response has arrived.
    The response body is always drained and the response closed, whatever
    the status.

    Args:
        client: The HTTP client executing the request.
        request: The fully built request.
        timeout: Seconds the whole request may take.
        cancel_event: Optional signal aborting the request when set.

    Raises:
        RequestTimeoutError: If the request timed out.
        RequestCancelledError: If ``cancel_event`` was set before it finished.
        TransportError: For any other network level failure.
        RemoteRejectedError: If the collector answered with anything but 200.
    """
    deadline = Deadline(timeout, cancel_event)
    url = str(request.url)
    guarded = _guard(request, deadline)

    with _translate_errors(request):
        response = client.send(guarded, stream=True)

    try:
        with _translate_errors(request):
            for _ in response.iter_raw():
                deadline.check(url)
        deadline.check(url)

        if response.status_code != SUCCESS_STATUS:
            logger.debug(
                TRANSPORT_REQUEST_REJECTED,
                extra={"url": url, "status_code": response.status_code},
            )
            raise RemoteRejectedError(
                status_code=response.status_code, reason=response.reason_phrase
            )
    finally:
        response.close()
