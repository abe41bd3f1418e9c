import gzip
import json
from typing import Any, List, Optional

import httpx
import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")


class RecordingPoster:
    """
    Poster double: reads and decompresses every body it is handed.
    """

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.requests: List[httpx.Request] = []
        self.bodies: List[Any] = []

    def __call__(self, request: httpx.Request) -> None:
        self.requests.append(request)
        self.bodies.append(json.loads(gzip.decompress(request.read())))
        if self.error is not None:
            raise self.error


@pytest.fixture
def make_poster():
    return RecordingPoster


@pytest.fixture
def poster() -> RecordingPoster:
    return RecordingPoster()


@pytest.fixture
def mock_http_client():
    """
    Factory for an httpx.Client backed by a handler function.
    """
    clients = []

    def _create(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _create

    for client in clients:
        client.close()
