"""
Pytest configuration and shared fixtures for API test engine tests.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from api_test_engine.core.containers import Module, Site
from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.engine import Engine
from api_test_engine.core.merge import EffectiveRequest
from api_test_engine.utils.http_transport import HttpxTransport, Transport, TransportError

Responder = Callable[[EffectiveRequest], Any]


class RecordingTransport(Transport):
    """Transport double that records requests and answers from a responder.

    The responder returns a response, or an exception which is raised
    from ``send`` instead.
    """

    def __init__(self, responder: Responder | None = None):
        self.requests: list[EffectiveRequest] = []
        self.responder = responder or (lambda request: httpx.Response(200))
        self.closed = False

    async def send(self, request: EffectiveRequest) -> Any:
        self.requests.append(request)
        # Yield once so dispatches interleave like real network calls
        await asyncio.sleep(0)
        result = self.responder(request)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def recording_transport() -> Callable[..., RecordingTransport]:
    """Factory for recording transports."""
    return RecordingTransport


@pytest.fixture
def mock_http_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], HttpxTransport]:
    """Factory for an HttpxTransport whose client is backed by httpx.MockTransport."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> HttpxTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpxTransport(client=client)

    return factory


@pytest.fixture
def event_log() -> list[tuple[str, str]]:
    """Shared list callbacks append (level, kind) entries to."""
    return []


def _recording_callbacks(log: list[tuple[str, str]], label: str) -> dict[str, Any]:
    return {
        "success_callbacks": [lambda r: log.append((label, "success"))],
        "fail_callbacks": [lambda r: log.append((label, "fail"))],
        "error_callback": lambda e: log.append((label, "error")),
    }


@pytest.fixture
def sample_tree(event_log: list[tuple[str, str]]) -> dict[str, Any]:
    """Single-path tree whose callbacks record into ``event_log``."""
    endpoint = Endpoint(
        path="/e",
        method="GET",
        headers={"X-Level": "endpoint"},
        query_params={"level": "endpoint"},
        name="endpoint",
        **_recording_callbacks(event_log, "endpoint"),
    )
    module = Module(
        path="",
        headers={"X-Level": "module", "X-Module": "m"},
        endpoints=[endpoint],
        name="module",
        **_recording_callbacks(event_log, "module"),
    )
    site = Site(
        path="/s",
        headers={"X-Level": "site"},
        query_params={"level": "site", "site": "s"},
        modules=[module],
        name="site",
        **_recording_callbacks(event_log, "site"),
    )
    engine = Engine(
        path="https://x",
        headers={"X-Level": "engine", "X-Engine": "e"},
        query_params={"level": "engine", "engine": "e"},
        sites=[site],
        **_recording_callbacks(event_log, "engine"),
    )
    return {"engine": engine, "site": site, "module": module, "endpoint": endpoint}


@pytest.fixture
def transport_error() -> TransportError:
    """A transport error as raised for an unreachable host."""
    return TransportError("Request failed: connection refused")
