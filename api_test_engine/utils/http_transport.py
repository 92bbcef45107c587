"""
HTTP transport abstraction for endpoint dispatch.

Provides the single asynchronous ``send`` operation the engine needs,
backed by httpx.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any

import httpx

from api_test_engine.config import BODYLESS_METHODS, DEFAULT_TIMEOUT, FOLLOW_REDIRECTS
from api_test_engine.core.merge import EffectiveRequest

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a request could not produce a response."""

    def __init__(self, message: str, request: EffectiveRequest | None = None):
        """Initialize transport error.

        Args:
            message: Human-readable description of the failure
            request: The request that was being sent
        """
        super().__init__(message)
        self.request = request


class Transport(ABC):
    """Abstract base class for transports."""

    @abstractmethod
    async def send(self, request: EffectiveRequest) -> Any:
        """Send a request and return the response.

        Any received response is returned regardless of its status code;
        judging the status is left to the endpoint's verify predicate.

        Args:
            request: Fully merged request

        Returns:
            Response exposing at least ``status_code``

        Raises:
            TransportError: If no response was received
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the transport."""
        return None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class HttpxTransport(Transport):
    """Transport using an ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        follow_redirects: bool = FOLLOW_REDIRECTS,
    ):
        """Initialize httpx-based transport.

        Args:
            client: Existing client to send through; one is created when omitted
            timeout: Request timeout in seconds for a created client
            follow_redirects: Redirect policy for a created client
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout, follow_redirects=follow_redirects
        )

    async def send(self, request: EffectiveRequest) -> httpx.Response:
        """Send the request using httpx."""
        logger.debug(f"Sending {request}")
        try:
            return await self.client.request(
                request.method.value,
                request.url,
                headers=request.headers,
                params=dict(request.params),
                **_body_kwargs(request),
            )
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}", request) from e
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid URL {request.url!r}: {e}", request) from e

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()


def _body_kwargs(request: EffectiveRequest) -> dict[str, Any]:
    """Map the endpoint body onto httpx request arguments.

    Text and bytes are sent verbatim, anything else as JSON. An empty body
    on GET or HEAD is left out entirely.
    """
    body = request.body
    if isinstance(body, (str, bytes)):
        return {"content": body}
    if not body and request.method.value in BODYLESS_METHODS:
        return {}
    return {"json": body}
