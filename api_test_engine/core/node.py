"""
Shared configuration node used by every level of the test tree.

Engine, Site, Module and Endpoint all carry the same shape: a path
fragment, headers, query parameters and the success/fail/error handlers
that are fanned out once a request completes.
"""

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

import httpx

Callback = Callable[[Any], Any]


class HTTPMethod(str, Enum):
    """HTTP methods an endpoint may be dispatched with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    HEAD = "HEAD"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, value: "HTTPMethod | str") -> "HTTPMethod":
        """Return the member for ``value``, accepting plain strings in any case.

        Raises:
            ValueError: If ``value`` is not a supported method
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from None


def _noop(_: Any) -> None:
    return None


class ConfigNode:
    """Configuration carried by a single level of the test tree."""

    def __init__(
        self,
        path: str = "",
        headers: Mapping[str, str] | httpx.Headers | None = None,
        query_params: Mapping[str, str] | None = None,
        success_callbacks: Iterable[Callback] | None = None,
        fail_callbacks: Iterable[Callback] | None = None,
        error_callback: Callback | None = None,
        name: str = "",
        description: str = "",
    ):
        """Initialize a configuration node.

        Args:
            path: Path fragment contributed by this level
            headers: Headers contributed by this level
            query_params: Query parameters contributed by this level
            success_callbacks: Callbacks run when a response passes verification
            fail_callbacks: Callbacks run when a response fails verification
            error_callback: Callback run when the transport raises
            name: Optional display name
            description: Optional description
        """
        self.path = path or ""
        self.headers = httpx.Headers(headers) if headers is not None else httpx.Headers()
        self.query_params: dict[str, str] = dict(query_params or {})
        self.success_callbacks: list[Callback] = list(success_callbacks or [])
        self.fail_callbacks: list[Callback] = list(fail_callbacks or [])
        self.error_callback: Callback = error_callback or _noop
        self.name = name or ""
        self.description = description or ""

    def add_success_callback(self, callback: Callback) -> None:
        self.success_callbacks.append(callback)

    def add_fail_callback(self, callback: Callback) -> None:
        self.fail_callbacks.append(callback)

    def add_header(self, key: str, value: str) -> None:
        """Set a header, replacing any existing value for ``key``."""
        self.headers[key] = value

    def add_query(self, key: str, value: str) -> None:
        """Set a query parameter, replacing any existing value for ``key``."""
        self.query_params[key] = value

    def notify(self, response: Any) -> list[Any]:
        """Run every success callback with ``response``.

        Returns:
            Return values of the callbacks, in registration order
        """
        return [callback(response) for callback in self.success_callbacks]

    def fail(self, response: Any) -> list[Any]:
        """Run every fail callback with ``response``.

        Returns:
            Return values of the callbacks, in registration order
        """
        return [callback(response) for callback in self.fail_callbacks]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, path={self.path!r})"
