"""
Leaf level of the test tree: a single HTTP call and its verdict.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import httpx

from api_test_engine.config import DEFAULT_SUCCESS_STATUS
from api_test_engine.core.node import Callback, ConfigNode, HTTPMethod


def default_verify(response: Any) -> bool:
    """Accept a response only when its status code is 200."""
    return response.status_code == DEFAULT_SUCCESS_STATUS


class Endpoint(ConfigNode):
    """A request definition plus the predicate that judges its response."""

    def __init__(
        self,
        path: str,
        method: HTTPMethod | str,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        query_params: Mapping[str, str] | None = None,
        success_callbacks: Iterable[Callback] | None = None,
        fail_callbacks: Iterable[Callback] | None = None,
        error_callback: Callback | None = None,
        verify: Callable[[Any], bool] | None = None,
        body: Any = None,
        name: str = "",
        description: str = "",
    ):
        """Initialize an endpoint.

        Args:
            path: Path fragment appended after the module path
            method: HTTP method to send
            headers: Endpoint level headers, highest precedence in the merge
            query_params: Endpoint level query parameters
            success_callbacks: Callbacks run when ``verify`` accepts the response
            fail_callbacks: Callbacks run when ``verify`` rejects the response
            error_callback: Callback run when the transport raises
            verify: Predicate over the response, defaults to ``status == 200``
            body: Request payload, defaults to an empty object
            name: Optional display name
            description: Optional description
        """
        super().__init__(
            path=path,
            headers=headers,
            query_params=query_params,
            success_callbacks=success_callbacks,
            fail_callbacks=fail_callbacks,
            error_callback=error_callback,
            name=name,
            description=description,
        )
        self.method = HTTPMethod.coerce(method)
        self.verify: Callable[[Any], bool] = verify or default_verify
        self.body = body if body is not None else {}

    def clone(self) -> "Endpoint":
        """Return a shallow copy of this endpoint.

        The copy shares the header object, query dict and callback lists
        with the original. Rebinding any of those attributes on the copy
        leaves the original untouched; mutating them in place does not.
        """
        copy = type(self).__new__(type(self))
        copy.__dict__.update(self.__dict__)
        return copy
