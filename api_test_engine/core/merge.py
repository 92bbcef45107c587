"""
Merge of per-level configuration into one concrete request.

Every helper takes the levels of a single tree path ordered root to leaf
(Engine, Site, Module, Endpoint). Later levels win on key collisions.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import httpx

from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.node import ConfigNode, HTTPMethod


@dataclass(frozen=True)
class EffectiveRequest:
    """Snapshot of the request sent for one endpoint dispatch."""

    method: HTTPMethod
    url: str
    headers: httpx.Headers
    params: Mapping[str, str]
    body: Any
    name: str = ""

    @classmethod
    def from_endpoint(cls, endpoint: Endpoint) -> "EffectiveRequest":
        """Freeze an endpoint whose fields already hold merged values."""
        return cls(
            method=endpoint.method,
            url=endpoint.path,
            headers=httpx.Headers(endpoint.headers),
            params=MappingProxyType(dict(endpoint.query_params)),
            body=endpoint.body,
            name=endpoint.name,
        )

    def __str__(self) -> str:
        return f"{self.method.value} {self.url}"


def merge_headers(levels: Sequence[ConfigNode]) -> httpx.Headers:
    """Fold each level's headers onto an empty set, last writer wins."""
    merged = httpx.Headers()
    for level in levels:
        merged.update(level.headers)
    return merged


def merge_query_params(levels: Sequence[ConfigNode]) -> dict[str, str]:
    """Fold each level's query parameters onto an empty dict, last writer wins."""
    merged: dict[str, str] = {}
    for level in levels:
        merged.update(level.query_params)
    return merged


def join_path(levels: Sequence[ConfigNode]) -> str:
    """Concatenate the path fragments as-is, without separators."""
    return "".join(level.path for level in levels)


def build_request(levels: Sequence[ConfigNode]) -> EffectiveRequest:
    """Build the request for the endpoint at the end of ``levels``.

    The endpoint is cloned and the merged values are bound to the clone,
    so the endpoint stored in the tree is never modified.

    Args:
        levels: Tree path ordered root to leaf, ending with an Endpoint

    Returns:
        Immutable request snapshot ready for the transport

    Raises:
        TypeError: If the last level is not an Endpoint
    """
    if not levels or not isinstance(levels[-1], Endpoint):
        raise TypeError("The last level of a request path must be an Endpoint")

    working = levels[-1].clone()
    working.headers = merge_headers(levels)
    working.path = join_path(levels)
    working.query_params = merge_query_params(levels)
    return EffectiveRequest.from_endpoint(working)
