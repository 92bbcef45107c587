"""
Intermediate levels of the test tree.
"""

from collections.abc import Iterable, Mapping

import httpx

from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.node import Callback, ConfigNode


class Module(ConfigNode):
    """A group of endpoints sharing a path prefix and configuration."""

    def __init__(
        self,
        path: str,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        query_params: Mapping[str, str] | None = None,
        success_callbacks: Iterable[Callback] | None = None,
        fail_callbacks: Iterable[Callback] | None = None,
        error_callback: Callback | None = None,
        endpoints: Iterable[Endpoint] | None = None,
        name: str = "",
        description: str = "",
    ):
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
        self.endpoints: list[Endpoint] = list(endpoints or [])

    def add_endpoints(self, endpoints: Iterable[Endpoint]) -> None:
        """Append endpoints to this module, keeping their order."""
        self.endpoints.extend(endpoints)


class Site(ConfigNode):
    """A web site made of modules."""

    def __init__(
        self,
        path: str,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        query_params: Mapping[str, str] | None = None,
        success_callbacks: Iterable[Callback] | None = None,
        fail_callbacks: Iterable[Callback] | None = None,
        error_callback: Callback | None = None,
        modules: Iterable[Module] | None = None,
        name: str = "",
        description: str = "",
    ):
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
        self.modules: list[Module] = list(modules or [])

    def add_modules(self, modules: Iterable[Module]) -> None:
        """Append modules to this site, keeping their order."""
        self.modules.extend(modules)
