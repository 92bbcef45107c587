"""
Root of the test tree and the entry point that runs it.
"""

import asyncio
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
import logging

import httpx

from api_test_engine.config import DEFAULT_ENGINE_NAME
from api_test_engine.core.containers import Site
from api_test_engine.core.dispatch import Outcome, dispatch
from api_test_engine.core.merge import join_path
from api_test_engine.core.node import Callback, ConfigNode
from api_test_engine.utils.http_transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)


class Engine(ConfigNode):
    """Runs every endpoint under its sites.

    Each endpoint is dispatched as its own asyncio task. Tasks share no
    mutable state: every dispatch works on a cloned endpoint and freshly
    merged header and query maps, so no locking is used. Callbacks that
    touch shared state across endpoints must synchronize themselves.
    """

    def __init__(
        self,
        path: str = "",
        headers: Mapping[str, str] | httpx.Headers | None = None,
        query_params: Mapping[str, str] | None = None,
        success_callbacks: Iterable[Callback] | None = None,
        fail_callbacks: Iterable[Callback] | None = None,
        error_callback: Callback | None = None,
        sites: Iterable[Site] | None = None,
        name: str = DEFAULT_ENGINE_NAME,
        description: str = DEFAULT_ENGINE_NAME,
        transport: Transport | None = None,
    ):
        """Initialize the engine.

        Args:
            path: Leading path fragment, usually the scheme and host
            headers: Headers applied to every request, lowest precedence
            query_params: Query parameters applied to every request
            success_callbacks: Callbacks run after every verified response
            fail_callbacks: Callbacks run after every rejected response
            error_callback: Callback run after every transport error
            sites: Sites to run
            name: Display name
            description: Description
            transport: Transport used when ``run``/``start`` get none
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
        self.sites: list[Site] = list(sites or [])
        self.transport = transport
        # Strong references to in-flight dispatches; the loop only holds weak ones
        self._tasks: set[asyncio.Task] = set()

    def add_sites(self, sites: Iterable[Site]) -> None:
        """Append sites to this engine, keeping their order."""
        self.sites.extend(sites)

    def iter_paths(self) -> Iterator[tuple[ConfigNode, ...]]:
        """Yield every (engine, site, module, endpoint) path in tree order."""
        for site in self.sites:
            for module in site.modules:
                for endpoint in module.endpoints:
                    yield (self, site, module, endpoint)

    def start(self, transport: Transport | None = None) -> list[asyncio.Task]:
        """Schedule one dispatch task per endpoint and return immediately.

        Must be called with a running event loop. Completion order of the
        tasks is unspecified. The engine keeps every task referenced until it
        finishes, so the returned list may be dropped.

        Args:
            transport: Transport to send through; defaults to the engine's own

        Returns:
            The scheduled tasks, in tree order
        """
        transport = self._resolve_transport(transport)
        tasks = []
        for levels in self.iter_paths():
            endpoint = levels[-1]
            task = asyncio.create_task(
                dispatch(levels, transport),
                name=f"{endpoint.method.value} {join_path(levels)}",
            )
            task.add_done_callback(_log_task_failure)
            task.add_done_callback(self._tasks.discard)
            self._tasks.add(task)
            tasks.append(task)

        logger.info(f"{self.name}: started {len(tasks)} dispatches")
        return tasks

    async def run(self, transport: Transport | None = None) -> list[Outcome | BaseException]:
        """Dispatch every endpoint concurrently and wait for all of them.

        A failing dispatch never affects the others. When no transport is
        given and the engine has none, an ``HttpxTransport`` is created for
        this run and closed afterwards.

        Args:
            transport: Transport to send through; defaults to the engine's own

        Returns:
            One entry per endpoint in tree order: its ``Outcome``, or the
            exception a callback raised during its fan-out
        """
        owned = transport is None and self.transport is None
        try:
            tasks = self.start(transport)
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            if owned and self.transport is not None:
                await self.transport.aclose()
                self.transport = None

        counts = Counter(r.value if isinstance(r, Outcome) else "RAISED" for r in results)
        logger.info(f"{self.name}: finished {len(results)} dispatches {dict(counts)}")
        return results

    def _resolve_transport(self, transport: Transport | None) -> Transport:
        if transport is not None:
            return transport
        if self.transport is None:
            self.transport = HttpxTransport()
        return self.transport


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Callback raised while dispatching {task.get_name()}", exc_info=exc)
