"""
Result recording for engine runs.

Hooks callbacks onto every endpoint of an engine so each dispatch leaves
exactly one ``DispatchResult`` behind.
"""

from collections import Counter
from dataclasses import dataclass
import time
from typing import Any

from api_test_engine.core.dispatch import Outcome
from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.engine import Engine
from api_test_engine.core.merge import join_path
from api_test_engine.utils.http_transport import TransportError


@dataclass
class DispatchResult:
    """Result of a single endpoint dispatch."""

    name: str
    method: str
    url: str
    outcome: Outcome
    status_code: int | None = None
    duration: float = 0.0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.PASSED

    def __str__(self) -> str:
        """String representation of dispatch result."""
        status = f" {self.status_code}" if self.status_code is not None else ""
        return (
            f"[{self.outcome.value}] {self.name}: {self.method} {self.url}{status} "
            f"({self.duration:.2f}s)"
        )


class ResultRecorder:
    """Collects one result per endpoint dispatch."""

    def __init__(self):
        """Initialize result recorder."""
        self.results: list[DispatchResult] = []
        self._started_at: float | None = None
        self._attached: set[int] = set()
        self._urls: dict[int, set[str]] = {}

    def attach(self, engine: Engine) -> None:
        """Register recording callbacks on every endpoint of ``engine``.

        Each endpoint object is hooked once, however many paths reach it and
        however often ``attach`` is called, so every dispatch leaves exactly
        one result. The result URL is read from the response or the
        transport error of that dispatch.

        Args:
            engine: Engine whose endpoints should be recorded
        """
        for levels in engine.iter_paths():
            endpoint = levels[-1]
            self._urls.setdefault(id(endpoint), set()).add(join_path(levels))
            if id(endpoint) in self._attached:
                continue
            self._attached.add(id(endpoint))
            endpoint.add_success_callback(self._recorder(endpoint, Outcome.PASSED))
            endpoint.add_fail_callback(self._recorder(endpoint, Outcome.FAILED))
            endpoint.error_callback = self._error_recorder(endpoint, endpoint.error_callback)

    def mark_start(self) -> None:
        """Start the clock used for result durations."""
        self._started_at = time.monotonic()

    def summary(self) -> dict[str, int]:
        """Count results per outcome.

        Returns:
            Mapping with ``total`` plus one key per outcome value
        """
        counts = Counter(result.outcome.value for result in self.results)
        summary = {"total": len(self.results)}
        for outcome in Outcome:
            summary[outcome.value] = counts.get(outcome.value, 0)
        return summary

    @property
    def all_passed(self) -> bool:
        return all(result.success for result in self.results)

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def _label(self, endpoint: Endpoint, url: str) -> str:
        return endpoint.name or f"{endpoint.method.value} {url}"

    def _fallback_url(self, endpoint: Endpoint) -> str:
        # Only unambiguous when a single path reaches the endpoint
        urls = self._urls.get(id(endpoint), set())
        if len(urls) == 1:
            return next(iter(urls))
        return endpoint.path

    def _response_url(self, endpoint: Endpoint, response: Any) -> str:
        try:
            url = str(response.request.url)
        except (AttributeError, RuntimeError):
            # httpx raises RuntimeError for a response built without a request
            return self._fallback_url(endpoint)
        return url.split("?", 1)[0]

    def _error_url(self, endpoint: Endpoint, error: Exception) -> str:
        if isinstance(error, TransportError) and error.request is not None:
            return error.request.url
        return self._fallback_url(endpoint)

    def _recorder(self, endpoint: Endpoint, outcome: Outcome):
        def record(response: Any) -> None:
            url = self._response_url(endpoint, response)
            self.results.append(
                DispatchResult(
                    name=self._label(endpoint, url),
                    method=endpoint.method.value,
                    url=url,
                    outcome=outcome,
                    status_code=getattr(response, "status_code", None),
                    duration=self._elapsed(),
                )
            )

        return record

    def _error_recorder(self, endpoint: Endpoint, previous):
        def record(error: Exception) -> Any:
            url = self._error_url(endpoint, error)
            self.results.append(
                DispatchResult(
                    name=self._label(endpoint, url),
                    method=endpoint.method.value,
                    url=url,
                    outcome=Outcome.ERROR,
                    duration=self._elapsed(),
                    error=str(error),
                )
            )
            return previous(error)

        return record
