#!/usr/bin/env python3
"""
Example building an engine tree by hand and running it.

This example shows how to:
1. Share headers and query parameters from the engine down to endpoints
2. Override them closer to the leaf
3. React to pass, fail and transport errors at any level
"""

import asyncio
import logging

from api_test_engine import Endpoint, Engine, Module, Site


def build_engine() -> Engine:
    """Build a small tree against httpbin."""
    engine = Engine(path="https://httpbin.org", headers={"Accept": "application/json"})
    engine.add_query("source", "example")
    engine.add_success_callback(lambda r: print(f"  engine: PASS {r.request.url}"))
    engine.add_fail_callback(lambda r: print(f"  engine: FAIL {r.request.url} -> {r.status_code}"))
    engine.error_callback = lambda e: print(f"  engine: ERROR {e}")

    anything = Module(path="/anything", name="anything")
    anything.add_header("X-Module", "anything")
    anything.add_endpoints(
        [
            Endpoint(path="/users", method="GET", query_params={"source": "endpoint"}),
            Endpoint(path="/users", method="POST", body={"name": "Ada"}),
        ]
    )

    status = Module(path="/status", name="status")
    status.add_endpoints(
        [
            Endpoint(path="/418", method="GET", name="teapot"),
            Endpoint(
                path="/404",
                method="GET",
                name="expected 404",
                verify=lambda r: r.status_code == 404,
            ),
        ]
    )

    engine.add_sites([Site(path="", name="httpbin", modules=[anything, status])])
    return engine


async def main() -> None:
    """Run the example tree once."""
    engine = build_engine()
    print(f"Running {sum(1 for _ in engine.iter_paths())} endpoints...")
    results = await engine.run()
    print("Outcomes:", [getattr(r, "value", repr(r)) for r in results])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
