"""
Dispatch of a single tree path and fan-out of its outcome.

A tree path is the sequence of levels from the engine down to one
endpoint. The request is built from the levels root to leaf; the outcome
is reported to the levels leaf to root.
"""

from collections.abc import Sequence
from enum import Enum
import logging
from typing import Any

from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.merge import build_request
from api_test_engine.core.node import ConfigNode
from api_test_engine.utils.http_transport import Transport

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """Terminal result of one endpoint dispatch."""

    PASSED = "PASS"
    FAILED = "FAIL"
    ERROR = "ERROR"


def fan_out_notify(levels: Sequence[ConfigNode], response: Any) -> None:
    """Call ``notify`` on every level, leaf first."""
    for level in reversed(levels):
        level.notify(response)


def fan_out_fail(levels: Sequence[ConfigNode], response: Any) -> None:
    """Call ``fail`` on every level, leaf first."""
    for level in reversed(levels):
        level.fail(response)


def fan_out_error(levels: Sequence[ConfigNode], error: Exception) -> None:
    """Call ``error_callback`` on every level, leaf first."""
    for level in reversed(levels):
        level.error_callback(error)


async def dispatch(levels: Sequence[ConfigNode], transport: Transport) -> Outcome:
    """Send the request for one tree path and report the outcome.

    Args:
        levels: Tree path ordered root to leaf, ending with an Endpoint
        transport: Transport used to send the merged request

    Returns:
        Which of the three fan-outs ran

    Raises:
        Exception: Whatever a success, fail or error callback raises
    """
    endpoint: Endpoint = levels[-1]
    request = build_request(levels)
    logger.debug(f"Dispatching {request}")

    try:
        response = await transport.send(request)
    except Exception as e:
        # Any failure to obtain a response; verify/notify/fail are skipped.
        logger.debug(f"{request} raised {type(e).__name__}: {e}")
        fan_out_error(levels, e)
        return Outcome.ERROR

    if endpoint.verify(response):
        fan_out_notify(levels, response)
        return Outcome.PASSED

    fan_out_fail(levels, response)
    return Outcome.FAILED
