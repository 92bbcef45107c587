"""
Tests for single-path dispatch and outcome fan-out.
"""

from unittest.mock import Mock

import httpx
import pytest

from api_test_engine.core.dispatch import (
    Outcome,
    dispatch,
    fan_out_error,
    fan_out_fail,
    fan_out_notify,
)
from api_test_engine.core.node import ConfigNode

LEAF_TO_ROOT = ["endpoint", "module", "site", "engine"]


def _levels(tree):
    return [tree["engine"], tree["site"], tree["module"], tree["endpoint"]]


class TestFanOut:
    """Test cases for the generic fan-out helpers."""

    def test_fan_out_order_is_leaf_to_root(self):
        """Test that levels are visited in reverse of the given root-to-leaf order."""
        seen = []
        levels = [ConfigNode(name=n) for n in ("root", "mid", "leaf")]
        for level in levels:
            level.add_success_callback(lambda r, n=level.name: seen.append(n))

        fan_out_notify(levels, None)
        assert seen == ["leaf", "mid", "root"]

    def test_each_level_keeps_its_own_order(self):
        """Test that a level's callbacks finish before the next level starts."""
        seen = []
        root = ConfigNode(fail_callbacks=[lambda r: seen.append("root-1")])
        leaf = ConfigNode(
            fail_callbacks=[lambda r: seen.append("leaf-1"), lambda r: seen.append("leaf-2")]
        )

        fan_out_fail([root, leaf], None)
        assert seen == ["leaf-1", "leaf-2", "root-1"]

    def test_fan_out_error(self):
        """Test that error callbacks receive the error, leaf first."""
        seen = []
        error = RuntimeError("boom")
        root = ConfigNode(error_callback=lambda e: seen.append(("root", e)))
        leaf = ConfigNode(error_callback=lambda e: seen.append(("leaf", e)))

        fan_out_error([root, leaf], error)
        assert seen == [("leaf", error), ("root", error)]


class TestDispatch:
    """Test cases for dispatch."""

    @pytest.mark.asyncio
    async def test_verified_response_notifies_leaf_to_root(
        self, sample_tree, event_log, recording_transport
    ):
        """Test that a 200 response fires notify on every level, leaf first."""
        transport = recording_transport(lambda request: httpx.Response(200))

        outcome = await dispatch(_levels(sample_tree), transport)

        assert outcome is Outcome.PASSED
        assert event_log == [(level, "success") for level in LEAF_TO_ROOT]

    @pytest.mark.asyncio
    async def test_rejected_response_fails_leaf_to_root(
        self, sample_tree, event_log, recording_transport
    ):
        """Test that a 404 response fires fail on every level, leaf first."""
        transport = recording_transport(lambda request: httpx.Response(404))

        outcome = await dispatch(_levels(sample_tree), transport)

        assert outcome is Outcome.FAILED
        assert event_log == [(level, "fail") for level in LEAF_TO_ROOT]

    @pytest.mark.asyncio
    async def test_transport_error_only_fires_error_callbacks(
        self, sample_tree, event_log, recording_transport, transport_error
    ):
        """Test that a transport error skips verify, notify and fail everywhere."""
        verify = Mock(return_value=True)
        sample_tree["endpoint"].verify = verify
        transport = recording_transport(lambda request: transport_error)

        outcome = await dispatch(_levels(sample_tree), transport)

        assert outcome is Outcome.ERROR
        assert event_log == [(level, "error") for level in LEAF_TO_ROOT]
        verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_callbacks_receive_the_raised_error(
        self, sample_tree, recording_transport, transport_error
    ):
        """Test that every level's error callback gets the same error object."""
        received = []
        for level in _levels(sample_tree):
            level.error_callback = received.append
        transport = recording_transport(lambda request: transport_error)

        await dispatch(_levels(sample_tree), transport)

        assert received == [transport_error] * 4

    @pytest.mark.asyncio
    async def test_verify_receives_the_response(self, sample_tree, recording_transport):
        """Test that the endpoint predicate sees the transport's response."""
        response = httpx.Response(204)
        verify = Mock(return_value=False)
        sample_tree["endpoint"].verify = verify
        transport = recording_transport(lambda request: response)

        assert await dispatch(_levels(sample_tree), transport) is Outcome.FAILED
        verify.assert_called_once_with(response)

    @pytest.mark.asyncio
    async def test_sends_merged_request(self, sample_tree, recording_transport):
        """Test that the transport receives the merged request."""
        transport = recording_transport()

        await dispatch(_levels(sample_tree), transport)

        (request,) = transport.requests
        assert request.url == "https://x/s/e"
        assert request.headers["X-Level"] == "endpoint"

    @pytest.mark.asyncio
    async def test_callback_error_is_not_rerouted(
        self, sample_tree, event_log, recording_transport
    ):
        """Test that a raising success callback propagates instead of firing error callbacks."""
        sample_tree["module"].add_success_callback(lambda r: 1 / 0)
        transport = recording_transport()

        with pytest.raises(ZeroDivisionError):
            await dispatch(_levels(sample_tree), transport)

        assert ("endpoint", "success") in event_log
        assert all(kind != "error" for _, kind in event_log)
