"""Tests for the in-process broadcast bus."""

import pytest


@pytest.mark.asyncio
class TestLocalBroadcastBus:
    async def test_fans_out_to_peers_not_sender(self, bus):
        a, b, c = bus.open("app"), bus.open("app"), bus.open("app")
        got = {"a": [], "b": [], "c": []}
        a.subscribe(got["a"].append)
        b.subscribe(got["b"].append)
        c.subscribe(got["c"].append)
        a.send("hello")
        assert got == {"a": [], "b": [], "c": []}  # delivery is asynchronous
        assert await bus.wait_until_idle()
        assert got == {"a": [], "b": ["hello"], "c": ["hello"]}

    async def test_names_are_isolated(self, bus):
        a, other = bus.open("app"), bus.open("other")
        got = []
        other.subscribe(got.append)
        a.send("x")
        await bus.wait_until_idle()
        assert got == []

    async def test_unsubscribe(self, bus):
        a, b = bus.open("app"), bus.open("app")
        got = []
        unsub = b.subscribe(got.append)
        unsub()
        unsub()  # should not raise
        a.send("x")
        await bus.wait_until_idle()
        assert got == []

    async def test_closed_endpoint(self, bus):
        a, b = bus.open("app"), bus.open("app")
        got = []
        b.subscribe(got.append)
        a.send("in flight")
        b.close()
        a.send("after close")
        await bus.wait_until_idle()
        assert got == []
        assert b.closed
        b.send("ignored")
        assert bus.in_flight == 0

    async def test_failing_handler_does_not_stop_others(self, bus, caplog):
        a, b, c = bus.open("app"), bus.open("app"), bus.open("app")
        got = []

        def boom(message):
            raise RuntimeError("handler exploded")

        b.subscribe(boom)
        b.subscribe(got.append)
        c.subscribe(got.append)
        a.send("x")
        await bus.wait_until_idle()
        assert got == ["x", "x"]
        assert "handler exploded" in caplog.text

    async def test_wait_covers_chained_sends(self, bus):
        a, b = bus.open("app"), bus.open("app")
        got = []
        b.subscribe(lambda m: b.send("reply:" + m))
        a.subscribe(got.append)
        a.send("ping")
        await bus.wait_until_idle()
        assert got == ["reply:ping"]
