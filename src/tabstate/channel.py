"""Broadcast channels — the only link between sibling contexts.

A ReplicationChannel is fire-and-forget: send() returns immediately, there
is no acknowledgement, and a context never hears its own messages.

LocalBroadcastBus is the in-process transport. Each bus.open(name) call
returns an endpoint; send() on one endpoint schedules delivery to every
other open endpoint of the same name on the running event loop, one
loop turn later, like a browser BroadcastChannel.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

logger = logging.getLogger("tabstate.channel")

Handler = Callable[[str], None]
Disposer = Callable[[], None]


class ReplicationChannel(Protocol):
    def send(self, message: str) -> None: ...

    def subscribe(self, handler: Handler) -> Disposer: ...

    def close(self) -> None: ...


class LocalChannel:
    """One context's endpoint on a LocalBroadcastBus."""

    def __init__(self, bus: LocalBroadcastBus, name: str) -> None:
        self._bus = bus
        self.name = name
        self._handlers: list[Handler] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: str) -> None:
        if self._closed:
            logger.debug("send() on closed channel %r dropped", self.name)
            return
        self._bus._fan_out(self, message)

    def subscribe(self, handler: Handler) -> Disposer:
        """Register a receive handler. Returns a function that removes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def close(self) -> None:
        self._closed = True
        self._handlers.clear()
        self._bus._detach(self)

    def _deliver(self, message: str) -> None:
        if self._closed:
            return
        for handler in list(self._handlers):
            try:
                handler(message)
            except Exception:
                logger.exception("Channel %r handler %r failed", self.name, handler)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"LocalChannel({self.name!r}, {state})"


class LocalBroadcastBus:
    """In-process broadcast medium shared by every context that opens it."""

    def __init__(self) -> None:
        self._endpoints: dict[str, list[LocalChannel]] = {}
        self._in_flight = 0

    def open(self, name: str) -> LocalChannel:
        channel = LocalChannel(self, name)
        self._endpoints.setdefault(name, []).append(channel)
        return channel

    def _detach(self, channel: LocalChannel) -> None:
        peers = self._endpoints.get(channel.name, [])
        if channel in peers:
            peers.remove(channel)

    def _fan_out(self, sender: LocalChannel, message: str) -> None:
        loop = asyncio.get_running_loop()
        for peer in list(self._endpoints.get(sender.name, [])):
            if peer is sender:
                continue
            self._in_flight += 1
            loop.call_soon(self._deliver, peer, message)

    def _deliver(self, peer: LocalChannel, message: str) -> None:
        try:
            peer._deliver(message)
        finally:
            self._in_flight -= 1

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def wait_until_idle(self, timeout: float = 5.0) -> bool:
        """Wait until no delivery is pending, including ones scheduled meanwhile.

        Returns False if the timeout expires first.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._in_flight:
            if loop.time() >= deadline:
                logger.warning("Bus still has %d deliveries after %.2fs", self._in_flight, timeout)
                return False
            await asyncio.sleep(0)
        return True


_default_bus: LocalBroadcastBus | None = None


def default_bus() -> LocalBroadcastBus:
    """The process-wide bus used when no channel is supplied."""
    global _default_bus
    if _default_bus is None:
        _default_bus = LocalBroadcastBus()
    return _default_bus
