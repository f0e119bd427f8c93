"""Replication protocol — keeps sibling contexts' registries in step.

Lifecycle of one context:

    IDLE --start()--> AWAITING_INITIAL_STATE --first snapshot / timeout--> REPLICATING

On start the context broadcasts REQUEST_STATE stamped with its start time,
then runs its local bootstrap so it is usable even if nobody answers.

Receiving:
- REQUEST_STATE from a context that started earlier than us is ignored;
  otherwise we answer with a full RECEIVE_STATE snapshot.
- RECEIVE_STATE is applied once, only while awaiting; later ones are dropped.
- CREATE_OBSERVABLE / UPDATE_OBSERVABLE are applied in any state. An update
  for an unknown observable materializes it empty first.

Everything applied from the channel goes straight into the registry and is
never re-broadcast. Only publish_create()/publish_update(), called for
local mutations, put traffic on the channel.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable

from tabstate.channel import ReplicationChannel
from tabstate.messages import (
    CreateObservable,
    MalformedMessage,
    RequestState,
    SnapshotState,
    UpdateObservable,
    decode,
    encode,
)
from tabstate.registry import ObservableRegistry

logger = logging.getLogger("tabstate.protocol")


def now_ms() -> int:
    """Wall-clock epoch milliseconds, comparable between contexts."""
    return time.time_ns() // 1_000_000


class ReplicationState(str, Enum):
    IDLE = "idle"
    AWAITING_INITIAL_STATE = "awaiting_initial_state"
    REPLICATING = "replicating"


class ReplicationProtocol:
    """Request/advertise/apply state over a ReplicationChannel."""

    def __init__(
        self,
        registry: ObservableRegistry,
        channel: ReplicationChannel,
        *,
        started_at: int | None = None,
        initial_state_timeout: float = 0.3,
    ) -> None:
        self.registry = registry
        self.channel = channel
        self.started_at = started_at if started_at is not None else now_ms()
        self.initial_state_timeout = initial_state_timeout
        self.state = ReplicationState.IDLE
        self._ready = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None

    # --- Lifecycle ---

    def start(self, bootstrap: Callable[[], None] | None = None) -> None:
        """Ask peers for state, then bootstrap locally. Needs a running loop."""
        if self.state is not ReplicationState.IDLE:
            return
        loop = asyncio.get_running_loop()
        self._unsubscribe = self.channel.subscribe(self.handle)
        self.state = ReplicationState.AWAITING_INITIAL_STATE
        self._send(RequestState(origin_time=self.started_at))
        self._timer = loop.call_later(self.initial_state_timeout, self._on_timeout)
        if bootstrap is not None:
            bootstrap()

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def ready(self) -> bool:
        return self.state is ReplicationState.REPLICATING

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    def _become_replicating(self, reason: str) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state = ReplicationState.REPLICATING
        self._ready.set()
        logger.debug("Context %d replicating (%s)", self.started_at, reason)

    def _on_timeout(self) -> None:
        self._timer = None
        if self.state is ReplicationState.AWAITING_INITIAL_STATE:
            self._become_replicating("no snapshot within %.3fs" % self.initial_state_timeout)

    # --- Outgoing ---

    def publish_create(self, name: str, data: dict[str, Any]) -> None:
        self._send(CreateObservable(name=name, data=data))

    def publish_update(self, name: str, prop: str, value: Any) -> None:
        self._send(UpdateObservable(name=name, prop=prop, value=value))

    def _send(self, message) -> None:
        self.channel.send(encode(message))

    # --- Incoming ---

    def handle(self, raw: str) -> None:
        """Channel receive handler. Malformed input is logged and dropped."""
        try:
            message = decode(raw)
        except MalformedMessage as exc:
            logger.warning("Ignoring malformed replication message: %s", exc)
            return

        if isinstance(message, RequestState):
            self._on_request_state(message)
        elif isinstance(message, SnapshotState):
            self._on_snapshot(message)
        elif isinstance(message, CreateObservable):
            self.registry.create(message.name, message.data)
        elif isinstance(message, UpdateObservable):
            self._apply_update(message.name, message.prop, message.value)

    def _on_request_state(self, message: RequestState) -> None:
        if message.origin_time < self.started_at:
            logger.debug(
                "Ignoring state request from earlier context %d (we started %d)",
                message.origin_time, self.started_at,
            )
            return
        self._send(SnapshotState(observables=self.registry.snapshot_all()))

    def _on_snapshot(self, message: SnapshotState) -> None:
        if self.state is not ReplicationState.AWAITING_INITIAL_STATE:
            logger.debug("Dropping snapshot received in state %s", self.state.value)
            return
        for name, data in message.observables.items():
            if self.registry.exists(name):
                for prop, value in data.items():
                    self.registry.update(name, prop, value)
            else:
                self.registry.create(name, data)
        self._become_replicating("snapshot with %d observables" % len(message.observables))

    def _apply_update(self, name: str, prop: str, value: Any) -> None:
        if not self.registry.exists(name):
            self.registry.create(name, {})
        self.registry.update(name, prop, value)
