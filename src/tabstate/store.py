"""StateStore — the one entry point the rest of the application uses.

Every operation is a coroutine, so purely in-memory calls and the ones
that hit the network (fetch_and_store, publish_message) are awaited the
same way. Local mutations are applied, then broadcast to sibling
contexts; mutations arriving from siblings are applied by the
replication protocol and never broadcast back.

Use get_state_store() rather than constructing StateStore directly: it
returns the single store of this process, building it on first use.

    store = get_state_store()
    await store.start()
    await store.create_observable("profile", {"level": 1})
    await store.subscribe("profile", "badge", on_profile_change)
    await store.update_observable("profile", "level", 2)
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any

import httpx

from tabstate.channel import ReplicationChannel, default_bus
from tabstate.config import ConnectionMode, StoreConfig
from tabstate.fetch import FetchResult, fetch_json
from tabstate.hub import Callback
from tabstate.protocol import ReplicationProtocol, ReplicationState
from tabstate.registry import ObservableRegistry

logger = logging.getLogger("tabstate.store")

VISITOR = "visitor"


class StateStore:
    """Observable store of one context, replicated over a broadcast channel."""

    def __init__(
        self,
        config: StoreConfig | None = None,
        channel: ReplicationChannel | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        started_at: int | None = None,
    ) -> None:
        self.config = config if config is not None else StoreConfig()
        self.channel = channel if channel is not None else default_bus().open(self.config.channel_name)
        self.registry = ObservableRegistry()
        self.protocol = ReplicationProtocol(
            self.registry,
            self.channel,
            started_at=started_at,
            initial_state_timeout=self.config.initial_state_timeout,
        )
        self._http_client = http_client

    @property
    def started_at(self) -> int:
        return self.protocol.started_at

    @property
    def state(self) -> ReplicationState:
        return self.protocol.state

    # --- Lifecycle ---

    async def start(self) -> StateStore:
        """Request state from peers and create the default profile. Idempotent."""
        self.protocol.start(bootstrap=self._bootstrap)
        return self

    def _bootstrap(self) -> None:
        # Local only: broadcasting would clobber the profile peers already share.
        self.registry.create(self.config.profile_name, {"uuid": str(uuid.uuid4()), "role": VISITOR})

    async def wait_until_ready(self) -> None:
        """Wait until the first snapshot was applied or the wait timed out."""
        await self.protocol.wait_until_ready()

    def close(self) -> None:
        self.protocol.close()
        self.channel.close()

    # --- Observables ---

    async def create_observable(self, name: str, data: dict[str, Any] | None = None) -> None:
        """Create or replace an observable and announce it to peers."""
        self.registry.create(name, data)
        self.protocol.publish_create(name, self.registry.get(name))

    async def get_observable(self, name: str) -> dict[str, Any] | None:
        """Snapshot of an observable, or None if there is no such observable."""
        return self.registry.get(name)

    async def get_observable_property(self, name: str, prop: str) -> Any:
        return self.registry.get_property(name, prop)

    async def update_observable(self, name: str, prop: str, value: Any) -> None:
        """Set one property. Unknown observables are ignored; unchanged values aren't broadcast."""
        if self.registry.update(name, prop, value):
            self.protocol.publish_update(name, prop, value)

    async def subscribe(self, name: str, subscriber_id: str, callback: Callback) -> None:
        self.registry.subscribe(name, subscriber_id, callback)

    async def unsubscribe(self, name: str, subscriber_id: str) -> None:
        self.registry.unsubscribe(name, subscriber_id)

    # --- Server I/O ---

    @asynccontextmanager
    async def _client(self):
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.config.http_timeout) as client:
                yield client

    async def fetch_and_store(self, url: str, name: str) -> FetchResult:
        """GET url and store the payload (minus envelope) as observable `name`.

        On failure nothing is stored and the result says why.
        """
        async with self._client() as client:
            result = await fetch_json(client, url)
        if result.ok:
            await self.create_observable(name, result.data)
        return result

    async def ping_server(self, url: str) -> bool:
        async with self._client() as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.warning("Ping %s failed: %s", url, exc)
                return False
        return True

    async def publish_message(self, url: str, message: Any, method: str = "POST") -> FetchResult | None:
        """Send a message to the server according to the configured connection mode.

        Only SOLO mode has a transport; LIVE and OFFLINE return None.
        """
        mode = self.config.connection
        if mode is ConnectionMode.SOLO:
            async with self._client() as client:
                return await fetch_json(client, url, method=method, payload=message)
        logger.info("publish_message(%s) not sent: connection mode %s", url, mode.value)
        return None

    def __repr__(self) -> str:
        return f"StateStore(started_at={self.started_at}, state={self.state.value}, observables={len(self.registry)})"


_instance: StateStore | None = None


def get_state_store(config: StoreConfig | None = None, channel: ReplicationChannel | None = None) -> StateStore:
    """The process-wide store, built on first call. Later arguments are ignored."""
    global _instance
    if _instance is None:
        _instance = StateStore(config if config is not None else StoreConfig.from_env(), channel)
    return _instance


def reset_state_store() -> None:
    """Close and forget the process-wide store."""
    global _instance
    if _instance is not None:
        _instance.close()
        _instance = None
