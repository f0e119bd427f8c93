"""ObservableRegistry — name -> intercepted data, wired to a SubscriptionHub.

The registry is the only holder of live observable data. Everything it
hands out is a deep copy, so readers can never mutate internal state.
Unknown names fail soft: reads return None/{} and writes are no-ops.
"""

from __future__ import annotations

import copy
from typing import Any

from tabstate.hub import SubscriptionHub
from tabstate.interceptor import ChangeInterceptor


class ObservableRegistry:
    """Named observables plus their subscriber tables."""

    def __init__(self, hub: SubscriptionHub | None = None) -> None:
        self.hub = hub if hub is not None else SubscriptionHub()
        self._observables: dict[str, ChangeInterceptor] = {}

    def create(self, name: str, data: dict[str, Any] | None = None) -> None:
        """Create (or silently replace) an observable with a copy of data.

        Replacing also drops the previous subscribers: last create wins.
        """

        def on_change(prop: str, new_value: Any) -> None:
            self.hub.notify(name, prop, copy.deepcopy(new_value))

        self._observables[name] = ChangeInterceptor(copy.deepcopy(data or {}), on_change)
        self.hub.reset(name)

    def exists(self, name: str) -> bool:
        return name in self._observables

    def get(self, name: str) -> dict[str, Any] | None:
        """Deep copy of the observable's data, or None if unknown."""
        obs = self._observables.get(name)
        return obs.snapshot() if obs is not None else None

    def get_property(self, name: str, prop: str) -> Any:
        """Deep copy of one property, or None if observable/property is unknown."""
        obs = self._observables.get(name)
        if obs is None:
            return None
        return copy.deepcopy(obs.get(prop))

    def update(self, name: str, prop: str, value: Any) -> bool:
        """Intercepted write. Returns True if the value actually changed."""
        obs = self._observables.get(name)
        if obs is None:
            return False
        return obs.set(prop, copy.deepcopy(value))

    def snapshot_all(self) -> dict[str, dict[str, Any]]:
        """Full copy of every observable, as sent in a state snapshot."""
        return {name: obs.snapshot() for name, obs in self._observables.items()}

    # --- Subscriptions (delegated to the hub) ---

    def subscribe(self, name: str, subscriber_id: str, callback) -> bool:
        if name not in self._observables:
            return False
        return self.hub.subscribe(name, subscriber_id, callback)

    def unsubscribe(self, name: str, subscriber_id: str) -> bool:
        return self.hub.unsubscribe(name, subscriber_id)

    def __len__(self) -> int:
        return len(self._observables)

    def __repr__(self) -> str:
        return f"ObservableRegistry({sorted(self._observables)!r})"
