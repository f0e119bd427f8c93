"""SubscriptionHub — named subscriber callbacks per observable.

Subscribers are keyed by id; the first registration of an id wins and
re-subscribing is a no-op. Fan-out runs in subscription order, and a
subscriber that raises is logged and skipped so the rest still hear
about the change.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger("tabstate.hub")

Callback = Callable[[str, str, Any], None]  # (subscriber_id, prop, new_value)


class SubscriptionHub:
    """Per-observable subscriber tables with isolated fan-out."""

    def __init__(self) -> None:
        self._listeners: dict[str, dict[str, Callback]] = {}

    def reset(self, observable: str) -> None:
        """Start (or restart) an observable with an empty subscriber table."""
        self._listeners[observable] = {}

    def subscribe(self, observable: str, subscriber_id: str, callback: Callback) -> bool:
        """Register callback. Returns False if the observable is unknown or the id is taken."""
        listeners = self._listeners.get(observable)
        if listeners is None or subscriber_id in listeners:
            return False
        listeners[subscriber_id] = callback
        return True

    def unsubscribe(self, observable: str, subscriber_id: str) -> bool:
        listeners = self._listeners.get(observable)
        if listeners is None or subscriber_id not in listeners:
            return False
        del listeners[subscriber_id]
        return True

    def notify(self, observable: str, prop: str, new_value: Any) -> None:
        """Call every subscriber of observable with (subscriber_id, prop, new_value)."""
        # Snapshot: callbacks may subscribe/unsubscribe while we iterate.
        for subscriber_id, callback in list(self._listeners.get(observable, {}).items()):
            try:
                callback(subscriber_id, prop, new_value)
            except Exception:
                logger.exception(
                    "Subscriber %r of %r failed on %r", subscriber_id, observable, prop
                )
