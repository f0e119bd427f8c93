"""Textual integration for tabstate. Opt-in, requires textual.

Store subscribers are called synchronously from inside the mutation that
triggered them, and in tabstate that mutation can come from three places:
a local update_observable(), a snapshot or update applied by the
replication protocol on a loop callback, or a worker thread writing to the
store. subscribe() wraps a (subscriber_id, prop, value) callback so widgets
only see it on the UI thread while the app is running and not paused.

A skipped call only skips the widget refresh. The write still lands in
the store (and a local write is still broadcast), so a widget that missed
one can re-read it with store.get_observable_property() afterwards.
Errors other than NoMatches are left to the store, which logs them and
keeps notifying the remaining subscribers.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def guard(app, callback):
    """Wrap a (subscriber_id, prop, value) callback for use against app's widgets.

    Skips calls while the app isn't safe, swallows NoMatches from widget
    queries, and marshals off-thread calls via call_from_thread.
    """
    _main = threading.get_ident()

    def _guarded(subscriber_id, prop, value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, subscriber_id, prop, value)
        else:
            _safe(subscriber_id, prop, value)

    def _safe(subscriber_id, prop, value):
        try:
            callback(subscriber_id, prop, value)
        except NoMatches:
            pass

    return _guarded


async def subscribe(app, store, name, subscriber_id, callback):
    """store.subscribe() with the callback guarded for app."""
    await store.subscribe(name, subscriber_id, guard(app, callback))
