"""Shared fixtures: an in-process bus and a channel that records what is sent."""

import pytest

from tabstate import LocalBroadcastBus, decode
from tabstate.store import reset_state_store


class RecordingChannel:
    """Channel stub: keeps sent messages, lets tests inject received ones."""

    def __init__(self):
        self.sent = []
        self._handlers = []
        self.closed = False

    def send(self, message):
        self.sent.append(message)

    def subscribe(self, handler):
        self._handlers.append(handler)
        return lambda: self._handlers.remove(handler)

    def close(self):
        self.closed = True

    def receive(self, message):
        for handler in list(self._handlers):
            handler(message)

    @property
    def messages(self):
        return [decode(m) for m in self.sent]

    @property
    def types(self):
        return [m.type for m in self.messages]


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def bus():
    return LocalBroadcastBus()


@pytest.fixture(autouse=True)
def _fresh_singleton():
    reset_state_store()
    yield
    reset_state_store()
