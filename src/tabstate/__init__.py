"""tabstate: observable state replicated across sibling contexts."""

from importlib.metadata import version as _version

__version__ = _version("tabstate")

from tabstate.interceptor import ChangeInterceptor
from tabstate.hub import SubscriptionHub
from tabstate.registry import ObservableRegistry
from tabstate.messages import (
    RequestState,
    SnapshotState,
    CreateObservable,
    UpdateObservable,
    MalformedMessage,
    encode,
    decode,
)
from tabstate.channel import ReplicationChannel, LocalBroadcastBus, LocalChannel
from tabstate.protocol import ReplicationProtocol, ReplicationState
from tabstate.config import StoreConfig, ConnectionMode
from tabstate.fetch import FetchResult
from tabstate.store import StateStore, get_state_store, reset_state_store
# textual NOT auto-imported — opt-in only

__all__ = [
    "ChangeInterceptor",
    "SubscriptionHub",
    "ObservableRegistry",
    "RequestState",
    "SnapshotState",
    "CreateObservable",
    "UpdateObservable",
    "MalformedMessage",
    "encode",
    "decode",
    "ReplicationChannel",
    "LocalBroadcastBus",
    "LocalChannel",
    "ReplicationProtocol",
    "ReplicationState",
    "StoreConfig",
    "ConnectionMode",
    "FetchResult",
    "StateStore",
    "get_state_store",
    "reset_state_store",
]
