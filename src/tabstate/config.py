"""Store configuration.

Defaults suit a browser-like setup: a handful of sibling contexts on one
named channel. Every field can be overridden from the environment with a
``TABSTATE_`` prefix, e.g. ``TABSTATE_INITIAL_STATE_TIMEOUT=0.5``.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "TABSTATE_"


class ConnectionMode(str, Enum):
    """Where publish_message() sends outgoing messages."""

    LIVE = "live"        # websocket; not wired to a transport
    SOLO = "solo"        # plain HTTP API
    OFFLINE = "offline"  # kept local


class StoreConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    channel_name: str = Field(default="tabstate", min_length=1, description="Broadcast channel name")
    initial_state_timeout: float = Field(
        default=0.3, gt=0.0, le=60.0, description="Seconds to wait for a peer snapshot"
    )
    profile_name: str = Field(default="user", min_length=1, description="Bootstrap profile observable")
    http_timeout: float = Field(default=10.0, gt=0.0, description="HTTP request timeout (seconds)")
    connection: ConnectionMode = Field(default=ConnectionMode.SOLO)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "StoreConfig":
        """Build a config from TABSTATE_* variables; keyword overrides win."""
        environ = os.environ if environ is None else environ
        values = {}
        for field in cls.model_fields:
            raw = environ.get(ENV_PREFIX + field.upper())
            if raw is not None:
                values[field] = raw
        values.update(overrides)
        return cls(**values)
