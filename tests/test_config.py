"""Tests for StoreConfig."""

import pytest
from pydantic import ValidationError

from tabstate import ConnectionMode, StoreConfig


class TestStoreConfig:
    def test_defaults(self):
        cfg = StoreConfig()
        assert cfg.channel_name == "tabstate"
        assert cfg.initial_state_timeout == 0.3
        assert cfg.profile_name == "user"
        assert cfg.connection is ConnectionMode.SOLO

    def test_from_env(self):
        cfg = StoreConfig.from_env(
            {
                "TABSTATE_CHANNEL_NAME": "game",
                "TABSTATE_INITIAL_STATE_TIMEOUT": "0.5",
                "TABSTATE_CONNECTION": "offline",
                "UNRELATED": "x",
            }
        )
        assert cfg.channel_name == "game"
        assert cfg.initial_state_timeout == 0.5
        assert cfg.connection is ConnectionMode.OFFLINE

    def test_overrides_beat_env(self):
        cfg = StoreConfig.from_env({"TABSTATE_PROFILE_NAME": "env"}, profile_name="kw")
        assert cfg.profile_name == "kw"

    def test_rejects_bad_values(self):
        with pytest.raises(ValidationError):
            StoreConfig(initial_state_timeout=0)
        with pytest.raises(ValidationError):
            StoreConfig(surprise=True)
