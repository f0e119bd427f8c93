"""Tests for ObservableRegistry."""

from tabstate import ObservableRegistry


class TestRegistry:
    def test_get_property_after_create(self):
        r = ObservableRegistry()
        r.create("profile", {"level": 1, "name": "ada"})
        assert r.get_property("profile", "level") == 1
        assert r.get_property("profile", "missing") is None

    def test_unknown_observable_fails_soft(self):
        r = ObservableRegistry()
        assert r.get("nope") is None
        assert r.get_property("nope", "x") is None
        assert r.update("nope", "x", 1) is False
        assert not r.exists("nope")

    def test_get_returns_deep_copy(self):
        r = ObservableRegistry()
        r.create("p", {"tags": ["a"]})
        snap = r.get("p")
        snap["tags"].append("b")
        r.get_property("p", "tags").append("c")
        assert r.get("p") == {"tags": ["a"]}

    def test_create_copies_input(self):
        r = ObservableRegistry()
        data = {"tags": ["a"]}
        r.create("p", data)
        data["tags"].append("b")
        assert r.get("p") == {"tags": ["a"]}

    def test_update_notifies_subscribers(self):
        r = ObservableRegistry()
        r.create("p", {"level": 1})
        log = []
        r.subscribe("p", "ui", lambda *args: log.append(args))
        assert r.update("p", "level", 2) is True
        assert r.update("p", "level", 2) is False
        assert log == [("ui", "level", 2)]
        assert r.get("p") == {"level": 2}

    def test_subscriber_value_is_a_copy(self):
        r = ObservableRegistry()
        r.create("p", {})
        r.subscribe("p", "ui", lambda sid, prop, value: value.append("mutated"))
        r.update("p", "items", [1])
        assert r.get("p") == {"items": [1]}

    def test_subscribe_unknown_is_noop(self):
        r = ObservableRegistry()
        assert r.subscribe("nope", "ui", lambda *a: None) is False

    def test_last_create_wins(self):
        r = ObservableRegistry()
        r.create("p", {"a": 1})
        log = []
        r.subscribe("p", "ui", lambda *args: log.append(args))
        r.create("p", {"b": 2})
        r.update("p", "b", 3)
        assert r.get("p") == {"b": 3}
        assert log == []  # subscribers dropped with the old observable

    def test_snapshot_all(self):
        r = ObservableRegistry()
        r.create("a", {"x": 1})
        r.create("b", {})
        assert r.snapshot_all() == {"a": {"x": 1}, "b": {}}
        assert len(r) == 2
