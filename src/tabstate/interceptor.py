"""Change interception — a plain dict that reports its own mutations.

A ChangeInterceptor owns a backing dict. Reads pass straight through.
Writes and deletes call the change hook with (property, new_value)
*before* the backing dict is touched, so a failing hook aborts the
mutation and propagates to the caller.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Iterator

ChangeHook = Callable[[str, Any], None]

_MISSING = object()


class ChangeInterceptor:
    """A dict wrapper that runs a change hook on every effective mutation."""

    __slots__ = ("_data", "_on_change")

    def __init__(self, data: dict[str, Any] | None, on_change: ChangeHook) -> None:
        self._data: dict[str, Any] = dict(data) if data else {}
        self._on_change = on_change

    # --- Read operations ---

    def get(self, prop: str, default: Any = None) -> Any:
        """Return the stored value as-is.

        Callables come back exactly as they were stored; they are never
        bound to the wrapper.
        """
        return self._data.get(prop, default)

    def __getitem__(self, prop: str) -> Any:
        return self._data[prop]

    def __contains__(self, prop: str) -> bool:
        return prop in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def keys(self):
        return self._data.keys()

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the backing data. Never aliases internal state."""
        return copy.deepcopy(self._data)

    # --- Write operations (hook first) ---

    def set(self, prop: str, value: Any) -> bool:
        """Write a value. Returns True if the hook fired (value changed)."""
        old = self._data.get(prop, _MISSING)
        if old is _MISSING or type(old) is not type(value) or old != value:
            self._on_change(prop, value)
            self._data[prop] = value
            return True
        return False

    def delete(self, prop: str) -> None:
        """Delete a property. The hook always fires with None."""
        self._on_change(prop, None)
        self._data.pop(prop, None)

    def __setitem__(self, prop: str, value: Any) -> None:
        self.set(prop, value)

    def __delitem__(self, prop: str) -> None:
        self.delete(prop)

    def __repr__(self) -> str:
        return f"ChangeInterceptor({self._data!r})"
