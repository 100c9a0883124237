"""
Session Storage — ephemeral text key-value area for key material.

Anything implementing ``SessionStorage`` can hold the key representations;
values are opaque base64 text and expiry is bound to the session itself.
``MemorySessionStorage`` lives only as long as its owning process/session
and never touches disk.
"""
import threading
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class SessionStorage(Protocol):
    """Contract required from a session-scoped storage area."""

    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def remove(self, name: str) -> None:
        ...


class MemorySessionStorage:
    """Thread-safe, in-process session storage."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._items.get(name)

    def set(self, name: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("Session storage only accepts text values")
        with self._lock:
            self._items[name] = value

    def remove(self, name: str) -> None:
        with self._lock:
            self._items.pop(name, None)

    def clear(self) -> None:
        """Drop every stored value (session end)."""
        with self._lock:
            self._items.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        # names only, never values
        return f"<MemorySessionStorage names={sorted(self._items)}>"
