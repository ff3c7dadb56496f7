"""
Mutable per-request data container threaded through steps and async tasks.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any, Mapping, Optional


class Context(MutableMapping):
    """
    Opaque key/value storage for one request.

    Keys are reachable both as items (``ctx["order"]``) and as attributes
    (``ctx.order``). Names that collide with mapping methods (``get``, ``pop``,
    ``update``...) are only reachable as items.
    """

    __slots__ = ("_data",)

    def __init__(self, initial: Optional[Mapping[str, Any]] = None, **values: Any) -> None:
        object.__setattr__(self, "_data", dict(initial or {}))
        self._data.update(values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Context({self._data!r})"


__all__ = ["Context"]
