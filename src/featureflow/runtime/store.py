"""
Store interface injected into step handlers through the request Context.
"""

from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Store(Protocol):
    def find(self, record_id: Any) -> Optional[Dict[str, Any]]: ...

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]: ...

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    def delete(self, record_id: Any) -> bool: ...


class InMemoryStore:
    """
    Dict-backed store with snapshot/restore hooks for the rollback pattern.

    ``context_initializer`` takes ``store.snapshot()`` into the Context and
    ``on_error`` hands it back to ``store.restore()``.
    """

    def __init__(self, records: Optional[Dict[Any, Dict[str, Any]]] = None, id_field: str = "id") -> None:
        self.id_field = id_field
        self._records: Dict[Any, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        for record_id, record in (records or {}).items():
            self._records[record_id] = {**record, id_field: record_id}
        if self._records:
            numeric = [key for key in self._records if isinstance(key, int)]
            if numeric:
                self._ids = itertools.count(max(numeric) + 1)

    def find(self, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            return dict(record) if record is not None else None

    def find_all(self, predicate: Optional[Callable[[Dict[str, Any]], bool]] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._records.values() if predicate is None or predicate(r)]

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            record_id = data.get(self.id_field)
            if record_id is None:
                record_id = next(self._ids)
            record = {**data, self.id_field: record_id}
            self._records[record_id] = record
            return dict(record)

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None
            record.update(changes)
            record[self.id_field] = record_id
            return dict(record)

    def delete(self, record_id: Any) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def snapshot(self) -> Dict[Any, Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._records)

    def restore(self, snapshot: Dict[Any, Dict[str, Any]]) -> None:
        with self._lock:
            self._records = copy.deepcopy(snapshot)

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["Store", "InMemoryStore"]
