"""
In-memory storage backend.
"""
import copy
import logging
import threading
from typing import Any, Dict, List, Tuple

from residuals_engine.errors import PersistenceError
from .base import TableStore, TABLES

logger = logging.getLogger(__name__)


def find_duplicate(rows: List[Dict[str, Any]], fields: Dict[str, Any], unique_on: Tuple[str, ...]):
    """Return the first row matching fields on every unique_on key, if any."""
    if not unique_on:
        return None
    for row in rows:
        if all(row.get(key) == fields.get(key) for key in unique_on):
            return row
    return None


def next_id(rows: List[Dict[str, Any]]) -> int:
    return max((r["id"] for r in rows), default=0) + 1


class InMemoryStorage(TableStore):
    """
    Process-local store. Each call is atomic under a lock; nothing spans calls.
    """

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLES}
        self._lock = threading.Lock()
        logger.info("[STORAGE] Using in-memory storage")

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._tables[table])

    def _insert(self, table: str, fields: Dict[str, Any], unique_on: Tuple[str, ...] = ()) -> Dict[str, Any]:
        with self._lock:
            rows = self._tables[table]
            if find_duplicate(rows, fields, unique_on) is not None:
                keys = ", ".join(f"{k}={fields.get(k)}" for k in unique_on)
                raise PersistenceError(f"Duplicate {table} row ({keys})")
            row = dict(fields)
            row["id"] = next_id(rows)
            rows.append(row)
            return dict(row)

    def _update(self, table: str, row_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            for row in self._tables[table]:
                if row["id"] == row_id:
                    row.update({k: v for k, v in fields.items() if k != "id"})
                    return dict(row)
        raise KeyError(f"{table} row {row_id} not found")
