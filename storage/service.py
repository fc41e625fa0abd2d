"""
Storage service for merchant registry persistence on the local filesystem.

Structure:
instance/data/
    merchants.json
    monthly_data.json
    assignments.json
    audit_issues.json
    file_uploads.json
"""
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Any, List, Tuple

from residuals_engine.errors import PersistenceError
from .base import TableStore, TABLES
from .memory import find_duplicate, next_id

logger = logging.getLogger(__name__)


class StorageService(TableStore):
    """
    Persist each table as one JSON document under base_dir.

    Every operation reads the table from disk and writes it back, so the
    files are always the source of truth. Safe for a single process only.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.info(f"[STORAGE] Using local filesystem: {self.base_dir}")

    def _table_path(self, table: str) -> Path:
        if table not in TABLES:
            raise KeyError(f"Unknown table '{table}'")
        return self.base_dir / f"{table}.json"

    def _load_json(self, table: str) -> List[Dict[str, Any]]:
        """Load a table; a missing file is an empty table."""
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"[STORAGE] Error reading {path}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to read {table}: {e}")

    def _save_json(self, table: str, rows: List[Dict[str, Any]]):
        """Write a table atomically (temp file then rename)."""
        path = self._table_path(table)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(rows, f, indent=2, default=str)
            tmp_path.replace(path)
        except OSError as e:
            logger.error(f"[STORAGE] Error writing {path}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to write {table}: {e}")

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return self._load_json(table)

    def _insert(self, table: str, fields: Dict[str, Any], unique_on: Tuple[str, ...] = ()) -> Dict[str, Any]:
        with self._lock:
            rows = self._load_json(table)
            if find_duplicate(rows, fields, unique_on) is not None:
                keys = ", ".join(f"{k}={fields.get(k)}" for k in unique_on)
                raise PersistenceError(f"Duplicate {table} row ({keys})")
            row = dict(fields)
            row["id"] = next_id(rows)
            rows.append(row)
            self._save_json(table, rows)
            return dict(row)

    def _update(self, table: str, row_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            rows = self._load_json(table)
            for row in rows:
                if row["id"] == row_id:
                    row.update({k: v for k, v in fields.items() if k != "id"})
                    self._save_json(table, rows)
                    return dict(row)
        raise KeyError(f"{table} row {row_id} not found")
