"""Persistence for the migration state.

The state is read wholesale at the start of an operation and written
wholesale at its end. ``save`` accepts the ``updatedAt`` value seen at load
time and refuses to overwrite a state that changed in between.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .errors import ConcurrentModification
from .models import MigrationState, advance_timestamp

logger = logging.getLogger("figmigrate.store")


class MigrationStore(Protocol):
    def exists(self) -> bool: ...

    def load(self) -> Optional[MigrationState]: ...

    def save(self, state: MigrationState, *, expected_updated_at: Optional[str] = None) -> None: ...


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON to ``path`` through a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


class JsonFileStore:
    """Stores the migration state as a single JSON document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def _read_raw(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Migration state at {self.path} is not valid JSON: {e}") from e

    def load(self) -> Optional[MigrationState]:
        raw = self._read_raw()
        if raw is None:
            return None
        return MigrationState.from_dict(raw)

    def save(self, state: MigrationState, *, expected_updated_at: Optional[str] = None) -> None:
        if expected_updated_at is not None:
            raw = self._read_raw()
            actual = raw.get("updatedAt") if isinstance(raw, dict) else None
            if actual != expected_updated_at:
                raise ConcurrentModification(expected_updated_at, actual)

        state.updated_at = advance_timestamp(state.updated_at)
        write_json_atomic(self.path, state.to_dict())
        logger.debug(f"Migration state written to {self.path}")


class InMemoryStore:
    """Keeps a serialized copy of the state, for tests and embedding."""

    def __init__(self, state: Optional[MigrationState] = None):
        self._data: Optional[Dict[str, Any]] = state.to_dict() if state else None
        self.saves = 0

    def exists(self) -> bool:
        return self._data is not None

    def load(self) -> Optional[MigrationState]:
        if self._data is None:
            return None
        return MigrationState.from_dict(json.loads(json.dumps(self._data)))

    def save(self, state: MigrationState, *, expected_updated_at: Optional[str] = None) -> None:
        if expected_updated_at is not None:
            actual = self._data.get("updatedAt") if self._data else None
            if actual != expected_updated_at:
                raise ConcurrentModification(expected_updated_at, actual)
        state.updated_at = advance_timestamp(state.updated_at)
        self._data = json.loads(json.dumps(state.to_dict()))
        self.saves += 1
