"""Access to the extracted Figma file.

The snapshot is produced by the fetch collaborator, which keeps it in memory
and mirrors it to ``.figma-cache.json``. ``SourceContext`` is the explicit
holder of that snapshot: it returns the in-memory copy when present and
otherwise reads through to the cache file. A missing or unreadable cache
means "no data", never an exception.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .models import SourceData
from .store import write_json_atomic

logger = logging.getLogger("figmigrate.source")

_FILE_KEY_PATTERNS = (
    re.compile(r"figma\.com/file/([a-zA-Z0-9]+)"),
    re.compile(r"figma\.com/design/([a-zA-Z0-9]+)"),
)


def parse_file_key(url_or_key: str) -> str:
    """Extract the file key from a Figma URL; anything without a ``/`` is already a key."""
    if "/" not in url_or_key:
        return url_or_key
    for pattern in _FILE_KEY_PATTERNS:
        match = pattern.search(url_or_key)
        if match:
            return match.group(1)
    return url_or_key


class SourceContext:
    """In-memory snapshot with read-through to the on-disk cache.

    The cache file is rewritten by the fetch collaborator, so the snapshot is
    only trusted while the file's modification time and size are unchanged.
    """

    def __init__(self, cache_path: Path | str, data: Optional[SourceData] = None):
        self.cache_path = Path(cache_path)
        self._data = data
        self._signature = self._disk_signature()

    def _disk_signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self.cache_path.stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def get(self) -> Optional[SourceData]:
        """Return the snapshot, re-reading the cache file when it changed on disk."""
        signature = self._disk_signature()
        if self._data is None or signature != self._signature:
            if self._data is not None:
                logger.info(f"Figma cache {self.cache_path} changed on disk, reloading")
            self._data = self.load_from_disk()
            self._signature = signature
        return self._data

    def set(self, data: Optional[SourceData], *, persist: bool = False) -> None:
        """Replace the in-memory snapshot, optionally mirroring it to disk."""
        self._data = data
        if persist and data is not None:
            write_json_atomic(self.cache_path, data.to_dict())
        self._signature = self._disk_signature()

    def load_from_disk(self) -> Optional[SourceData]:
        try:
            raw: Dict[str, Any] = json.loads(self.cache_path.read_text(encoding="utf-8"))
            return SourceData.from_dict(raw)
        except FileNotFoundError:
            logger.debug(f"No Figma cache at {self.cache_path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable Figma cache {self.cache_path}: {e}")
        return None
