"""
File manifest - one row per (user, filename) for the upload list

The manifest is what the UI shows as "your files". It is independent of
the vector store: retrieval never reads it, and it is not kept
transactionally consistent with the stored vectors.

Storage is a single JSON file rewritten atomically on every change, or
memory only when no path is given.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Optional

from core.exceptions import StorageFailure

from .models import FileManifestEntry

logger = logging.getLogger(__name__)


class FileManifestStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], FileManifestEntry] = {}
        if self.path is not None:
            self._load()

    def upsert(self, entries: Iterable[FileManifestEntry]) -> list[FileManifestEntry]:
        """Insert or refresh entries; an existing (user, filename) row is replaced."""
        entries = list(entries)
        with self._lock:
            updated = dict(self._entries)
            for entry in entries:
                updated[(entry.user, entry.filename)] = entry
            self._persist(updated)
            self._entries = updated
        return entries

    def remove(self, user: str, filename: str) -> bool:
        """Remove a row. Returns False if it did not exist."""
        with self._lock:
            updated = dict(self._entries)
            removed = updated.pop((user, filename), None)
            if removed is not None:
                self._persist(updated)
                self._entries = updated
        return removed is not None

    def list_files(self, user: str) -> list[FileManifestEntry]:
        with self._lock:
            rows = [entry for (owner, _), entry in self._entries.items() if owner == user]
        return sorted(rows, key=lambda entry: (entry.uploaded_at, entry.filename))

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageFailure("manifest.load", e) from e

        for item in data.get("files", []):
            entry = FileManifestEntry.model_validate(item)
            self._entries[(entry.user, entry.filename)] = entry
        logger.debug(f"Loaded {len(self._entries)} manifest entries from {self.path}")

    def _persist(self, entries: dict[tuple[str, str], FileManifestEntry]) -> None:
        if self.path is None:
            return
        payload = {
            "files": [entry.model_dump(mode="json") for entry in entries.values()],
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageFailure("manifest.write", e) from e
