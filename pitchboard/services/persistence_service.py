"""
Persistence service for the Pitch Board match engine.

This module keeps the clock and pitch-state records in a local durable
store: one JSON file per record key under a store directory. Keys are
suffixed by an optional session id so more than one session can share a
directory. A read or write fault never reaches the caller; the store logs
it and keeps serving from memory for the rest of the session.
"""
import json
import logging
import os
import re
from typing import Dict, Optional

from ..errors import PersistenceFailure

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class PersistenceService:
    """
    Key/value store for the local durable records.

    Every value is a JSON-serializable dict. Values are mirrored in memory so
    that a store which has degraded to memory-only keeps working unchanged.
    """

    def __init__(self, store_dir: Optional[str] = None, session_id: Optional[str] = None):
        """
        Args:
            store_dir: Directory holding the record files; memory-only when None
            session_id: Optional suffix that keeps sessions apart
        """
        self.store_dir = store_dir
        self.session_id = session_id
        self._memory: Dict[str, dict] = {}
        self.memory_only = store_dir is None

    def storage_key(self, key: str) -> str:
        """Full record key including the session suffix."""
        if self.session_id:
            return f"{key}:{self.session_id}"
        return key

    def _file_path(self, key: str) -> str:
        filename = _UNSAFE_KEY_CHARS.sub("_", self.storage_key(key)) + ".json"
        return os.path.join(self.store_dir, filename)

    def load(self, key: str) -> Optional[dict]:
        """
        Read a record.

        Args:
            key: Record key (without session suffix)

        Returns:
            The stored dict, or None when absent or unreadable
        """
        full_key = self.storage_key(key)
        if full_key in self._memory:
            return dict(self._memory[full_key])
        if self.memory_only:
            return None
        try:
            data = self._read_file(key)
        except PersistenceFailure as e:
            self._degrade(e)
            return None
        if data is not None:
            self._memory[full_key] = data
        return dict(data) if data is not None else None

    def save(self, key: str, value: dict) -> bool:
        """
        Write a record synchronously.

        Args:
            key: Record key (without session suffix)
            value: JSON-serializable dict

        Returns:
            True when written durably, False when only kept in memory
        """
        self._memory[self.storage_key(key)] = dict(value)
        if self.memory_only:
            return False
        try:
            self._write_file(key, value)
        except PersistenceFailure as e:
            self._degrade(e)
            return False
        return True

    def delete(self, key: str) -> None:
        """Remove a record from memory and disk.

        The file is removed even after the store degraded to memory-only, so
        a dismissed match is never restored by the next process.
        """
        self._memory.pop(self.storage_key(key), None)
        if self.store_dir is None:
            return
        path = self._file_path(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            failure = PersistenceFailure(key, f"Could not delete {path}: {e}")
            if self.memory_only:
                logger.warning("Stale record left on disk: %s", failure)
            self._degrade(failure)

    def _read_file(self, key: str) -> Optional[dict]:
        path = self._file_path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceFailure(key, f"Could not read {path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceFailure(key, f"Record {path} is not an object")
        return data

    def _write_file(self, key: str, value: dict) -> None:
        path = self._file_path(key)
        tmp_path = path + ".tmp"
        try:
            if not os.path.exists(self.store_dir):
                os.makedirs(self.store_dir)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(key, f"Could not write {path}: {e}") from e

    def _degrade(self, failure: PersistenceFailure) -> None:
        if not self.memory_only:
            logger.warning(
                "Local store failed for %s (%s); continuing in memory only",
                failure.key, failure,
            )
        self.memory_only = True
