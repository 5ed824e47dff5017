"""
Local Key-Value Store

Durable per-device state that never goes to the household backend:
notification preferences, the notification log, push subscription
handle and bootstrap flags. One JSON document per key.
"""

import json
import re
from pathlib import Path
from typing import Any, Optional


class LocalStateError(Exception):
    """A stored value cannot be decoded, or the state directory cannot be written."""
    pass


class KeyValueStore:
    """JSON file per key under a state directory."""

    _SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]+")

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{self._SAFE_KEY.sub('_', key)}.json"

    def read(self, key: str) -> Optional[Any]:
        """
        Read and decode a value.

        Returns None if the key was never written.

        Raises:
            LocalStateError: If the stored document is not valid JSON
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise LocalStateError(f"Cannot read local state '{key}': {e}")

    def write(self, key: str, value: Any) -> None:
        """
        Encode and store a value, replacing any previous one.

        Raises:
            LocalStateError: If the state directory cannot be written
        """
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(value, default=str), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise LocalStateError(f"Cannot write local state '{key}': {e}")

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise LocalStateError(f"Cannot delete local state '{key}': {e}")
