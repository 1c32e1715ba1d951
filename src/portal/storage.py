"""
Client-side durable storage.

Each browser client gets its own key/value store, the server-side stand-in for
window.localStorage. Values are strings; callers serialize themselves.
Reads and writes are not transactional and concurrent tabs of the same
client are not coordinated.
"""

import json
import logging
import os
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class LocalStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used by tests and headless shells."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class JsonFileStorage:
    """One JSON object per client, rewritten on every change."""

    def __init__(self, path: str):
        self._path = path

    @classmethod
    def for_client(cls, directory: str, client_id: str) -> "JsonFileStorage":
        # client ids come from a cookie; keep them to a safe file name
        safe_id = "".join(ch for ch in client_id if ch.isalnum() or ch in "-_")[:64] or "anonymous"
        return cls(os.path.join(directory, f"{safe_id}.json"))

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unreadable client storage {self._path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
