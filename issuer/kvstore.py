"""
Key-value backends for protocol state that must outlive a single request.
ChallengeStore holds the lock; backends only need get/put/delete/items.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

DEFAULT_STORE_PATH = Path("issuer_data") / "challenges.json"

class KeyValueStore:
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def put(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> Optional[Dict[str, Any]]:
        """Remove key and return what was stored, or None."""
        raise NotImplementedError

    def items(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key):
        return self._data.get(key)

    def put(self, key, value):
        self._data[key] = dict(value)

    def delete(self, key):
        return self._data.pop(key, None)

    def items(self):
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore(KeyValueStore):
    """
    Whole-file JSON map. Survives restarts on a single host; swap for a shared
    cache when running more than one instance.
    """

    def __init__(self, path: Path = DEFAULT_STORE_PATH):
        self.path = Path(path)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        return json.loads(text) if text.strip() else {}

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key):
        return self._load().get(key)

    def put(self, key, value):
        data = self._load()
        data[key] = dict(value)
        self._save(data)

    def delete(self, key):
        data = self._load()
        value = data.pop(key, None)
        if value is not None:
            self._save(data)
        return value

    def items(self):
        return iter(list(self._load().items()))

    def __len__(self) -> int:
        return len(self._load())
