# backend/utils/storage.py
import json
import threading
from pathlib import Path
from typing import Any, Optional


class StorageUnavailable(Exception):
    """Raised when the backing file can't be read or written."""


def read_json_file(path: Path, default=None):
    if not path.exists():
        return {} if default is None else default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise StorageUnavailable(f"Failed to read {path}: {e}") from e


def write_json_file(path: Path, content):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(content, indent=2), encoding="utf-8")
    except (OSError, TypeError) as e:
        raise StorageUnavailable(f"Failed to write {path}: {e}") from e


class MappingStore:
    """Same API over a plain dict, e.g. request cookies."""

    def __init__(self, data: Optional[dict] = None):
        self.data = dict(data or {})
        self.changed = False

    def get_item(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.changed = True

    def remove_item(self, key: str) -> None:
        if self.data.pop(key, None) is not None:
            self.changed = True


class JsonFileStore:
    """
    Small key/value store persisted as one JSON object on disk.
    Mirrors the browser localStorage API (get_item / set_item / remove_item).
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[Any]:
        with self._lock:
            return read_json_file(self.path).get(key)

    def set_item(self, key: str, value: Any) -> None:
        with self._lock:
            data = read_json_file(self.path)
            data[key] = value
            write_json_file(self.path, data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = read_json_file(self.path)
            if key in data:
                del data[key]
                write_json_file(self.path, data)
