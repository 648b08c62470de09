"""Local key/value storage for workspace state.

Each named entry (``integral_events``, ``integral_tasks``, ``integral_user``...)
is a JSON document. ``LocalStorage`` keeps one file per entry in a data
directory; ``MemoryStorage`` keeps them in a dict and backs tests and the
in-memory fallback.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import typing as t

logger = logging.getLogger(__name__)

# Data directory - configurable via environment variable
DATA_DIR = os.getenv("INTEGRAL_DATA_DIR", os.path.join(os.path.expanduser("~"), ".integral"))

EVENTS_KEY = "integral_events"
TASKS_KEY = "integral_tasks"
USER_KEY = "integral_user"
ACCOUNTS_KEY = "integral_users"


class Storage(t.Protocol):
    def get_item(self, key: str) -> t.Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self, initial: t.Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> t.Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class LocalStorage:
    """File-backed storage: one ``<key>.json`` file per entry under ``directory``."""

    def __init__(self, directory: t.Union[str, Path, None] = None) -> None:
        self.directory = Path(directory or DATA_DIR)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> t.Optional[str]:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read storage entry {key}: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        """Write an entry atomically; OSError propagates to the caller."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


def read_json(storage: Storage, key: str) -> t.Any:
    """Return the decoded entry, or None when absent.

    Raises json.JSONDecodeError when the stored text is not valid JSON.
    """
    raw = storage.get_item(key)
    if raw is None:
        return None
    return json.loads(raw)


def write_json(storage: Storage, key: str, data: t.Any) -> None:
    storage.set_item(key, json.dumps(data, indent=2))
