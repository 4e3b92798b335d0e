"""Unique keys of entities and the registry that enforces them."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Iterable, Mapping

from .errors import DuplicatedUnique
from .values import Value, encode_value


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def unique_log_entry(entity: str, uniques: Iterable[str]) -> str:
    """Render the record that declares which keys of an entity are unique."""
    keys = "".join(f"{_quote(key)}," for key in uniques)
    return f"(entity: {_quote(entity)},uniques: [{keys}],)"


def write_with_unique_keys(path: str | Path, entity: str, uniques: Iterable[str]) -> None:
    """Append the unique-keys record of an entity to the file at path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(unique_log_entry(entity, uniques) + "\n")


class UniquenessRegistry:
    """Values already taken by the unique keys of each entity.

    When a path is given, every change is written to it in full.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._data: dict[str, dict[str, set[str]]] = {}
        self._lock = threading.RLock()

    def create(self, entity: str, uniques: Iterable[str]) -> None:
        """Register the unique keys of an entity; an existing entity is kept as is."""
        with self._lock:
            if entity not in self._data:
                self._data[entity] = {name: set() for name in uniques}
            self._persist()

    def check(self, entity: str, content: Mapping[str, Value]) -> None:
        """Record the unique values of content, raising DuplicatedUnique on a clash."""
        with self._lock:
            if not self._data:
                return
            keys = self._data.get(entity)
            if keys is not None:
                for key, value in content.items():
                    seen = keys.get(key)
                    if seen is None:
                        continue
                    text = encode_value(value)
                    if text in seen:
                        raise DuplicatedUnique(entity, key, value)
                    seen.add(text)
            self._persist()

    def dump(self) -> str:
        """Render the whole registry as text."""
        with self._lock:
            entities = []
            for entity in sorted(self._data):
                keys = "".join(
                    f"{_quote(key)}: [" + "".join(f"{_quote(v)}," for v in sorted(seen)) + "],"
                    for key, seen in sorted(self._data[entity].items())
                )
                entities.append(f"{_quote(entity)}: {{{keys}}},")
            return "{" + "".join(entities) + "}"

    def _persist(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.dump(), encoding="utf-8")