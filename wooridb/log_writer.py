"""Append-only transaction log and recovery files."""

from __future__ import annotations

import json
import threading
import uuid as uuid_module
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping
from uuid import UUID

from .logline import DataRegister
from .values import encode_state

LOCAL_DATA_FILE = "local_data.log"
OFFSET_FILE = "offset_counter.log"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _date_text(moment: datetime) -> str:
    return json.dumps(_as_utc(moment).isoformat().replace("+00:00", "Z"))


class LogWriter:
    """Writes transaction lines to the daily log of a data directory."""

    def __init__(
        self, directory: str | Path = "data", clock: Callable[[], datetime] | None = None
    ) -> None:
        self.directory = Path(directory)
        self._clock = clock or _utc_now
        self._lock = threading.Lock()

    @property
    def log_path(self) -> Path:
        """The log file that today's transactions go to."""
        return self.directory / f"{_as_utc(self._clock()):%Y_%m_%d}.log"

    def _append(self, line: str) -> tuple[int, bool]:
        data = line.encode("utf-8")
        with self._lock:
            path = self.log_path
            path.parent.mkdir(parents=True, exist_ok=True)
            is_empty = not path.exists() or path.stat().st_size == 0
            with path.open("ab") as handle:
                handle.write(data)
        return len(data), is_empty

    def _overwrite(self, name: str, text: str) -> None:
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / name).write_text(text, encoding="utf-8")

    def create_entity(self, name: str) -> tuple[int, bool]:
        return self._append(f"CREATE_ENTITY|{name};")

    def insert(
        self, name: str, content: str, uuid: UUID | None, datetime: datetime
    ) -> tuple[datetime, UUID, int, bool]:
        """Log an insert; return its date, id, bytes written and whether the log was empty."""
        date = _as_utc(datetime)
        entity_id = uuid if uuid is not None else uuid_module.uuid4()
        line = f"INSERT|{_date_text(date)}|{entity_id}|{name}|{content};"
        written, is_empty = self._append(line)
        return date, entity_id, written, is_empty

    def update_set(
        self,
        name: str,
        current_state: str,
        content_log: str,
        uuid: UUID,
        datetime: datetime,
        previous_registry: str,
    ) -> tuple[datetime, int, bool]:
        date = _as_utc(datetime)
        line = (
            f"UPDATE_SET|{_date_text(date)}|{uuid}|{name}|{content_log}|"
            f"{current_state}|{previous_registry};"
        )
        written, is_empty = self._append(line)
        return date, written, is_empty

    def update_content(
        self,
        name: str,
        current_state: str,
        content_log: str,
        uuid: UUID,
        previous_registry: str,
    ) -> tuple[datetime, int, bool]:
        date = _as_utc(self._clock())
        line = (
            f"UPDATE_CONTENT|{_date_text(date)}|{uuid}|{name}|{content_log}|"
            f"{current_state}|{previous_registry};"
        )
        written, is_empty = self._append(line)
        return date, written, is_empty

    def delete(
        self, name: str, content_log: str, uuid: UUID, previous_registry: str
    ) -> tuple[datetime, int, bool]:
        date = _as_utc(self._clock())
        line = f"DELETE|{_date_text(date)}|{uuid}|{name}|{content_log}|{previous_registry};"
        written, is_empty = self._append(line)
        return date, written, is_empty

    def evict_entity(self, name: str) -> tuple[int, bool]:
        return self._append(f"EVICT_ENTITY|{name};")

    def evict_entity_id(self, name: str, uuid: UUID) -> tuple[int, bool]:
        return self._append(f"EVICT_ENTITY_ID|{uuid}|{name};")

    def write_offset(self, offset: int) -> None:
        """Record the current offset into today's log."""
        if offset < 0:
            raise ValueError("offset must not be negative")
        self._overwrite(OFFSET_FILE, str(offset))

    def write_local_data(
        self, data: Mapping[str, Mapping[UUID, tuple[DataRegister, Mapping[str, Any]]]]
    ) -> None:
        """Snapshot every entity's registers and states for recovery."""
        entities = []
        for entity in sorted(data):
            rows = "".join(
                f"{json.dumps(str(entity_id))}: ({register.to_text()},{encode_state(state)}),"
                for entity_id, (register, state) in sorted(
                    data[entity].items(), key=lambda item: str(item[0])
                )
            )
            entities.append(f"{json.dumps(entity, ensure_ascii=False)}: {{{rows}}},")
        self._overwrite(LOCAL_DATA_FILE, "{" + "".join(entities) + "}")