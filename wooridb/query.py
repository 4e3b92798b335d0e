"""SELECT and CHECK queries over the in-memory registry and the daily logs."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import islice
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping
from uuid import UUID

from .encryption import verify_encryption
from .errors import (
    CheckNonEncryptedKeys,
    DateTimeParse,
    EntityNotCreated,
    UuidNotCreatedForEntity,
)
from .logline import DataRegister, parse_state
from .values import Value
from .when import (
    filter_keys_and_hash,
    read_entities_at,
    read_entity_id_at,
    read_entity_range,
)

State = dict[str, Value]
LocalData = Mapping[str, Mapping[UUID, tuple[DataRegister, Mapping[str, Value]]]]


def _parse_date(date: str | datetime) -> datetime:
    if isinstance(date, datetime):
        moment = date
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
    else:
        try:
            moment = datetime.fromisoformat(date.strip())
        except ValueError:
            raise DateTimeParse(date) from None
        if moment.tzinfo is None:
            raise DateTimeParse(date)
    return moment.astimezone(timezone.utc)


def date_log_path(date: str | datetime, directory: str | Path = "data") -> Path:
    """Path of the daily log holding the transactions of a (UTC) date."""
    moment = _parse_date(date)
    return Path(directory) / f"{moment:%Y_%m_%d}.log"


def _as_uuid(value: UUID | str) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _read_register(register: DataRegister) -> str:
    with open(register.file_name, "rb") as handle:
        handle.seek(register.offset)
        return handle.read(register.bytes_length).decode("utf-8")


def _window(items: Iterable[Any], limit: int | None, offset: int) -> list[Any]:
    stop = None if limit is None else offset + limit
    return list(islice(items, offset, stop))


class QueryEngine:
    """Answers read queries about entities.

    local_data maps each entity to its ids, and each id to its latest log
    register and state. encryption maps entities to their encrypted keys.
    read_registry returns the log line a register points to.
    """

    def __init__(
        self,
        local_data: LocalData,
        encryption: Mapping[str, Iterable[str]] | None = None,
        read_registry: Callable[[DataRegister], str] | None = None,
        directory: str | Path = "data",
    ) -> None:
        self.local_data = local_data
        self.encryption = encryption if encryption is not None else {}
        self.read_registry = read_registry or _read_register
        self.directory = Path(directory)

    def _registries(self, entity: str) -> Mapping[UUID, tuple[DataRegister, Mapping[str, Value]]]:
        registries = self.local_data.get(entity)
        if registries is None:
            raise EntityNotCreated(entity)
        return registries

    def _entry(self, entity: str, uuid: UUID | str) -> tuple[DataRegister, Mapping[str, Value]]:
        uid = _as_uuid(uuid)
        entry = self._registries(entity).get(uid)
        if entry is None:
            raise UuidNotCreatedForEntity(entity, uid)
        return entry

    def select_all_with_id(self, entity: str, uuid: UUID | str) -> State:
        return filter_keys_and_hash(self._entry(entity, uuid)[1])

    def select_keys_with_id(
        self, entity: str, uuid: UUID | str, keys: Iterable[str]
    ) -> State:
        return filter_keys_and_hash(self._entry(entity, uuid)[1], set(keys))

    def _select_ids(
        self,
        entity: str,
        keys: set[str] | None,
        uuids: Iterable[UUID | str],
        limit: int | None,
        offset: int,
    ) -> dict[UUID, State]:
        registries = self._registries(entity)
        present = [
            (uid, registries[uid])
            for uid in map(_as_uuid, uuids)
            if uid in registries
        ]
        return {
            uid: filter_keys_and_hash(state, keys)
            for uid, (_, state) in sorted(_window(present, limit, offset))
        }

    def select_all_with_ids(
        self,
        entity: str,
        uuids: Iterable[UUID | str],
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[UUID, State]:
        """States of the given ids that exist, ordered by id."""
        return self._select_ids(entity, None, uuids, limit, offset)

    def select_keys_with_ids(
        self,
        entity: str,
        keys: Iterable[str],
        uuids: Iterable[UUID | str],
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[UUID, State]:
        return self._select_ids(entity, set(keys), uuids, limit, offset)

    def _select(
        self, entity: str, keys: set[str] | None, limit: int | None, offset: int
    ) -> dict[UUID, State]:
        ordered = sorted(self._registries(entity).items())
        return {
            uid: filter_keys_and_hash(state, keys)
            for uid, (_, state) in _window(ordered, limit, offset)
        }

    def select_all(
        self, entity: str, limit: int | None = None, offset: int = 0
    ) -> dict[UUID, State]:
        """Every state of an entity, ordered by id."""
        return self._select(entity, None, limit, offset)

    def select_args(
        self,
        entity: str,
        keys: Iterable[str],
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[UUID, State]:
        return self._select(entity, set(keys), limit, offset)

    def select_when(
        self, entity: str, date: str | datetime, keys: Iterable[str] | None = None
    ) -> dict[str, State]:
        """States of every id of an entity as recorded in the log of a date."""
        wanted = None if keys is None else set(keys)
        return read_entities_at(entity, date_log_path(date, self.directory), wanted)

    def select_id_when(
        self,
        entity: str,
        date: str | datetime,
        uuid: UUID | str,
        keys: Iterable[str] | None = None,
    ) -> State:
        path = date_log_path(date, self.directory)
        state = read_entity_id_at(entity, _as_uuid(uuid), path)
        return filter_keys_and_hash(state, None if keys is None else set(keys))

    def select_when_range(
        self,
        entity: str,
        uuid: UUID | str,
        start_date: str | datetime,
        end_date: str | datetime,
    ) -> dict[datetime, State]:
        """States of an id recorded between two dates, read from the start date's log."""
        start = _parse_date(start_date)
        end = _parse_date(end_date)
        path = date_log_path(start, self.directory)
        return read_entity_range(entity, _as_uuid(uuid), start, end, path)

    def check_value(
        self, entity: str, uuid: UUID | str, content: Mapping[str, str]
    ) -> dict[str, bool]:
        """Check plain values against the encrypted keys of an entity id."""
        encrypts = self.encryption.get(entity)
        if encrypts is not None:
            encrypted = set(encrypts)
            plain_keys = [key for key in content if key not in encrypted]
            if plain_keys:
                raise CheckNonEncryptedKeys(plain_keys)
        register, _ = self._entry(entity, uuid)
        state = parse_state(self.read_registry(register))
        filtered = {key: value for key, value in state.items() if key in content}
        return verify_encryption(filtered, content)