"""History of one entity id, read by following its chain of log registers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from uuid import UUID

from .errors import EntityNotCreated, UuidNotCreatedForEntity
from .logline import DataRegister, parse_history
from .values import Value
from .when import filter_keys_and_hash


def _as_utc(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class EntityHistoryInfo:
    """Which entity id to trace, optionally limited to a time window."""

    entity_key: str
    entity_id: UUID
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None


def entity_history(
    info: EntityHistoryInfo,
    local_data: Mapping[str, Mapping[UUID, tuple[DataRegister, Any]]],
    read_registry: Callable[[DataRegister], str],
) -> dict[datetime, dict[str, Value]]:
    """States of an entity id by transaction date, newest entry read first.

    read_registry returns the log line a register points to.
    """
    by_id = local_data.get(info.entity_key)
    if by_id is None:
        raise EntityNotCreated(info.entity_key)
    entry = by_id.get(info.entity_id)
    if entry is None:
        raise UuidNotCreatedForEntity(info.entity_key, info.entity_id)

    start, end = _as_utc(info.start_datetime), _as_utc(info.end_datetime)
    found: dict[datetime, dict[str, Value]] = {}
    content = read_registry(entry[0])
    while True:
        record = parse_history(content)
        date = record.date
        if start is not None and end is not None:
            if start <= date <= end:
                found[date] = record.state
            elif date > end:
                break
        elif start is not None:
            if date >= start:
                found[date] = record.state
        elif end is not None:
            if date <= end:
                found[date] = record.state
            else:
                break
        else:
            found[date] = record.state

        if record.previous_registry is None:
            break
        content = read_registry(record.previous_registry)

    return {date: filter_keys_and_hash(state) for date, state in sorted(found.items())}