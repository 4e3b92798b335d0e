"""Reading entity states from a day's transaction log."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Mapping
from uuid import UUID

from .errors import FailedToParseDate, FailedToParseState
from .values import Value, decode_state

_STATE_KINDS = frozenset({"INSERT", "UPDATE_SET", "UPDATE_CONTENT"})


def filter_keys_and_hash(
    state: Mapping[str, Value], keys: Iterable[str] | None = None
) -> dict[str, Value]:
    """Drop hashed values and, when keys are given, every other key."""
    wanted = set(keys) if keys is not None else None
    return {
        key: value
        for key, value in state.items()
        if not value.is_hash() and (wanted is None or key in wanted)
    }


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_date(text: str) -> datetime:
    try:
        moment = datetime.fromisoformat(json.loads(text))
    except (ValueError, TypeError):
        raise FailedToParseDate() from None
    if moment.tzinfo is None:
        raise FailedToParseDate()
    return moment.astimezone(timezone.utc)


def _decode(text: str) -> dict[str, Value]:
    try:
        return decode_state(text)
    except ValueError:
        raise FailedToParseState() from None


def _entries(
    date_log: str | Path, entity_name: str, uuid: UUID | None = None
) -> Iterator[tuple[list[str], str]]:
    """Yield the fields and state text of each matching state line."""
    text = Path(date_log).read_text(encoding="utf-8")
    for line in text.split(";"):
        fractions = line.split("|")
        kind = fractions[0]
        if kind not in _STATE_KINDS:
            continue
        if len(fractions) < 4:
            raise FailedToParseState()
        if fractions[3] != entity_name:
            continue
        if uuid is not None and fractions[2] != str(uuid):
            continue
        state_text = fractions[-1] if kind == "INSERT" else fractions[-2]
        yield fractions, state_text


def read_entity_range(
    entity_name: str,
    uuid: UUID,
    start_date: datetime,
    end_date: datetime,
    date_log: str | Path,
) -> dict[datetime, dict[str, Value]]:
    """States of one entity id recorded strictly between two dates, by date."""
    start, end = _as_utc(start_date), _as_utc(end_date)
    found: dict[datetime, dict[str, Value]] = {}
    for fractions, state_text in _entries(date_log, entity_name, uuid):
        date = _parse_date(fractions[1])
        if start < date < end:
            found[date] = filter_keys_and_hash(_decode(state_text))
    return dict(sorted(found.items()))


def read_entities_at(
    entity_name: str, date_log: str | Path, keys: Iterable[str] | None = None
) -> dict[str, dict[str, Value]]:
    """Last state of every id of an entity in the log, keyed by id."""
    wanted = set(keys) if keys is not None else None
    found: dict[str, dict[str, Value]] = {}
    for fractions, state_text in _entries(date_log, entity_name):
        found[fractions[2]] = filter_keys_and_hash(_decode(state_text), wanted)
    return found


def read_entity_id_at(
    entity_name: str, uuid: UUID, date_log: str | Path
) -> dict[str, Value]:
    """Last state of one entity id in the log, or an empty state."""
    state: dict[str, Value] = {}
    for _, state_text in _entries(date_log, entity_name, uuid):
        state = _decode(state_text)
    return state