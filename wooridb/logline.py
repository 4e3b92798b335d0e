"""Parsing of transaction log lines and registry references."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import FailedToParseRegistry, FailedToParseState
from .values import Value, decode_state

_UPDATES = frozenset({"UPDATE_SET", "UPDATE_CONTENT", "DELETE"})

_REGISTER = (
    r'\(\s*file_name:\s*("(?:[^"\\]|\\.)*")\s*,\s*offset:\s*(\d+)\s*,'
    r"\s*bytes_length:\s*(\d+)\s*,?\s*\)"
)
_REGISTER_RE = re.compile(_REGISTER)
_REGISTER_PAIR_RE = re.compile(rf"\(\s*{_REGISTER}\s*,\s*\[[^\]]*\]\s*,?\s*\)")


@dataclass(frozen=True)
class DataRegister:
    """Location of one log entry: file, byte offset and length."""

    file_name: str
    offset: int
    bytes_length: int

    def to_text(self) -> str:
        name = json.dumps(self.file_name, ensure_ascii=False)
        return f"(file_name: {name}, offset: {self.offset}, bytes_length: {self.bytes_length})"

    @classmethod
    def from_text(cls, text: str) -> DataRegister:
        """Parse a register, alone or paired with its encoded state bytes."""
        stripped = text.strip()
        found = _REGISTER_PAIR_RE.fullmatch(stripped) or _REGISTER_RE.fullmatch(stripped)
        if not found:
            raise FailedToParseRegistry()
        try:
            name = json.loads(found.group(1))
        except ValueError:
            raise FailedToParseRegistry() from None
        return cls(name, int(found.group(2)), int(found.group(3)))


@dataclass(frozen=True)
class HistoryEntry:
    state: dict[str, Value]
    date: datetime
    previous_registry: DataRegister | None


def _decode(text: str) -> dict[str, Value]:
    try:
        return decode_state(text)
    except ValueError:
        raise FailedToParseState() from None


def _insert_state(fractions: list[str]) -> dict[str, Value]:
    return _decode(fractions[-1][:-1])


def _update_state(fractions: list[str]) -> dict[str, Value]:
    if len(fractions) < 2:
        raise FailedToParseState()
    return _decode(fractions[-2])


def _date(fractions: list[str]) -> datetime:
    if len(fractions) < 2:
        raise FailedToParseState()
    try:
        text = json.loads(fractions[1])
        moment = datetime.fromisoformat(text)
    except (ValueError, TypeError):
        raise FailedToParseState() from None
    if moment.tzinfo is None:
        raise FailedToParseState()
    return moment.astimezone(timezone.utc)


def parse_state(line: str) -> dict[str, Value]:
    """Return the entity state that a log line records."""
    fractions = line.split("|")
    kind = fractions[0]
    if kind == "INSERT":
        return _insert_state(fractions)
    if kind in _UPDATES:
        return _update_state(fractions)
    raise FailedToParseState()


def parse_previous_registry(line: str) -> DataRegister | None:
    """Return the register of the entry a log line replaced, if any."""
    fractions = line.split("|")
    kind = fractions[0]
    if kind == "INSERT":
        return None
    if kind in _UPDATES:
        return DataRegister.from_text(fractions[-1][:-1])
    raise FailedToParseRegistry()


def parse_history(line: str) -> HistoryEntry:
    """Return state, transaction date and previous register of a log line."""
    fractions = line.split("|")
    kind = fractions[0]
    if kind == "INSERT":
        state = _insert_state(fractions)
        return HistoryEntry(state, _date(fractions), None)
    if kind in _UPDATES:
        state = _update_state(fractions)
        date = _date(fractions)
        return HistoryEntry(state, date, DataRegister.from_text(fractions[-1][:-1]))
    raise FailedToParseState()