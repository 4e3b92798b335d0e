"""WHERE clauses of SELECT queries and their evaluation over entity states."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from itertools import islice
from typing import Any, Iterable, Mapping
from uuid import UUID

from .errors import EntityNotCreated
from .values import Value, ValueType
from .when import filter_keys_and_hash


class Function(enum.Enum):
    EQ = "=="
    NOT_EQ = "!="
    GEQ = ">="
    G = ">"
    LEQ = "<="
    L = "<"
    LIKE = "like"
    IN = "in"
    BETWEEN = "between"


@dataclass(frozen=True)
class ValueAttribution:
    """Binds the value of an entity key to a clause argument such as ``?a``."""

    entity: str
    key: str
    arg: str


@dataclass(frozen=True)
class ContainsKeyValue:
    """Requires a key of the state to hold exactly a value."""

    entity: str
    key: str
    value: Value


@dataclass(frozen=True)
class SimpleComparison:
    """Compares a bound argument with a single value."""

    function: Function
    arg: str
    value: Value


@dataclass(frozen=True)
class ComplexComparison:
    """Compares a bound argument with several values (``in`` and ``between``)."""

    function: Function
    arg: str
    values: tuple[Value, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Or:
    """Holds when any of the inner clauses holds."""

    clauses: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", tuple(self.clauses))


State = dict[str, Value]


def like(content: str, pattern: str) -> bool:
    """SQL-like match where ``%`` at either end stands for any text."""
    bare = pattern.replace("%", "")
    if pattern.startswith("%") and pattern.endswith("%"):
        return bare in content
    if pattern.startswith("%"):
        return content.endswith(bare)
    if pattern.endswith("%"):
        return content.startswith(bare)
    return pattern in content


def _both_strings(left: Value, right: Value) -> bool:
    return left.type is ValueType.STRING and right.type is ValueType.STRING


def _ordering(function: Function, current: Value, value: Value) -> bool | None:
    match function:
        case Function.EQ:
            return current == value
        case Function.NOT_EQ:
            return current != value
        case Function.GEQ:
            return current >= value
        case Function.G:
            return current > value
        case Function.LEQ:
            return current <= value
        case Function.L:
            return current < value
    return None


def _complex(clause: ComplexComparison, current: Value | None) -> bool | None:
    match clause.function:
        case Function.IN:
            return current is not None and current in clause.values
        case Function.BETWEEN:
            return (
                current is not None
                and current >= clause.values[0]
                and current <= clause.values[1]
            )
    return None


def _keeps(clause: Any, state: Mapping[str, Value], args_to_key: Mapping[str, str]) -> bool:
    match clause:
        case Or():
            return or_clauses(state, args_to_key, clause.clauses)
        case ContainsKeyValue():
            return state.get(clause.key) == clause.value
        case SimpleComparison():
            current = state.get(args_to_key.get(clause.arg, ""))
            if current is None:
                return True
            if clause.function is Function.LIKE:
                if _both_strings(current, clause.value):
                    return clause.value.data.replace("%", "") in current.data
                return False
            result = _ordering(clause.function, current, clause.value)
            return True if result is None else result
        case ComplexComparison():
            result = _complex(clause, state.get(args_to_key.get(clause.arg, "")))
            return True if result is None else result
    return True


def filter_where_clauses(
    states: Mapping[UUID, Mapping[str, Value]],
    args_to_key: Mapping[str, str],
    clauses: Iterable[Any],
) -> dict[UUID, State]:
    """Keep the states that every clause accepts, ordered by id."""
    kept = {uid: dict(state) for uid, state in states.items()}
    for clause in clauses:
        kept = {uid: state for uid, state in kept.items() if _keeps(clause, state, args_to_key)}
    return dict(sorted(kept.items()))


def _holds(clause: Any, state: Mapping[str, Value], args_to_key: Mapping[str, str]) -> bool:
    match clause:
        case ValueAttribution():
            return True
        case Or():
            return or_clauses(state, args_to_key, clause.clauses)
        case ContainsKeyValue():
            return state.get(args_to_key.get(clause.key, "")) == clause.value
        case SimpleComparison():
            current = state.get(args_to_key.get(clause.arg, ""))
            if current is None:
                return False
            if clause.function is Function.LIKE:
                return _both_strings(current, clause.value) and like(
                    current.data, clause.value.data
                )
            return bool(_ordering(clause.function, current, clause.value))
        case ComplexComparison():
            return bool(_complex(clause, state.get(args_to_key.get(clause.arg, ""))))
    return False


def or_clauses(
    state: Mapping[str, Value], args_to_key: Mapping[str, str], clauses: Iterable[Any]
) -> bool:
    """True when at least one of the clauses holds for the state."""
    return any(_holds(clause, state, args_to_key) for clause in clauses)


def select_where(
    entity: str,
    to_select: Iterable[str] | None,
    clauses: Iterable[Any],
    local_data: Mapping[str, Mapping[UUID, tuple[Any, Mapping[str, Value]]]],
    limit: int | None = None,
    offset: int = 0,
) -> dict[UUID, State]:
    """States of an entity that satisfy the clauses; None selects every key."""
    clauses = list(clauses)
    args_to_key = {c.arg: c.key for c in clauses if isinstance(c, ValueAttribution)}
    registries = local_data.get(entity)
    if registries is None:
        raise EntityNotCreated(entity)
    keys = None if to_select is None else set(to_select)
    states = {
        uid: filter_keys_and_hash(state, keys) for uid, (_, state) in registries.items()
    }
    filtered = filter_where_clauses(states, args_to_key, clauses)
    stop = None if limit is None else offset + limit
    return dict(islice(filtered.items(), offset, stop))