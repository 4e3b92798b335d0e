"""MATCH conditions checked against an entity's previous state."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .errors import FailedMatchCondition, UnknownCondition
from .values import Value, ValueType


class Op(enum.Enum):
    EQ = "=="
    NOT_EQ = "!="
    GEQ = ">="
    LEQ = "<="
    G = ">"
    L = "<"


def _ordered(op: Op, state: Value, cond: Value) -> bool:
    if state.type is not cond.type or state.type not in (
        ValueType.INTEGER,
        ValueType.FLOAT,
    ):
        return False
    current, limit = state.data, cond.data
    match op:
        case Op.GEQ:
            return current >= limit
        case Op.LEQ:
            return current <= limit
        case Op.G:
            return current > limit
        case Op.L:
            return current < limit
    return False


@dataclass(frozen=True)
class Condition:
    """A single comparison between a state key and a value."""

    key: str
    op: Op
    value: Value

    def holds(self, state: Mapping[str, Value]) -> bool:
        current = state.get(self.key)
        if current is None:
            return False
        match self.op:
            case Op.EQ:
                return current == self.value
            case Op.NOT_EQ:
                return current != self.value
        return _ordered(self.op, current, self.value)


@dataclass(frozen=True)
class MatchAll:
    conditions: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))


@dataclass(frozen=True)
class MatchAny:
    conditions: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))


def _results(conditions: Iterable[Any], state: Mapping[str, Value]) -> Iterable[bool]:
    return (isinstance(c, Condition) and c.holds(state) for c in conditions)


def match_update(conditions: Any, previous_state: Mapping[str, Value]) -> None:
    """Raise FailedMatchCondition unless the conditions hold for the state."""
    match conditions:
        case MatchAll():
            ok = all(_results(conditions.conditions, previous_state))
        case MatchAny():
            ok = any(_results(conditions.conditions, previous_state))
        case _:
            raise UnknownCondition()
    if not ok:
        raise FailedMatchCondition()