"""Typed values stored in entity states and their text encoding."""

from __future__ import annotations

import enum
import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

import bcrypt

DEFAULT_HASHING_COST = 12


class ValueType(enum.Enum):
    CHAR = "Char"
    INTEGER = "Integer"
    STRING = "String"
    UUID = "Uuid"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    VECTOR = "Vector"
    MAP = "Map"
    HASH = "Hash"
    PRECISE = "Precise"
    DATETIME = "DateTime"
    NIL = "Nil"


_NUMERIC = frozenset({ValueType.INTEGER, ValueType.FLOAT})


@dataclass(frozen=True)
class Value:
    """A single typed value of an entity state."""

    type: ValueType
    data: Any = None

    def __post_init__(self) -> None:
        if self.type is ValueType.VECTOR:
            object.__setattr__(self, "data", tuple(self.data))
        elif self.type is ValueType.MAP:
            object.__setattr__(self, "data", dict(self.data))
        elif self.type is ValueType.NIL:
            object.__setattr__(self, "data", None)

    def __hash__(self) -> int:
        return hash(encode_value(self))

    def is_hash(self) -> bool:
        return self.type is ValueType.HASH

    def to_hash(self, cost: int = DEFAULT_HASHING_COST) -> Value:
        """Return a bcrypt hash of this value's plain text form."""
        salt = bcrypt.gensalt(rounds=cost)
        hashed = bcrypt.hashpw(_plain_text(self).encode("utf-8"), salt)
        return Value(ValueType.HASH, hashed.decode("utf-8"))

    def _compare(self, other: Value) -> int | None:
        if self.type in _NUMERIC and other.type in _NUMERIC:
            left, right = self.data, other.data
        elif self.type is not other.type or self.type is ValueType.MAP:
            return None
        elif self.type is ValueType.NIL:
            return 0
        elif self.type is ValueType.VECTOR:
            for a, b in zip(self.data, other.data):
                result = a._compare(b)
                if result != 0:
                    return result
            left, right = len(self.data), len(other.data)
        elif self.type is ValueType.PRECISE:
            try:
                left, right = Decimal(self.data), Decimal(other.data)
            except InvalidOperation:
                left, right = self.data, other.data
        else:
            left, right = self.data, other.data
        if left < right:
            return -1
        if left > right:
            return 1
        if left == right:
            return 0
        return None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        result = self._compare(other)
        return result is not None and result < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        result = self._compare(other)
        return result is not None and result <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        result = self._compare(other)
        return result is not None and result > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        result = self._compare(other)
        return result is not None and result >= 0


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _datetime_text(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _float_text(number: float) -> str:
    text = repr(float(number))
    return "NaN" if text == "nan" else text


def _plain_text(value: Value) -> str:
    match value.type:
        case ValueType.STRING | ValueType.CHAR | ValueType.HASH | ValueType.PRECISE:
            return str(value.data)
        case ValueType.INTEGER:
            return str(int(value.data))
        case ValueType.FLOAT:
            return _float_text(value.data)
        case ValueType.BOOLEAN:
            return "true" if value.data else "false"
        case ValueType.UUID:
            return str(value.data)
        case ValueType.DATETIME:
            return _datetime_text(value.data)
        case _:
            return encode_value(value)


def _encode_map(mapping: Mapping[str, Value]) -> str:
    items = ", ".join(f"{_quote(k)}: {encode_value(v)}" for k, v in mapping.items())
    return "{" + items + "}"


def encode_value(value: Value) -> str:
    """Encode a value in the textual form used by the log."""
    kind = value.type
    match kind:
        case ValueType.NIL:
            return "Nil"
        case ValueType.CHAR:
            inner = _quote(value.data)[1:-1].replace("'", "\\'")
            return f"Char('{inner}')"
        case ValueType.INTEGER:
            return f"Integer({int(value.data)})"
        case ValueType.FLOAT:
            return f"Float({_float_text(value.data)})"
        case ValueType.BOOLEAN:
            return f"Boolean({'true' if value.data else 'false'})"
        case ValueType.STRING | ValueType.HASH | ValueType.PRECISE:
            return f"{kind.value}({_quote(str(value.data))})"
        case ValueType.UUID:
            return f"Uuid({_quote(str(value.data))})"
        case ValueType.DATETIME:
            return f"DateTime({_quote(_datetime_text(value.data))})"
        case ValueType.VECTOR:
            return "Vector([" + ", ".join(encode_value(v) for v in value.data) + "])"
        case ValueType.MAP:
            return f"Map({_encode_map(value.data)})"
    raise ValueError(f"unknown value type {kind!r}")


def encode_state(state: Mapping[str, Value]) -> str:
    """Encode an entity state (key to value mapping)."""
    return _encode_map(state)


_INTEGER = re.compile(r"[-+]?[0-9]+")
_FLOAT = re.compile(r"[-+]?(?:inf|NaN|[0-9]+(?:\.[0-9]*)?(?:[eE][-+]?[0-9]+)?)")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class _Reader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _skip(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self._skip()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise ValueError(f"expected {char!r} at position {self.pos}")
        self.pos += 1

    def token(self, pattern: re.Pattern[str]) -> str:
        self._skip()
        found = pattern.match(self.text, self.pos)
        if not found:
            raise ValueError(f"unexpected input at position {self.pos}")
        self.pos = found.end()
        return found.group()

    def _quoted(self, quote: str) -> str:
        self.expect(quote)
        start = self.pos
        index = start
        while index < len(self.text):
            char = self.text[index]
            if char == "\\":
                index += 2
                continue
            if char == quote:
                break
            index += 1
        else:
            raise ValueError("unterminated quoted text")
        self.pos = index + 1
        return self.text[start:index]

    def string(self) -> str:
        return json.loads('"' + self._quoted('"') + '"')

    def char(self) -> str:
        inner = self._quoted("'").replace("\\'", "'")
        decoded = json.loads('"' + inner + '"')
        if len(decoded) != 1:
            raise ValueError("Char must hold exactly one character")
        return decoded

    def end(self) -> None:
        if self.peek():
            raise ValueError(f"trailing input at position {self.pos}")

    def mapping(self) -> dict[str, Value]:
        self.expect("{")
        result: dict[str, Value] = {}
        while self.peek() != "}":
            key = self.string()
            self.expect(":")
            result[key] = self.value()
            if self.peek() != ",":
                break
            self.pos += 1
        self.expect("}")
        return result

    def vector(self) -> list[Value]:
        self.expect("[")
        items: list[Value] = []
        while self.peek() != "]":
            items.append(self.value())
            if self.peek() != ",":
                break
            self.pos += 1
        self.expect("]")
        return items

    def value(self) -> Value:
        name = self.token(_WORD)
        try:
            kind = ValueType(name)
        except ValueError:
            raise ValueError(f"unknown value type {name!r}") from None
        if kind is ValueType.NIL:
            return Value(kind)
        self.expect("(")
        match kind:
            case ValueType.CHAR:
                data: Any = self.char()
            case ValueType.INTEGER:
                data = int(self.token(_INTEGER))
            case ValueType.FLOAT:
                data = float(self.token(_FLOAT))
            case ValueType.BOOLEAN:
                word = self.token(_WORD)
                if word not in ("true", "false"):
                    raise ValueError(f"invalid boolean {word!r}")
                data = word == "true"
            case ValueType.STRING | ValueType.HASH | ValueType.PRECISE:
                data = self.string()
            case ValueType.UUID:
                data = uuid.UUID(self.string())
            case ValueType.DATETIME:
                moment = datetime.fromisoformat(self.string())
                if moment.tzinfo is None:
                    raise ValueError("date time without offset")
                data = moment.astimezone(timezone.utc)
            case ValueType.VECTOR:
                data = self.vector()
            case _:
                data = self.mapping()
        self.expect(")")
        return Value(kind, data)


def decode_value(data: str) -> Value:
    """Parse a value written by encode_value; raise ValueError if malformed."""
    reader = _Reader(data)
    result = reader.value()
    reader.end()
    return result


def decode_state(text: str) -> dict[str, Value]:
    """Parse a state written by encode_state; raise ValueError if malformed."""
    reader = _Reader(text)
    result = reader.mapping()
    reader.end()
    return result