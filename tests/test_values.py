import uuid
from datetime import datetime, timezone

import bcrypt
import pytest

from wooridb.values import (
    Value,
    ValueType,
    decode_state,
    decode_value,
    encode_state,
    encode_value,
)


def I(n):
    return Value(ValueType.INTEGER, n)


def F(x):
    return Value(ValueType.FLOAT, x)


def S(s):
    return Value(ValueType.STRING, s)


SAMPLES = [
    Value(ValueType.NIL),
    Value(ValueType.CHAR, "h"),
    Value(ValueType.CHAR, "'"),
    Value(ValueType.CHAR, "\\"),
    I(123),
    I(-7),
    F(12.3),
    F(-0.5),
    Value(ValueType.BOOLEAN, True),
    Value(ValueType.BOOLEAN, False),
    S("hello"),
    S('quote " and | pipe'),
    Value(ValueType.UUID, uuid.uuid4()),
    Value(ValueType.HASH, "$2b$04$abc"),
    Value(ValueType.PRECISE, "3.14159265358979"),
    Value(ValueType.DATETIME, datetime(2021, 2, 9, 16, 44, 3, 236333, tzinfo=timezone.utc)),
    Value(ValueType.VECTOR, [I(1), S("a"), Value(ValueType.NIL)]),
    Value(ValueType.MAP, {"x": F(1.5), "y": Value(ValueType.VECTOR, [])}),
]


@pytest.mark.parametrize("value", SAMPLES)
def test_value_round_trip(value):
    assert decode_value(encode_value(value)) == value


def test_state_encoding_matches_log_form():
    text = encode_state({"a": I(123), "b": F(12.3)})
    assert '"a": Integer(123)' in text
    assert '"b": Float(12.3)' in text


def test_state_round_trip_keeps_order():
    state = {"b": S("hello"), "a": I(123), "c": Value(ValueType.NIL)}
    decoded = decode_state(encode_state(state))
    assert decoded == state
    assert list(decoded) == ["b", "a", "c"]


def test_decode_state_accepts_trailing_comma_and_spacing():
    decoded = decode_state('{ "a": Integer(123), "b": Float(12.3), }')
    assert decoded == {"a": I(123), "b": F(12.3)}


@pytest.mark.parametrize(
    "text",
    [
        "",
        "Integer(1.5)",
        "Unknown(3)",
        "String(hello)",
        "Boolean(yes)",
        "Char('ab')",
        "Integer(1) extra",
        'DateTime("2021-02-09T16:44:03")',
    ],
)
def test_decode_value_rejects_malformed(text):
    with pytest.raises(ValueError):
        decode_value(text)


def test_decode_state_rejects_malformed():
    with pytest.raises(ValueError):
        decode_state('{"a" Integer(1)}')


def test_numeric_comparisons_cross_integer_and_float():
    assert I(3) < F(4.5)
    assert F(57.6) >= I(10)
    assert not (F(5.6) >= I(10))
    assert I(4) <= I(4)


def test_equality_respects_type():
    assert I(3) != F(3.0)
    assert Value(ValueType.BOOLEAN, True) != I(1)


def test_incomparable_types_are_never_ordered():
    a, b = S("hello"), I(3)
    assert not (a < b) and not (a > b) and not (a <= b) and not (a >= b)


def test_string_and_vector_ordering():
    assert S("abc") < S("abd")
    short = Value(ValueType.VECTOR, [I(1)])
    longer = Value(ValueType.VECTOR, [I(1), I(2)])
    assert short < longer


def test_values_are_hashable_and_distinct_in_sets():
    values = {I(1), I(1), F(1.0), Value(ValueType.MAP, {"k": I(1)})}
    assert len(values) == 3


def test_to_hash_verifies_plain_text():
    hashed = S("password").to_hash(4)
    assert hashed.is_hash()
    assert not S("password").is_hash()
    assert bcrypt.checkpw(b"password", hashed.data.encode())
    assert not bcrypt.checkpw(b"another", hashed.data.encode())


def test_to_hash_of_integer_uses_decimal_text():
    hashed = I(63432).to_hash(4)
    assert hashed.is_hash()
    assert hashed.data.startswith("$2")
    assert bcrypt.checkpw(b"63432", hashed.data.encode())
    assert not bcrypt.checkpw(b"63434", hashed.data.encode())