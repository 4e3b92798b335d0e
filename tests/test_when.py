from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from wooridb.errors import FailedToParseDate, FailedToParseState
from wooridb.log_writer import LogWriter
from wooridb.logline import DataRegister
from wooridb.values import Value, ValueType, encode_state
from wooridb.when import (
    filter_keys_and_hash,
    read_entities_at,
    read_entity_id_at,
    read_entity_range,
)

T0 = datetime(2021, 2, 9, 16, 44, 3, 236333, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=10)
T2 = T0 + timedelta(minutes=13)
ENTITY_ID = UUID("fb1ccddb-2465-4504-a4a4-e28ee75c7981")
OTHER_ID = UUID("0a1b16ed-886c-4c99-97c9-0b977778ec13")
ENTITY = "test_update"


def _state(f):
    return {"a": Value(ValueType.INTEGER, 123), "f": Value(ValueType.STRING, f)}


@pytest.fixture
def log_file(tmp_path):
    writer = LogWriter(tmp_path, clock=lambda: T0)
    register = DataRegister("2021_02_09.log", 0, 10).to_text()
    writer.insert(ENTITY, encode_state(_state("hello")), ENTITY_ID, T0)
    writer.update_set(
        ENTITY,
        encode_state(_state("helloworld")),
        encode_state({"f": Value(ValueType.STRING, "helloworld")}),
        ENTITY_ID,
        T1,
        register,
    )
    writer.update_set(
        ENTITY,
        encode_state(_state("JULIA")),
        encode_state({"f": Value(ValueType.STRING, "JULIA")}),
        ENTITY_ID,
        T2,
        register,
    )
    other_state = {
        "g": Value(ValueType.NIL),
        "pswd": Value(ValueType.HASH, "$2b$04$placeholder"),
    }
    writer.insert(ENTITY, encode_state(other_state), OTHER_ID, T0)
    writer.insert("another", encode_state(_state("nope")), ENTITY_ID, T0)
    return writer.log_path


def test_read_entity_id_at_returns_last_state(log_file):
    state = read_entity_id_at(ENTITY, ENTITY_ID, log_file)
    assert state == _state("JULIA")


def test_read_entity_id_at_missing_id(log_file):
    missing = UUID("30d2b740-e791-4ff6-8471-215d38b1ff5c")
    assert read_entity_id_at(ENTITY, missing, log_file) == {}


def test_read_entities_at_filters_hashes(log_file):
    result = read_entities_at(ENTITY, log_file)
    assert set(result) == {str(ENTITY_ID), str(OTHER_ID)}
    assert result[str(ENTITY_ID)] == _state("JULIA")
    assert result[str(OTHER_ID)] == {"g": Value(ValueType.NIL)}


def test_read_entities_at_with_keys(log_file):
    result = read_entities_at(ENTITY, log_file, {"g"})
    assert result[str(OTHER_ID)] == {"g": Value(ValueType.NIL)}
    assert result[str(ENTITY_ID)] == {}


def test_read_entities_at_unknown_entity(log_file):
    assert read_entities_at("missing", log_file) == {}


def test_read_entity_range_is_strict_and_ordered(log_file):
    result = read_entity_range(ENTITY, ENTITY_ID, T0, T0 + timedelta(hours=1), log_file)
    assert list(result) == [T1, T2]
    assert result[T1]["f"] == Value(ValueType.STRING, "helloworld")
    assert result[T2]["f"] == Value(ValueType.STRING, "JULIA")


def test_read_entity_range_includes_insert(log_file):
    start = T0 - timedelta(minutes=1)
    result = read_entity_range(ENTITY, ENTITY_ID, start, T2, log_file)
    assert list(result) == [T0, T1]
    assert result[T0] == _state("hello")


def test_bad_date_raises(tmp_path):
    path = tmp_path / "bad.log"
    path.write_text(f'INSERT|"nope"|{ENTITY_ID}|{ENTITY}|{{}};', encoding="utf-8")
    with pytest.raises(FailedToParseDate):
        read_entity_range(ENTITY, ENTITY_ID, T0, T2, path)


def test_bad_state_raises(tmp_path):
    path = tmp_path / "bad.log"
    path.write_text(f"INSERT|x|{ENTITY_ID}|{ENTITY}|not a state;", encoding="utf-8")
    with pytest.raises(FailedToParseState):
        read_entity_id_at(ENTITY, ENTITY_ID, path)


def test_filter_keys_and_hash():
    state = {
        "a": Value(ValueType.INTEGER, 1),
        "b": Value(ValueType.STRING, "x"),
        "h": Value(ValueType.HASH, "$2b$04$placeholder"),
    }
    assert filter_keys_and_hash(state) == {"a": state["a"], "b": state["b"]}
    assert filter_keys_and_hash(state, ["b", "h"]) == {"b": state["b"]}