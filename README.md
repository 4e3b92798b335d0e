# wooridb

The core of an entity store built on an append-only transaction log. Every
change to an entity is one line in a daily log file, so an entity can be read
as it was on a given day, and its history can be walked back from its latest
log register.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `wooridb.values`: `Value` and `ValueType` (Char, Integer, String, Uuid,
  Float, Boolean, Vector, Map, Hash, Precise, DateTime, Nil), ordering between
  values, `Value.to_hash(cost)` for a bcrypt hash of a value, and the text
  form they are stored in: `encode_value`, `decode_value`, `encode_state`,
  `decode_state` (the decoders raise `ValueError` on malformed text).
- `wooridb.log_writer`: `LogWriter(directory="data")` appends `CREATE_ENTITY`,
  `INSERT`, `UPDATE_SET`, `UPDATE_CONTENT`, `DELETE`, `EVICT_ENTITY` and
  `EVICT_ENTITY_ID` lines to `<directory>/YYYY_MM_DD.log`, returning the bytes
  written and whether the log was empty. `write_offset` and `write_local_data`
  overwrite `offset_counter.log` and `local_data.log` for recovery.
- `wooridb.logline`: `DataRegister` (file name, offset, length) and the
  parsers `parse_state`, `parse_previous_registry` and `parse_history` for one
  log line.
- `wooridb.matching`: `Condition(key, Op, value)` inside `MatchAll` or
  `MatchAny`; `match_update` raises `FailedMatchCondition` when they do not
  hold and `UnknownCondition` for anything else.
- `wooridb.uniques`: `UniquenessRegistry(path=None)` with `create`, `check`
  (raises `DuplicatedUnique` on a repeated value) and `dump`; with a path,
  every change is written to it. `write_with_unique_keys` appends a
  unique-keys record to a file.
- `wooridb.encryption`: `create_with_encryption`, `encrypt_content` (stamps
  `tx_time` and hashes the encrypted keys), `verify_encryption`, and
  `write_with_encryption` / `encrypt_log_entry` for the encrypted-keys record.
- `wooridb.when`: `read_entities_at`, `read_entity_id_at` and
  `read_entity_range` read states from a daily log file;
  `filter_keys_and_hash` drops hashed values and unselected keys.
- `wooridb.clauses`: `ValueAttribution`, `ContainsKeyValue`,
  `SimpleComparison`, `ComplexComparison` (`in`, `between`) and `Or`, with
  `Function` naming the comparison; `select_where` filters an entity's states,
  with optional `limit` and `offset`.
- `wooridb.history`: `entity_history(EntityHistoryInfo, local_data,
  read_registry)` returns every version of an entity id by date, optionally
  within a start and end time.
- `wooridb.query`: `QueryEngine(local_data, encryption=None,
  read_registry=None, directory="data")` with `select_all`, `select_args`,
  `select_all_with_id`, `select_keys_with_id`, `select_all_with_ids`,
  `select_keys_with_ids`, `select_when`, `select_id_when`,
  `select_when_range` and `check_value`; `date_log_path` names a day's log.
- `wooridb.scheduler`: `compress_old_logs` compresses daily logs older than
  ten days to `.zst` with zstandard and removes the originals; `Scheduler`
  runs it on a background thread at each local midnight (`start`, `stop`,
  `run_once`, or use it as a context manager).
- `wooridb.auth`: `Role`, `AdminInfo.is_valid_hash`, `User.format_user_log`,
  `UserRegistry.context` and the request records `UserInfo`,
  `CreateUserWithAdmin`, `DeleteUsersWithAdmin`, `UserId`, `Credentials`.
- `wooridb.errors`: `WooriError` and its subclasses, raised by the modules
  above.

## Example

```python
from uuid import uuid4

from wooridb.clauses import Function, SimpleComparison, ValueAttribution, select_where
from wooridb.logline import DataRegister
from wooridb.matching import Condition, MatchAll, Op, match_update
from wooridb.query import QueryEngine
from wooridb.values import Value, ValueType, encode_state

state = {"a": Value(ValueType.INTEGER, 123), "b": Value(ValueType.STRING, "hello")}
print(encode_state(state))  # {"a": Integer(123), "b": String("hello")}

match_update(MatchAll([Condition("a", Op.GEQ, Value(ValueType.INTEGER, 100))]), state)

uid = uuid4()
local_data = {"things": {uid: (DataRegister("data/2021_01_08.log", 0, 10), state)}}
engine = QueryEngine(local_data)
print(engine.select_keys_with_id("things", uid, ["a"]))

clauses = [
    ValueAttribution("things", "a", "?a"),
    SimpleComparison(Function.GEQ, "?a", Value(ValueType.INTEGER, 100)),
]
print(select_where("things", None, clauses, local_data))
```

## What the package does not do

- There is no server and no command: nothing listens for requests, and there
  are no endpoints for transactions, queries, history or user sessions.
- There is no query-language parser. Queries are method calls on
  `QueryEngine` and clause objects built in Python.
- It does not build or load the in-memory `local_data` mapping on start-up;
  callers supply it, and keep it in step with what `LogWriter` writes.
- It does not store users or sessions; `wooridb.auth` only holds the records
  and renders the users-log line.