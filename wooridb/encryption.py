"""Encrypted keys of entities: registration, hashing and verification."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping

import bcrypt

from .values import Value, ValueType


def encrypt_log_entry(entity: str, encrypts: Iterable[str]) -> str:
    """Render the record that declares which keys of an entity are encrypted."""
    keys = "".join(f"{json.dumps(key, ensure_ascii=False)}," for key in encrypts)
    name = json.dumps(entity, ensure_ascii=False)
    return f"(entity: {name},encrypts: [{keys}],)"


def write_with_encryption(path: str | Path, entity: str, encrypts: Iterable[str]) -> None:
    """Append the encrypted-keys record of an entity to the file at path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(encrypt_log_entry(entity, encrypts) + "\n")


def create_with_encryption(
    context: MutableMapping[str, set[str]], entity: str, encrypts: Iterable[str]
) -> None:
    """Register the encrypted keys of an entity unless it is already registered."""
    if entity not in context:
        context[entity] = set(encrypts)


def encrypt_content(
    entity: str,
    content: Mapping[str, Value],
    context: Mapping[str, set[str]],
    hashing_cost: int,
    datetime: datetime,
) -> dict[str, Value]:
    """Stamp the content with its transaction time and hash its encrypted keys."""
    stamped = dict(content)
    stamped["tx_time"] = Value(ValueType.DATETIME, datetime)
    encrypts = context.get(entity) if context else None
    if not encrypts:
        return stamped
    return {
        key: value.to_hash(hashing_cost) if key in encrypts else value
        for key, value in stamped.items()
    }


def verify_encryption(
    filtered: Mapping[str, Value], content: Mapping[str, str]
) -> dict[str, bool]:
    """Check each plain value in content against the stored hash of its key."""
    results: dict[str, bool] = {}
    for key, plain in content.items():
        stored = filtered.get(key)
        if stored is not None and stored.is_hash():
            results[key] = bcrypt.checkpw(
                plain.encode("utf-8"), str(stored.data).encode("utf-8")
            )
        else:
            results[key] = False
    return results