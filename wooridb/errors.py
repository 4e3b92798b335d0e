"""Exceptions raised by the database core."""

from __future__ import annotations

from typing import Any, Iterable


class WooriError(Exception):
    """Base class of every error the database reports."""

    default_message = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)

    @property
    def error_type(self) -> str:
        """Name of the error kind, as reported to clients."""
        return type(self).__name__

    @property
    def message(self) -> str:
        return str(self)


class FailedToParseState(WooriError):
    default_message = "Failed to parse state"


class FailedToParseRegistry(WooriError):
    default_message = "Failed to parse registry"


class FailedToParseDate(WooriError):
    default_message = "Failed to parse log date"


class UnknownCondition(WooriError):
    default_message = "UPDATE SET with MATCH only accepts ALL and ANY conditions"


class FailedMatchCondition(WooriError):
    default_message = "One or more MATCH CONDITIONS failed"


class EntityNotCreated(WooriError):
    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"Entity `{entity}` not created")


class UuidNotCreatedForEntity(WooriError):
    def __init__(self, entity: str, uuid: Any) -> None:
        self.entity = entity
        self.uuid = uuid
        super().__init__(f"Uuid {uuid} not created for entity {entity}")


class EntityNotCreatedWithUniqueness(WooriError):
    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"Entity `{entity}` not created with uniqueness")


class DuplicatedUnique(WooriError):
    def __init__(self, entity: str, key: str, value: Any) -> None:
        self.entity = entity
        self.key = key
        self.value = value
        super().__init__(
            f"key `{key}` in entity `{entity}` already contains value `{value}`"
        )


class CheckNonEncryptedKeys(WooriError):
    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = list(keys)
        super().__init__(
            f"CHECK can only verify encrypted keys, found non encrypted keys: {self.keys}"
        )


class NonSelectQuery(WooriError):
    default_message = "Non-SELECT expressions are handled by `/wql/tx` endpoint"


class DateTimeParse(WooriError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Failed to parse date time `{value}`")