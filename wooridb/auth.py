"""Users, roles and administrator credentials."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

import bcrypt


class Role(enum.Enum):
    USER = "User"
    READ = "Read"
    WRITE = "Write"
    HISTORY = "History"


def _date_text(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class AdminInfo:
    """Administrator id, password hash and the bcrypt cost used for new users."""

    admin_id: str
    admin_hash: str
    cost: int

    def is_valid_hash(self, password: str, admin_id: str) -> bool:
        try:
            valid = bcrypt.checkpw(password.encode("utf-8"), self.admin_hash.encode("utf-8"))
        except ValueError:
            return False
        return valid and admin_id == self.admin_id


@dataclass(frozen=True)
class UserRegistry:
    """A user as stored in the users log."""

    id: UUID
    hash: str
    roles: list[Role]
    date: datetime

    def context(self) -> tuple[str, list[Role]]:
        return self.hash, list(self.roles)

    def _text(self) -> str:
        roles = "".join(f"{role.value}," for role in self.roles)
        return (
            f'(id: "{self.id}",hash: {json.dumps(self.hash, ensure_ascii=False)},'
            f'roles: [{roles}],date: "{_date_text(self.date)}",)'
        )


@dataclass(frozen=True)
class User:
    """A user whose password is already hashed."""

    id: UUID
    user_password: str
    roles: list[Role] = field(default_factory=list)

    def format_user_log(self, date: datetime) -> str:
        """Render the users-log line for this user, created at date."""
        registry = UserRegistry(self.id, self.user_password, list(self.roles), date)
        return registry._text() + "\r\n"


@dataclass(frozen=True)
class UserInfo:
    user_password: str
    role: list[Role]


@dataclass(frozen=True)
class CreateUserWithAdmin:
    admin_id: str
    admin_password: str
    user_info: UserInfo


@dataclass(frozen=True)
class DeleteUsersWithAdmin:
    admin_id: str
    admin_password: str
    users_ids: list[UUID]


@dataclass(frozen=True)
class UserId:
    user_id: UUID


@dataclass(frozen=True)
class Credentials:
    """The id and plain password a user signs in with."""

    id: UUID
    user_password: str