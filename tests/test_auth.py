from datetime import datetime, timezone
from uuid import UUID

import bcrypt
import pytest

from wooridb.auth import AdminInfo, Role, User, UserRegistry

USER_ID = UUID("30d2b740-e791-4ff6-8471-215d38b1ff5c")


@pytest.fixture
def admin():
    password = "password"
    admin_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt(4)).decode()
    return AdminInfo(admin_id="your_admin", admin_hash=admin_hash, cost=4)


def test_role_names():
    assert [role.value for role in Role] == ["User", "Read", "Write", "History"]
    assert Role("History") is Role.HISTORY


def test_valid_admin(admin):
    password = "password"
    assert admin.is_valid_hash(password=password, admin_id="your_admin") is True


def test_wrong_admin_password(admin):
    wrong_password = "secret"
    assert admin.is_valid_hash(wrong_password, "your_admin") is False


def test_wrong_admin_id(admin):
    password = "password"
    assert admin.is_valid_hash(password, "someone_else") is False


def test_malformed_hash_is_invalid():
    password = "password"
    info = AdminInfo("your_admin", "not a hash", 4)
    assert info.is_valid_hash(password, "your_admin") is False


def test_admin_cost(admin):
    assert admin.cost == 4


def test_format_user_log():
    user = User(USER_ID, "$2b$04$placeholder", [Role.USER])
    text = user.format_user_log(datetime(2021, 2, 9, 16, 44, 3, tzinfo=timezone.utc))
    assert "roles: [User,],date:" in text
    assert "hash: " in text
    assert "id: " in text
    assert str(USER_ID) in text
    assert text.endswith("\r\n")
    assert text.count("\r\n") == 1


def test_format_user_log_lists_every_role():
    user = User(USER_ID, "$2b$04$placeholder", [Role.READ, Role.WRITE])
    text = user.format_user_log(datetime(2021, 2, 9, tzinfo=timezone.utc))
    assert "roles: [Read,Write,]" in text


def test_registry_context():
    registry = UserRegistry(
        USER_ID, "$2b$04$placeholder", [Role.USER, Role.HISTORY], datetime.now(timezone.utc)
    )
    assert registry.context() == ("$2b$04$placeholder", [Role.USER, Role.HISTORY])


def test_hashed_user_password_verifies():
    password = "password"
    hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt(4)).decode()
    user = User(USER_ID, hashed, [Role.USER])
    registry_hash, roles = UserRegistry(
        user.id, user.user_password, user.roles, datetime.now(timezone.utc)
    ).context()
    assert bcrypt.checkpw(password.encode(), registry_hash.encode())
    assert roles == [Role.USER]