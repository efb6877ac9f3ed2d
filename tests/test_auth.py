from __future__ import annotations

import json
from pathlib import Path

import pytest

from auth import JsonAuthStore
from errors import AuthError


def test_register_logs_in_and_hides_password(tmp_path: Path) -> None:
    path = tmp_path / "users.json"
    store = JsonAuthStore(path=path)

    user = store.register("Ada", "ada@example.com", "s3cret")

    assert store.current_user() == user
    raw = path.read_text(encoding="utf-8")
    assert "s3cret" not in raw
    assert json.loads(raw)["session"] == user.id


def test_login_is_case_insensitive_on_email(tmp_path: Path) -> None:
    store = JsonAuthStore(path=tmp_path / "users.json")
    user = store.register("Ada", "Ada@Example.com", "pw")
    store.logout()
    assert store.current_user() is None

    assert store.login("ada@example.com", "pw") == user
    assert store.current_user() == user


def test_wrong_password_is_rejected(tmp_path: Path) -> None:
    store = JsonAuthStore(path=tmp_path / "users.json")
    store.register("Ada", "ada@example.com", "pw")
    store.logout()

    with pytest.raises(AuthError, match="Invalid email or password"):
        store.login("ada@example.com", "nope")
    with pytest.raises(AuthError):
        store.login("bob@example.com", "pw")
    assert store.current_user() is None


def test_duplicate_email_is_rejected(tmp_path: Path) -> None:
    store = JsonAuthStore(path=tmp_path / "users.json")
    store.register("Ada", "ada@example.com", "pw")

    with pytest.raises(AuthError, match="already registered"):
        store.register("Other", "ADA@example.com", "pw2")


def test_register_requires_all_fields(tmp_path: Path) -> None:
    store = JsonAuthStore(path=tmp_path / "users.json")
    with pytest.raises(AuthError):
        store.register("", "a@b.c", "pw")


def test_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "users.json"
    path.write_text("[not json", encoding="utf-8")

    assert JsonAuthStore(path=path).current_user() is None
