"""Local account store for signing in to the desktop app.

Accounts and the active session live in one JSON file next to the config.
Passwords are stored as salted PBKDF2 hashes.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import uuid
from pathlib import Path
from typing import Optional

from errors import AuthError
from models import User

_ITERATIONS = 200_000


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), _ITERATIONS)
    return digest.hex()


class JsonAuthStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "signlens" / "users.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def register(self, name: str, email: str, password: str) -> User:
        name, email = name.strip(), email.strip()
        if not name or not email or not password:
            raise AuthError("Name, email and password are required")
        data = self._read_all()
        users = data.setdefault("users", [])
        if any(u.get("email", "").lower() == email.lower() for u in users):
            raise AuthError("Email already registered")
        salt = secrets.token_hex(16)
        record = {
            "id": uuid.uuid4().hex,
            "name": name,
            "email": email,
            "salt": salt,
            "password": _hash_password(password, salt),
        }
        users.append(record)
        user = _to_user(record)
        data["session"] = user.id
        self._write_all(data)
        return user

    def login(self, email: str, password: str) -> User:
        data = self._read_all()
        for record in data.get("users", []):
            if record.get("email", "").lower() != email.strip().lower():
                continue
            expected = record.get("password", "")
            if hmac.compare_digest(expected, _hash_password(password, record.get("salt", ""))):
                data["session"] = record["id"]
                self._write_all(data)
                return _to_user(record)
            break
        raise AuthError("Invalid email or password")

    def logout(self) -> None:
        data = self._read_all()
        if data.pop("session", None) is not None:
            self._write_all(data)

    def current_user(self) -> Optional[User]:
        data = self._read_all()
        session = data.get("session")
        for record in data.get("users", []):
            if record.get("id") == session:
                return _to_user(record)
        return None

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _to_user(record: dict) -> User:
    return User(id=record["id"], name=record["name"], email=record["email"])
