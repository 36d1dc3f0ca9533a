import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from taskdesk.modules.auth import router as auth_router
from taskdesk.modules.auth.schemas import RegisterRequest


class _FakeQuery:
    def __init__(self, existing_user):
        self._existing_user = existing_user

    def filter(self, *args, **kwargs):
        return self

    def first(self):
        return self._existing_user


class _FakeDb:
    def __init__(self, existing_user=None, raise_integrity_on_commit=False):
        self._existing_user = existing_user
        self._raise_integrity_on_commit = raise_integrity_on_commit
        self.added = []
        self.rollback_called = False
        self.refresh_called = False

    def query(self, *args, **kwargs):
        return _FakeQuery(self._existing_user)

    def add(self, record):
        self.added.append(record)

    def commit(self):
        if self._raise_integrity_on_commit:
            raise IntegrityError(
                "INSERT INTO users ...",
                {"Email": "race@example.com"},
                Exception("duplicate email"),
            )

    def rollback(self):
        self.rollback_called = True

    def refresh(self, *_args, **_kwargs):
        self.refresh_called = True


def _payload(**overrides):
    values = {"Name": "Race User", "Email": "Race@Example.com", "Password": "password123"}
    values.update(overrides)
    return RegisterRequest(**values)


def test_register_returns_conflict_when_insert_hits_unique_constraint(monkeypatch):
    monkeypatch.setattr(auth_router, "_require_env", lambda _key: "8")
    monkeypatch.setattr(auth_router, "HashPassword", lambda _value: "hashed-password")

    db = _FakeDb(existing_user=None, raise_integrity_on_commit=True)

    with pytest.raises(HTTPException) as exc_info:
        auth_router.Register(_payload(), db=db)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == "Email already exists"
    assert db.rollback_called is True
    assert db.refresh_called is False
    assert db.added[0].Email == "race@example.com"
    assert db.added[0].Role == "user"


def test_register_rejects_existing_email(monkeypatch):
    monkeypatch.setattr(auth_router, "_require_env", lambda _key: "8")

    db = _FakeDb(existing_user=object())

    with pytest.raises(HTTPException) as exc_info:
        auth_router.Register(_payload(), db=db)

    assert exc_info.value.status_code == 409
    assert db.added == []


def test_register_enforces_password_min_length(monkeypatch):
    monkeypatch.setattr(auth_router, "_require_env", lambda _key: "12")

    db = _FakeDb()

    with pytest.raises(HTTPException) as exc_info:
        auth_router.Register(_payload(Password="short-pass"), db=db)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Password must be at least 12 characters"
    assert db.added == []
