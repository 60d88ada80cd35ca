import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from helpdesk.database import commit_or_500
from helpdesk.security import encrypt_secret, decrypt_secret


class FailingSession:
    def __init__(self):
        self.rolled_back = False

    def commit(self):
        raise OperationalError("UPDATE tickets", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True


def test_commit_failure_rolls_back_and_answers_500():
    db = FailingSession()
    with pytest.raises(HTTPException) as exc:
        commit_or_500(db, "update_status")
    assert exc.value.status_code == 500
    assert db.rolled_back


def test_secret_roundtrip_and_tamper():
    token = encrypt_secret("abc123")
    assert token != "abc123"
    assert decrypt_secret(token) == "abc123"
    assert encrypt_secret("") is None
    with pytest.raises(ValueError):
        decrypt_secret(token[:-4] + "AAAA")
