from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from billing_core.core.exceptions import DatabaseError, ValidationError
from billing_core.services.base_service import BaseService


class _FakeSession:
    def __init__(self, fail_commit: bool = False) -> None:
        self.fail_commit = fail_commit
        self.commits = 0
        self.rollbacks = 0

    def commit(self) -> None:
        if self.fail_commit:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


def test_atomic_commits_on_success():
    session = _FakeSession()
    with BaseService(db=session).atomic():
        pass
    assert session.commits == 1
    assert session.rollbacks == 0


def test_atomic_rolls_back_and_reraises():
    session = _FakeSession()
    with pytest.raises(ValidationError):
        with BaseService(db=session).atomic():
            raise ValidationError("bad input")
    assert session.commits == 0
    assert session.rollbacks == 1


def test_commit_failure_is_reported_as_database_error():
    session = _FakeSession(fail_commit=True)
    with pytest.raises(DatabaseError):
        BaseService(db=session).commit()
    assert session.rollbacks == 1
