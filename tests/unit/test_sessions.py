from __future__ import annotations

from datetime import timedelta

from sqlalchemy.exc import OperationalError

from intakedesk.auth.sessions import SessionManager
from intakedesk.db.base import utcnow
from intakedesk.db.models import AdminSessionRow, Operator
from intakedesk.db.repositories import Repository
from intakedesk.db.session import SessionLocal

TTL = 8 * 60 * 60


def _manager(db) -> SessionManager:
    return SessionManager(Repository(db), TTL)


def test_issued_token_resolves_to_operator(operator: Operator) -> None:
    with SessionLocal() as db:
        manager = _manager(db)
        issued = manager.issue(db.get(Operator, operator.id))
        assert len(issued.token) == 64
        assert issued.max_age == TTL

        session = manager.resolve(issued.token)
        assert session is not None
        assert session.user.email == operator.email
        assert session.user.role == "admin"


def test_tokens_are_unique(operator: Operator) -> None:
    with SessionLocal() as db:
        manager = _manager(db)
        row = db.get(Operator, operator.id)
        assert manager.issue(row).token != manager.issue(row).token


def test_expired_session_does_not_resolve(operator: Operator) -> None:
    issued_at = utcnow()
    with SessionLocal() as db:
        manager = _manager(db)
        issued = manager.issue(db.get(Operator, operator.id), now=issued_at)

        assert manager.resolve(issued.token, now=issued_at + timedelta(seconds=TTL - 1)) is not None
        assert manager.resolve(issued.token, now=issued_at + timedelta(seconds=TTL)) is None
        assert manager.resolve(issued.token, now=issued_at + timedelta(seconds=TTL + 60)) is None


def test_unknown_or_empty_token_does_not_resolve(operator: Operator) -> None:
    with SessionLocal() as db:
        manager = _manager(db)
        assert manager.resolve("0" * 64) is None
        assert manager.resolve("") is None
        assert manager.resolve(None) is None


def test_revoked_session_does_not_resolve(operator: Operator) -> None:
    with SessionLocal() as db:
        manager = _manager(db)
        issued = manager.issue(db.get(Operator, operator.id))
        assert manager.revoke(issued.token)
        assert manager.resolve(issued.token) is None
        assert not manager.revoke(issued.token)


def test_session_of_deleted_operator_does_not_resolve(operator: Operator) -> None:
    with SessionLocal() as db:
        manager = _manager(db)
        issued = manager.issue(db.get(Operator, operator.id))
        db.delete(db.get(Operator, operator.id))
        db.commit()
        assert manager.resolve(issued.token) is None


def test_prune_removes_only_expired_rows(operator: Operator) -> None:
    now = utcnow()
    with SessionLocal() as db:
        manager = _manager(db)
        row = db.get(Operator, operator.id)
        stale = manager.issue(row, now=now - timedelta(seconds=TTL + 10))
        live = manager.issue(row, now=now)

        assert manager.prune_expired(now=now) == 1
        tokens = {item.token for item in db.query(AdminSessionRow).all()}
        assert stale.token not in tokens
        assert live.token in tokens


def test_lookup_failure_resolves_to_no_session(operator: Operator, monkeypatch) -> None:
    def broken_lookup(self, token, now):
        raise OperationalError("SELECT admin_sessions", {}, Exception("database is locked"))

    with SessionLocal() as db:
        manager = _manager(db)
        issued = manager.issue(db.get(Operator, operator.id))
        monkeypatch.setattr(Repository, "find_live_session", broken_lookup)
        assert manager.resolve(issued.token) is None
