from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from intakedesk.db.base import utcnow
from intakedesk.db.models import Operator
from intakedesk.db.repositories import Repository
from intakedesk.types import AdminSession, IssuedSession, OperatorIdentity

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


class SessionManager:
    def __init__(self, repo: Repository, ttl_seconds: int):
        self.repo = repo
        self.ttl_seconds = ttl_seconds

    def issue(self, operator: Operator, now: datetime | None = None) -> IssuedSession:
        issued_at = now or utcnow()
        token = generate_token()
        expires_at = issued_at + timedelta(seconds=self.ttl_seconds)
        self.repo.create_session(operator_id=operator.id, token=token, expires_at=expires_at)
        logger.info("Issued admin session operator_id=%s expires_at=%s", operator.id, expires_at.isoformat())
        return IssuedSession(token=token, expires_at=expires_at, max_age=self.ttl_seconds)

    def resolve(self, token: str | None, now: datetime | None = None) -> AdminSession | None:
        if not token:
            return None
        try:
            found = self.repo.find_live_session(token, now or utcnow())
        except SQLAlchemyError:
            logger.warning("Admin session lookup failed; treating request as signed out", exc_info=True)
            self.repo.session.rollback()
            return None
        if found is None:
            return None

        row, operator = found
        return AdminSession(
            session_id=row.id,
            expires_at=row.expires_at,
            user=OperatorIdentity(id=operator.id, email=operator.email, name=operator.name, role=operator.role),
        )

    def revoke(self, token: str | None) -> bool:
        if not token:
            return False
        deleted = self.repo.delete_session(token)
        return deleted > 0

    def prune_expired(self, now: datetime | None = None) -> int:
        removed = self.repo.delete_expired_sessions(now)
        if removed:
            logger.info("Pruned %s expired admin sessions", removed)
        return removed
