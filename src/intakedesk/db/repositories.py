from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from intakedesk.db.base import utcnow
from intakedesk.db.models import AdminSessionRow, Application, Operator
from intakedesk.types import DEFAULT_STATUS, ApplicationSubmission


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # operators

    def get_operator_by_email(self, email: str) -> Operator | None:
        return self.session.scalar(select(Operator).where(Operator.email == normalize_email(email)))

    def upsert_operator(
        self,
        *,
        email: str,
        password_hash: str,
        password_salt: str,
        name: str | None = None,
        role: str = "admin",
    ) -> tuple[Operator, bool]:
        existing = self.get_operator_by_email(email)
        if existing:
            existing.password_hash = password_hash
            existing.password_salt = password_salt
            existing.role = role
            if name:
                existing.name = name
            operator, created = existing, False
        else:
            operator = Operator(
                email=normalize_email(email),
                name=name,
                password_hash=password_hash,
                password_salt=password_salt,
                role=role,
            )
            self.session.add(operator)
            created = True

        self.session.commit()
        self.session.refresh(operator)
        return operator, created

    # sessions

    def create_session(self, *, operator_id: int, token: str, expires_at: datetime) -> AdminSessionRow:
        row = AdminSessionRow(admin_user_id=operator_id, token=token, expires_at=expires_at)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def find_live_session(self, token: str, now: datetime) -> tuple[AdminSessionRow, Operator] | None:
        statement = (
            select(AdminSessionRow, Operator)
            .join(Operator, Operator.id == AdminSessionRow.admin_user_id)
            .where(AdminSessionRow.token == token, AdminSessionRow.expires_at > now)
        )
        row = self.session.execute(statement).first()
        if row is None:
            return None
        return row[0], row[1]

    def delete_session(self, token: str) -> int:
        result = self.session.execute(delete(AdminSessionRow).where(AdminSessionRow.token == token))
        self.session.commit()
        return result.rowcount or 0

    def delete_expired_sessions(self, now: datetime | None = None) -> int:
        cutoff = now or utcnow()
        result = self.session.execute(delete(AdminSessionRow).where(AdminSessionRow.expires_at <= cutoff))
        self.session.commit()
        return result.rowcount or 0

    # applications

    def create_application(
        self,
        *,
        application_id: str,
        submission: ApplicationSubmission,
        cv_path: str,
        portfolio_path: str | None,
    ) -> Application:
        values = submission.model_dump(exclude={"tools"})
        application = Application(
            id=application_id,
            tools_json=list(submission.tools),
            cv_path=cv_path,
            portfolio_path=portfolio_path,
            status=DEFAULT_STATUS,
            **values,
        )
        self.session.add(application)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(application)
        return application

    def get_application(self, application_id: str) -> Application | None:
        return self.session.get(Application, application_id)

    def list_applications(self, status: str | None = None) -> list[Application]:
        statement = select(Application).order_by(Application.created_at.desc())
        if status:
            statement = statement.where(Application.status == status)
        return list(self.session.scalars(statement).all())

    def update_application_review(self, application_id: str, *, status: str, notes: str | None) -> Application | None:
        application = self.session.get(Application, application_id)
        if application is None:
            return None
        application.status = status
        application.notes = notes
        self.session.commit()
        self.session.refresh(application)
        return application
