from __future__ import annotations

import logging

from intakedesk.db.models import Application
from intakedesk.db.repositories import Repository
from intakedesk.storage.base import ObjectStorage
from intakedesk.types import STATUS_OPTIONS, ApplicationView

logger = logging.getLogger(__name__)


class ReviewValidationError(ValueError):
    pass


class ApplicationNotFound(LookupError):
    pass


def to_view(application: Application) -> ApplicationView:
    return ApplicationView(
        id=application.id,
        created_at=application.created_at,
        last_name=application.last_name,
        middle_name=application.middle_name,
        first_name=application.first_name,
        gender=application.gender,
        birth_date=application.birth_date,
        phone=application.phone,
        email=application.email,
        address=application.address,
        institution=application.institution,
        field_of_study=application.field_of_study,
        level=application.level,
        year=application.year,
        tools=list(application.tools_json or []),
        tools_level=application.tools_level,
        motivation=application.motivation,
        skills=application.skills,
        cv_path=application.cv_path,
        portfolio_path=application.portfolio_path,
        status=application.status,
        notes=application.notes,
    )


class ReviewService:
    def __init__(self, repo: Repository, storage: ObjectStorage, *, signed_url_ttl: int):
        self.repo = repo
        self.storage = storage
        self.signed_url_ttl = signed_url_ttl

    def list_applications(self, status: str | None = None) -> list[ApplicationView]:
        rows = self.repo.list_applications(status=status)
        return [self._with_links(to_view(row)) for row in rows]

    def get_application(self, application_id: str) -> ApplicationView:
        row = self.repo.get_application(application_id)
        if row is None:
            raise ApplicationNotFound(application_id)
        return self._with_links(to_view(row))

    def update_application(self, application_id: str, status: str, notes: str | None) -> ApplicationView:
        application_id = (application_id or "").strip()
        if not application_id:
            raise ReviewValidationError("Application id is required.")
        if status not in STATUS_OPTIONS:
            raise ReviewValidationError(f"Unknown status: {status!r}")

        cleaned_notes = (notes or "").strip() or None
        row = self.repo.update_application_review(application_id, status=status, notes=cleaned_notes)
        if row is None:
            raise ApplicationNotFound(application_id)
        logger.info("Application %s moved to %s", application_id, status)
        return to_view(row)

    def _signed_url(self, path: str | None) -> str | None:
        if not path:
            return None
        try:
            return self.storage.create_signed_url(path, self.signed_url_ttl)
        except Exception as exc:
            logger.warning("Could not sign download link for %s: %s", path, exc)
            return None

    def _with_links(self, view: ApplicationView) -> ApplicationView:
        view.cv_url = self._signed_url(view.cv_path)
        view.portfolio_url = self._signed_url(view.portfolio_path)
        return view
