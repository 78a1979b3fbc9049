from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from intakedesk.db.models import Application
from intakedesk.db.repositories import Repository
from intakedesk.storage.base import ObjectStorage
from intakedesk.types import OPTIONAL_FIELDS, REQUIRED_FIELDS, ApplicationSubmission, UploadedDocument

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "pdf"
GENERIC_FAILURE = "Could not save the application."


class IntakeError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class IntakeValidationError(IntakeError):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None, fields: list[str] | None = None):
        super().__init__(message, status_code)
        self.fields = fields or []


class IntakeStorageError(IntakeError):
    status_code = 500


def file_extension(filename: str | None, fallback: str = DEFAULT_EXTENSION) -> str:
    parts = (filename or "").split(".")
    if len(parts) > 1:
        return parts[-1].strip().lower() or fallback
    return fallback


def object_paths(application_id: str, cv_filename: str | None, portfolio_filename: str | None = None) -> dict[str, str]:
    paths = {"cv": f"{application_id}/cv.{file_extension(cv_filename)}"}
    if portfolio_filename is not None:
        paths["portfolio"] = f"{application_id}/portfolio.{file_extension(portfolio_filename)}"
    return paths


def parse_tools(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def build_submission(form: Mapping[str, Any]) -> ApplicationSubmission:
    def text(key: str) -> str:
        value = form.get(key)
        return value.strip() if isinstance(value, str) else ""

    values: dict[str, Any] = {name: text(name) for name in REQUIRED_FIELDS}
    values.update({name: text(name) or None for name in OPTIONAL_FIELDS})
    values["tools"] = parse_tools(text("tools"))
    return ApplicationSubmission(**values)


class IntakeService:
    def __init__(self, repo: Repository, storage: ObjectStorage, *, max_upload_bytes: int):
        self.repo = repo
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes

    def validate(
        self,
        submission: ApplicationSubmission,
        cv: UploadedDocument | None,
        portfolio: UploadedDocument | None,
    ) -> None:
        if cv is None or cv.is_empty:
            raise IntakeValidationError("A CV file is required.", fields=["cv"])

        missing = submission.missing_fields()
        if missing:
            raise IntakeValidationError("Missing required fields.", fields=missing)

        for name, document in (("cv", cv), ("portfolio", portfolio)):
            if document is not None and len(document.data) > self.max_upload_bytes:
                raise IntakeValidationError("File is too large.", status_code=413, fields=[name])

    def submit(
        self,
        submission: ApplicationSubmission,
        cv: UploadedDocument | None,
        portfolio: UploadedDocument | None = None,
    ) -> Application:
        if portfolio is not None and portfolio.is_empty:
            portfolio = None
        self.validate(submission, cv, portfolio)

        application_id = str(uuid.uuid4())
        paths = object_paths(application_id, cv.filename, portfolio.filename if portfolio else None)
        uploaded: list[str] = []

        try:
            cv_path = self._upload(paths["cv"], cv)
            uploaded.append(cv_path)
            portfolio_path = None
            if portfolio is not None:
                portfolio_path = self._upload(paths["portfolio"], portfolio)
                uploaded.append(portfolio_path)

            application = self.repo.create_application(
                application_id=application_id,
                submission=submission,
                cv_path=cv_path,
                portfolio_path=portfolio_path,
            )
        except Exception as exc:
            logger.warning("Application %s failed after %s upload(s): %s", application_id, len(uploaded), exc, exc_info=True)
            self._compensate(application_id, uploaded)
            raise IntakeStorageError(GENERIC_FAILURE) from exc

        logger.info(
            "Stored application %s cv=%s portfolio=%s",
            application.id,
            application.cv_path,
            application.portfolio_path or "-",
        )
        return application

    def _upload(self, path: str, document: UploadedDocument) -> str:
        return self.storage.upload(
            path,
            document.data,
            document.content_type or "application/octet-stream",
            upsert=False,
        )

    def _compensate(self, application_id: str, uploaded: list[str]) -> None:
        if not uploaded:
            return
        try:
            self.storage.remove(uploaded)
        except Exception:
            logger.error(
                "Compensation failed for application %s; orphaned objects: %s",
                application_id,
                ", ".join(uploaded),
                exc_info=True,
            )
            return
        logger.info("Removed %s orphaned upload(s) for application %s", len(uploaded), application_id)
