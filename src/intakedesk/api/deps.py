from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from intakedesk.auth.cookies import read_session_cookie
from intakedesk.auth.sessions import SessionManager
from intakedesk.config import Settings, get_settings
from intakedesk.core.intake import IntakeService
from intakedesk.core.review import ReviewService
from intakedesk.db.repositories import Repository
from intakedesk.db.session import get_db_session
from intakedesk.storage import DownloadSigner, LocalObjectStorage, ObjectStorage
from intakedesk.types import AdminSession


class AuthenticationRequired(Exception):
    message = "Authentication required."


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_app_settings() -> Settings:
    return get_settings()


def get_signer(settings: Settings = Depends(get_app_settings)) -> DownloadSigner:
    return DownloadSigner(settings.secret_key)


def get_storage(
    settings: Settings = Depends(get_app_settings),
    signer: DownloadSigner = Depends(get_signer),
) -> ObjectStorage:
    return LocalObjectStorage(settings.storage_dir, settings.storage_bucket, signer)


def get_repository(db: Session = Depends(get_db)) -> Repository:
    return Repository(db)


def get_session_manager(
    repo: Repository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> SessionManager:
    return SessionManager(repo, settings.session_ttl_seconds)


def get_intake_service(
    repo: Repository = Depends(get_repository),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> IntakeService:
    return IntakeService(repo, storage, max_upload_bytes=settings.max_upload_bytes)


def get_review_service(
    repo: Repository = Depends(get_repository),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> ReviewService:
    return ReviewService(repo, storage, signed_url_ttl=settings.signed_url_ttl_seconds)


def get_current_admin_optional(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_app_settings),
) -> AdminSession | None:
    return manager.resolve(read_session_cookie(request, settings))


def require_admin(session: AdminSession | None = Depends(get_current_admin_optional)) -> AdminSession:
    if session is None:
        raise AuthenticationRequired()
    return session
