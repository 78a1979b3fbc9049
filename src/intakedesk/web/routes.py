from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from intakedesk.api.deps import get_current_admin_optional, get_review_service, get_signer, get_storage
from intakedesk.core.review import ApplicationNotFound, ReviewService, ReviewValidationError
from intakedesk.storage import DownloadSigner, InvalidDownloadLink, ObjectStorage, StorageError
from intakedesk.types import (
    RECOMMENDED_TEXT_MIN_LENGTH,
    STATUS_LABELS,
    STATUS_OPTIONS,
    TOOL_LEVEL_OPTIONS,
    TOOL_OPTIONS,
    AdminSession,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["web"])
templates = Jinja2Templates(
    directory=str(Path(__file__).resolve().parents[1] / "web" / "templates")
)

APPLY_STEPS = ("Identity", "Studies", "Skills", "Motivation", "Documents")


def _login_redirect() -> RedirectResponse:
    return RedirectResponse(url="/admin/login", status_code=303)


@router.get("/", response_class=HTMLResponse)
def landing(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/apply", response_class=HTMLResponse)
def apply_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "apply.html",
        {
            "steps": APPLY_STEPS,
            "tool_options": TOOL_OPTIONS,
            "tool_levels": TOOL_LEVEL_OPTIONS,
            "min_text_length": RECOMMENDED_TEXT_MIN_LENGTH,
        },
    )


@router.get("/admin/login", response_class=HTMLResponse)
def admin_login_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "admin_login.html", {})


@router.get("/admin", response_class=HTMLResponse)
def admin_dashboard(
    request: Request,
    session: AdminSession | None = Depends(get_current_admin_optional),
    service: ReviewService = Depends(get_review_service),
) -> Response:
    if session is None:
        return _login_redirect()

    try:
        applications = service.list_applications()
    except Exception:
        logger.exception("Failed to load applications for the review page")
        return templates.TemplateResponse(
            request,
            "admin.html",
            {"session": session, "applications": [], "load_error": True},
            status_code=500,
        )

    return templates.TemplateResponse(
        request,
        "admin.html",
        {
            "session": session,
            "applications": applications,
            "status_options": STATUS_OPTIONS,
            "status_labels": STATUS_LABELS,
            "load_error": False,
        },
    )


@router.post("/admin/applications/{application_id}")
def admin_update_application(
    application_id: str,
    status: str = Form(""),
    notes: str = Form(""),
    session: AdminSession | None = Depends(get_current_admin_optional),
    service: ReviewService = Depends(get_review_service),
) -> RedirectResponse:
    if session is None:
        return _login_redirect()

    try:
        service.update_application(application_id, status, notes)
    except (ReviewValidationError, ApplicationNotFound) as exc:
        logger.info("Ignored review update for %s: %s", application_id, exc)
    return RedirectResponse(url="/admin", status_code=303)


@router.get("/files/{object_path:path}")
def download_file(
    object_path: str,
    token: str = "",
    signer: DownloadSigner = Depends(get_signer),
    storage: ObjectStorage = Depends(get_storage),
) -> Response:
    try:
        signer.verify(object_path, token)
    except InvalidDownloadLink as exc:
        logger.info("Refused download of %s: %s", object_path, exc)
        return Response(status_code=403)

    try:
        stored = storage.download(object_path)
    except (FileNotFoundError, StorageError):
        return Response(status_code=404)

    filename = PurePosixPath(stored.path).name
    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
