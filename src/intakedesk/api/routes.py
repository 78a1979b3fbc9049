from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from intakedesk.api.deps import (
    get_app_settings,
    get_intake_service,
    get_repository,
    get_review_service,
    get_session_manager,
    require_admin,
)
from intakedesk.api.schemas import (
    AdminMeResponse,
    ApplicationCreatedResponse,
    ErrorResponse,
    LoginRequest,
    OkResponse,
    ReviewUpdateRequest,
)
from intakedesk.auth.cookies import clear_session_cookie, read_session_cookie, set_session_cookie
from intakedesk.auth.password import placeholder_hash, verify_password
from intakedesk.auth.sessions import SessionManager
from intakedesk.config import Settings
from intakedesk.core.intake import IntakeService, build_submission
from intakedesk.core.review import ReviewService
from intakedesk.db.repositories import Repository
from intakedesk.types import AdminSession, ApplicationView, UploadedDocument

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

INVALID_CREDENTIALS = "Invalid credentials."


def error_response(message: str, status_code: int, fields: list[str] | None = None) -> JSONResponse:
    payload = ErrorResponse(error=message, fields=fields or [])
    return JSONResponse(payload.model_dump(exclude_defaults=True), status_code=status_code)


async def read_upload(value: object) -> UploadedDocument | None:
    if not isinstance(value, UploadFile):
        return None
    data = await value.read()
    return UploadedDocument(
        filename=value.filename or "",
        content_type=value.content_type or "",
        data=data,
    )


@router.post(
    "/applications",
    status_code=201,
    response_model=ApplicationCreatedResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def submit_application(
    request: Request,
    service: IntakeService = Depends(get_intake_service),
) -> ApplicationCreatedResponse:
    form = await request.form()
    try:
        submission = build_submission(form)
        cv = await read_upload(form.get("cv"))
        portfolio = await read_upload(form.get("portfolio"))
    finally:
        await form.close()

    application = await run_in_threadpool(service.submit, submission, cv, portfolio)
    return ApplicationCreatedResponse(id=application.id)


@router.post(
    "/admin/login",
    response_model=OkResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def admin_login(
    request: Request,
    repo: Repository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_app_settings),
):
    try:
        credentials = LoginRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        credentials = LoginRequest()

    email = credentials.email.strip().lower()
    if not email or not credentials.password:
        return error_response("Email and password are required.", 400)

    try:
        operator = await run_in_threadpool(repo.get_operator_by_email, email)
    except SQLAlchemyError:
        logger.exception("Operator lookup failed during admin login")
        return error_response("Could not sign in.", 500)

    if operator is None:
        salt, expected = placeholder_hash()
    else:
        salt, expected = operator.password_salt, operator.password_hash
    valid = await run_in_threadpool(verify_password, credentials.password, salt, expected)
    if operator is None or not valid:
        logger.info("Rejected admin login")
        return error_response(INVALID_CREDENTIALS, 401)

    try:
        issued = await run_in_threadpool(manager.issue, operator)
    except Exception:
        logger.exception("Could not persist admin session for operator_id=%s", operator.id)
        return error_response("Could not create the session.", 500)

    response = JSONResponse(OkResponse().model_dump())
    set_session_cookie(response, issued, settings)
    return response


@router.post("/admin/logout")
def admin_logout(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    manager.revoke(read_session_cookie(request, settings))
    response = RedirectResponse(url="/admin/login", status_code=303)
    clear_session_cookie(response, settings)
    return response


@router.get("/admin/me", response_model=AdminMeResponse, responses={401: {"model": ErrorResponse}})
def admin_me(session: AdminSession = Depends(require_admin)) -> AdminMeResponse:
    return AdminMeResponse(
        email=session.user.email,
        name=session.user.name,
        role=session.user.role,
        expires_at=session.expires_at,
    )


@router.get("/admin/applications", response_model=list[ApplicationView], responses={401: {"model": ErrorResponse}})
def list_applications(
    status: str | None = None,
    _: AdminSession = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
) -> list[ApplicationView]:
    return service.list_applications(status=status)


@router.get(
    "/admin/applications/{application_id}",
    response_model=ApplicationView,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_application(
    application_id: str,
    _: AdminSession = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
) -> ApplicationView:
    return service.get_application(application_id)


@router.patch(
    "/admin/applications/{application_id}",
    response_model=ApplicationView,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_application(
    application_id: str,
    payload: ReviewUpdateRequest,
    session: AdminSession = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
) -> ApplicationView:
    view = service.update_application(application_id, payload.status, payload.notes)
    logger.info("Operator %s updated application %s", session.user.email, application_id)
    return view
