from __future__ import annotations

from fastapi import Request, Response

from intakedesk.config import Settings
from intakedesk.types import IssuedSession


def read_session_cookie(request: Request, settings: Settings) -> str | None:
    return request.cookies.get(settings.session_cookie_name) or None


def set_session_cookie(response: Response, issued: IssuedSession, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        issued.token,
        max_age=issued.max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
