from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from intakedesk.api.deps import AuthenticationRequired
from intakedesk.api.routes import error_response
from intakedesk.api.routes import router as api_router
from intakedesk.config import get_settings
from intakedesk.core.intake import IntakeError, IntakeValidationError
from intakedesk.core.review import ApplicationNotFound, ReviewValidationError
from intakedesk.db.init import init_database
from intakedesk.logging_config import configure_logging
from intakedesk.web.routes import router as web_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    result = init_database()
    logger.info("Database ready tables=%s", ",".join(result["tables"]))
    yield


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(IntakeError)
    async def _intake_error(request: Request, exc: IntakeError) -> JSONResponse:
        fields = exc.fields if isinstance(exc, IntakeValidationError) else None
        return error_response(exc.message, exc.status_code, fields)

    @app.exception_handler(AuthenticationRequired)
    async def _auth_required(request: Request, exc: AuthenticationRequired) -> JSONResponse:
        return error_response(exc.message, 401)

    @app.exception_handler(ReviewValidationError)
    async def _review_invalid(request: Request, exc: ReviewValidationError) -> JSONResponse:
        return error_response(str(exc), 400)

    @app.exception_handler(ApplicationNotFound)
    async def _not_found(request: Request, exc: ApplicationNotFound) -> JSONResponse:
        return error_response("Application not found.", 404)


def create_app() -> FastAPI:
    settings = get_settings()
    static_dir = Path(__file__).resolve().parents[1] / "web" / "static"

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    app.include_router(web_router)

    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    return app
