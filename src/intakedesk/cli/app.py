from __future__ import annotations

import json

import typer
import uvicorn

from intakedesk.auth.password import hash_password
from intakedesk.auth.sessions import SessionManager
from intakedesk.config import get_settings
from intakedesk.core.review import to_view
from intakedesk.db.init import init_database
from intakedesk.db.repositories import Repository
from intakedesk.db.session import session_scope
from intakedesk.logging_config import configure_logging
from intakedesk.types import STATUS_OPTIONS

app = typer.Typer(help="Intake Desk CLI")
admin_app = typer.Typer(help="Manage operator accounts")
sessions_app = typer.Typer(help="Admin session maintenance")
applications_app = typer.Typer(help="Inspect submitted applications")

app.add_typer(admin_app, name="admin")
app.add_typer(sessions_app, name="sessions")
app.add_typer(applications_app, name="applications")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Create data directories and database tables."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str = typer.Option("", "--host"),
    port: int = typer.Option(0, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(
        "intakedesk.api.app:create_app",
        factory=True,
        host=host or settings.app_host,
        port=port or settings.app_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@admin_app.command("seed")
def admin_seed(
    email: str = typer.Option("", "--email", help="Defaults to ADMIN_EMAIL"),
    password: str = typer.Option("", "--password", help="Defaults to ADMIN_PASSWORD"),
    name: str = typer.Option("", "--name"),
) -> None:
    """Create the operator, or rotate its password when it already exists."""
    configure_logging()
    settings = get_settings()
    email = (email or settings.admin_email).strip().lower()
    password = password or settings.admin_password
    if not email or not password:
        typer.echo("Missing ADMIN_EMAIL or ADMIN_PASSWORD.", err=True)
        raise typer.Exit(code=1)

    ensure_initialized()
    hashed = hash_password(password)
    with session_scope() as db:
        operator, created = Repository(db).upsert_operator(
            email=email,
            password_hash=hashed.hash,
            password_salt=hashed.salt,
            name=name or None,
        )
    message = "Admin user created" if created else "Admin credentials updated"
    typer.echo(f"{message}: {operator.email}.")


@sessions_app.command("prune")
def sessions_prune() -> None:
    """Delete expired admin sessions."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with session_scope() as db:
        removed = SessionManager(Repository(db), settings.session_ttl_seconds).prune_expired()
    typer.echo(json.dumps({"removed": removed}, indent=2))


@applications_app.command("list")
def applications_list(status: str = typer.Option("", "--status")) -> None:
    configure_logging()
    ensure_initialized()
    if status and status not in STATUS_OPTIONS:
        raise typer.BadParameter(f"status must be one of {', '.join(STATUS_OPTIONS)}")

    with session_scope() as db:
        rows = Repository(db).list_applications(status=status or None)
        payload = [to_view(row).model_dump(mode="json", exclude={"cv_url", "portfolio_url"}) for row in rows]
    typer.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    app()
