import json
from datetime import timedelta

from typer.testing import CliRunner

from intakedesk.auth.password import verify_password
from intakedesk.cli.app import app
from intakedesk.db.base import utcnow
from intakedesk.db.repositories import Repository
from intakedesk.db.session import SessionLocal

runner = CliRunner()


def _json_output(output: str):
    lines = output.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith(("{", "[")))
    return json.loads("\n".join(lines[start:]))


def test_admin_seed_creates_then_rotates() -> None:
    created = runner.invoke(app, ["admin", "seed", "--email", "Ops@Example.org", "--password", "first-pass"])
    assert created.exit_code == 0, created.output
    assert "Admin user created: ops@example.org." in created.output

    rotated = runner.invoke(app, ["admin", "seed", "--email", "ops@example.org", "--password", "second-pass"])
    assert rotated.exit_code == 0, rotated.output
    assert "Admin credentials updated: ops@example.org." in rotated.output

    with SessionLocal() as db:
        operator = Repository(db).get_operator_by_email("ops@example.org")
        assert verify_password("second-pass", operator.password_salt, operator.password_hash)
        assert not verify_password("first-pass", operator.password_salt, operator.password_hash)


def test_admin_seed_without_credentials_fails(monkeypatch) -> None:
    monkeypatch.setattr(
        "intakedesk.cli.app.get_settings",
        lambda: type("S", (), {"admin_email": "", "admin_password": ""})(),
    )
    result = runner.invoke(app, ["admin", "seed"])
    assert result.exit_code == 1


def test_sessions_prune_reports_removed_count(operator) -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        repo.create_session(operator_id=operator.id, token="a" * 64, expires_at=utcnow() - timedelta(minutes=1))
        repo.create_session(operator_id=operator.id, token="b" * 64, expires_at=utcnow() + timedelta(hours=1))

    result = runner.invoke(app, ["sessions", "prune"])
    assert result.exit_code == 0, result.output
    assert _json_output(result.output) == {"removed": 1}


def test_applications_list_filters_by_status(client, form_data) -> None:
    response = client.post(
        "/api/applications",
        data=form_data,
        files={"cv": ("cv.pdf", b"%PDF", "application/pdf")},
    )
    app_id = response.json()["id"]

    listed = runner.invoke(app, ["applications", "list"])
    assert listed.exit_code == 0, listed.output
    payload = _json_output(listed.output)
    assert [item["id"] for item in payload] == [app_id]
    assert payload[0]["status"] == "received"

    empty = runner.invoke(app, ["applications", "list", "--status", "accepted"])
    assert _json_output(empty.output) == []

    invalid = runner.invoke(app, ["applications", "list", "--status", "hired"])
    assert invalid.exit_code != 0
