from __future__ import annotations

from pathlib import Path

from intakedesk.config import get_settings
from intakedesk.db.base import Base
from intakedesk.db.session import engine
from intakedesk.db import models  # noqa: F401


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [
        settings.data_dir,
        settings.storage_dir,
        settings.storage_dir / settings.storage_bucket,
    ]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
