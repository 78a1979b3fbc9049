from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="intakedesk-tests-"))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP / 'test.db'}")
os.environ.setdefault("DATA_DIR", str(_TMP))
os.environ.setdefault("STORAGE_DIR", str(_TMP / "storage"))
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient

from intakedesk.api.app import create_app
from intakedesk.api.deps import get_storage
from intakedesk.auth.password import hash_password
from intakedesk.config import get_settings
from intakedesk.db.base import Base
from intakedesk.db.models import Operator
from intakedesk.db.repositories import Repository
from intakedesk.db.session import SessionLocal, engine
from intakedesk.storage import DownloadSigner, StorageError, StoredObject
from intakedesk.storage.base import normalize_object_path

ADMIN_EMAIL = "admin@example.org"
ADMIN_PASSWORD = "correct horse battery staple"


class MemoryStorage:
    def __init__(self, signer: DownloadSigner):
        self.signer = signer
        self.objects: dict[str, StoredObject] = {}
        self.fail_uploads_for: set[str] = set()
        self.fail_remove = False

    def upload(self, path: str, data: bytes, content_type: str, *, upsert: bool = False) -> str:
        key = normalize_object_path(path)
        if any(key.endswith(suffix) for suffix in self.fail_uploads_for):
            raise StorageError(f"upload refused for {key}")
        if key in self.objects and not upsert:
            raise StorageError(f"object already exists: {key}")
        self.objects[key] = StoredObject(path=key, data=data, content_type=content_type)
        return key

    def remove(self, paths: list[str]) -> None:
        if self.fail_remove:
            raise StorageError("remove failed")
        for path in paths:
            self.objects.pop(normalize_object_path(path), None)

    def download(self, path: str) -> StoredObject:
        key = normalize_object_path(path)
        if key not in self.objects:
            raise FileNotFoundError(key)
        return self.objects[key]

    def exists(self, path: str) -> bool:
        return normalize_object_path(path) in self.objects

    def create_signed_url(self, path: str, expires_in: int) -> str | None:
        if not self.exists(path):
            return None
        return self.signer.sign(normalize_object_path(path), expires_in)


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def signer() -> DownloadSigner:
    return DownloadSigner(get_settings().secret_key)


@pytest.fixture()
def storage(signer: DownloadSigner) -> MemoryStorage:
    return MemoryStorage(signer)


@pytest.fixture()
def client(storage: MemoryStorage) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_storage] = lambda: storage
    return TestClient(app)


@pytest.fixture()
def operator() -> Operator:
    hashed = hash_password(ADMIN_PASSWORD)
    with SessionLocal() as db:
        created, _ = Repository(db).upsert_operator(
            email=ADMIN_EMAIL,
            password_hash=hashed.hash,
            password_salt=hashed.salt,
            name="Admin",
        )
        db.expunge(created)
    return created


@pytest.fixture()
def logged_in_client(client: TestClient, operator: Operator) -> TestClient:
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


def application_form(**overrides: str) -> dict[str, str]:
    form = {
        "last_name": "Mbala",
        "middle_name": "Kanku",
        "first_name": "Grace",
        "gender": "female",
        "birth_date": "2001-04-12",
        "phone": "+243810000000",
        "email": "grace@example.org",
        "address": "12 avenue du Port",
        "institution": "Polytechnic Institute",
        "field_of_study": "Architecture",
        "level": "Bachelor",
        "year": "3",
        "tools": '["AutoCAD", "Revit"]',
        "tools_level": "intermediate",
        "motivation": "I want to design public buildings that last.",
        "skills": "Structural modelling and site supervision.",
    }
    form.update(overrides)
    return form


@pytest.fixture()
def form_data() -> dict[str, str]:
    return application_form()


@pytest.fixture()
def admin_password() -> str:
    return ADMIN_PASSWORD
