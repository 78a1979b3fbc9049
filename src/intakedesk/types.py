from __future__ import annotations

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field

ApplicationStatus = Literal["received", "in_review", "interview", "rejected", "accepted"]

STATUS_OPTIONS: tuple[str, ...] = get_args(ApplicationStatus)
DEFAULT_STATUS: ApplicationStatus = "received"
STATUS_LABELS: dict[str, str] = {
    "received": "Received",
    "in_review": "In review",
    "interview": "Interview",
    "rejected": "Rejected",
    "accepted": "Accepted",
}

REQUIRED_FIELDS: tuple[str, ...] = (
    "last_name",
    "middle_name",
    "first_name",
    "gender",
    "birth_date",
    "phone",
    "email",
    "institution",
    "field_of_study",
    "level",
)
OPTIONAL_FIELDS: tuple[str, ...] = (
    "address",
    "year",
    "tools_level",
    "motivation",
    "skills",
)

TOOL_OPTIONS: tuple[str, ...] = ("AutoCAD", "Revit", "ArchiCAD", "SketchUp", "Civil 3D")
TOOL_LEVEL_OPTIONS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
RECOMMENDED_TEXT_MIN_LENGTH = 20


class UploadedDocument(BaseModel):
    filename: str = ""
    content_type: str = ""
    data: bytes = b""

    @property
    def is_empty(self) -> bool:
        return not self.data


class ApplicationSubmission(BaseModel):
    last_name: str = ""
    middle_name: str = ""
    first_name: str = ""
    gender: str = ""
    birth_date: str = ""
    phone: str = ""
    email: str = ""
    address: str | None = None
    institution: str = ""
    field_of_study: str = ""
    level: str = ""
    year: str | None = None
    tools: list[str] = Field(default_factory=list)
    tools_level: str | None = None
    motivation: str | None = None
    skills: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


class OperatorIdentity(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str


class AdminSession(BaseModel):
    session_id: int
    user: OperatorIdentity
    expires_at: datetime


class IssuedSession(BaseModel):
    token: str
    expires_at: datetime
    max_age: int


class ApplicationView(BaseModel):
    id: str
    created_at: datetime | None = None
    last_name: str
    middle_name: str
    first_name: str
    gender: str
    birth_date: str
    phone: str
    email: str
    address: str | None = None
    institution: str
    field_of_study: str
    level: str
    year: str | None = None
    tools: list[str] = Field(default_factory=list)
    tools_level: str | None = None
    motivation: str | None = None
    skills: str | None = None
    cv_path: str | None = None
    portfolio_path: str | None = None
    status: str = DEFAULT_STATUS
    notes: str | None = None
    cv_url: str | None = None
    portfolio_url: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name, self.middle_name) if part)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, STATUS_LABELS[DEFAULT_STATUS])
