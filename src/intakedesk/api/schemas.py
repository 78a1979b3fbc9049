from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str
    fields: list[str] = Field(default_factory=list)


class ApplicationCreatedResponse(BaseModel):
    ok: bool = True
    id: str


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class OkResponse(BaseModel):
    ok: bool = True


class ReviewUpdateRequest(BaseModel):
    status: str
    notes: str | None = None


class AdminMeResponse(BaseModel):
    email: str
    name: str | None = None
    role: str
    expires_at: datetime
