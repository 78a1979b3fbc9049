from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_SECRET_KEY = "change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Intake Desk"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8080
    log_level: str = "INFO"
    secret_key: str = DEFAULT_SECRET_KEY

    database_url: str = "sqlite:///./data/intakedesk.db"
    data_dir: Path = Path("./data")
    storage_dir: Path = Path("./data/storage")
    storage_bucket: str = "applications"

    session_cookie_name: str = "intake_admin_session"
    session_ttl_seconds: int = 60 * 60 * 8
    signed_url_ttl_seconds: int = 60 * 60
    max_upload_bytes: int = 10 * 1024 * 1024

    cors_origins: str = "http://127.0.0.1:8080"

    admin_email: str = ""
    admin_password: str = ""

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("session_ttl_seconds", "signed_url_ttl_seconds", "max_upload_bytes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        if self.app_env in {"staging", "production"} and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set outside development and test environments")
        return self

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def secure_cookies(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
