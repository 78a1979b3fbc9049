from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredObject:
    path: str
    data: bytes
    content_type: str


class ObjectStorage(Protocol):
    """A single bucket of opaque objects addressed by relative paths."""

    def upload(self, path: str, data: bytes, content_type: str, *, upsert: bool = False) -> str: ...

    def remove(self, paths: list[str]) -> None: ...

    def download(self, path: str) -> StoredObject: ...

    def exists(self, path: str) -> bool: ...

    def create_signed_url(self, path: str, expires_in: int) -> str | None: ...


def normalize_object_path(path: str) -> str:
    parts = [part for part in path.replace("\\", "/").split("/") if part]
    if not parts or any(part in {".", ".."} for part in parts):
        raise StorageError(f"invalid object path: {path!r}")
    return "/".join(parts)
