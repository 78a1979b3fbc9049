from __future__ import annotations

import json
import logging
from pathlib import Path

from intakedesk.storage.base import StorageError, StoredObject, normalize_object_path
from intakedesk.storage.signing import DownloadSigner

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
_META_SUFFIX = ".meta.json"


class LocalObjectStorage:
    """Bucket backed by a directory. Content types live in a sidecar file."""

    def __init__(self, root: Path, bucket: str, signer: DownloadSigner):
        self.root = Path(root) / bucket
        self.bucket = bucket
        self.signer = signer

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_object_path(path)

    def upload(self, path: str, data: bytes, content_type: str, *, upsert: bool = False) -> str:
        key = normalize_object_path(path)
        target = self.root / key
        if target.exists() and not upsert:
            raise StorageError(f"object already exists: {key}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            meta = target.with_name(target.name + _META_SUFFIX)
            meta.write_text(json.dumps({"content_type": content_type or DEFAULT_CONTENT_TYPE}), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"failed to write {key}: {exc}") from exc
        return key

    def remove(self, paths: list[str]) -> None:
        failed: list[str] = []
        for path in paths:
            target = self._resolve(path)
            for item in (target, target.with_name(target.name + _META_SUFFIX)):
                try:
                    item.unlink(missing_ok=True)
                except OSError as exc:
                    logger.warning("Failed to remove stored object %s: %s", item, exc)
                    failed.append(path)
            if target.parent != self.root:
                try:
                    target.parent.rmdir()
                except OSError:
                    # directory still holds another object
                    pass
        if failed:
            raise StorageError(f"failed to remove {sorted(set(failed))}")

    def download(self, path: str) -> StoredObject:
        key = normalize_object_path(path)
        target = self.root / key
        if not target.is_file():
            raise FileNotFoundError(key)
        content_type = DEFAULT_CONTENT_TYPE
        meta = target.with_name(target.name + _META_SUFFIX)
        if meta.is_file():
            content_type = json.loads(meta.read_text(encoding="utf-8")).get("content_type", content_type)
        return StoredObject(path=key, data=target.read_bytes(), content_type=content_type)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def create_signed_url(self, path: str, expires_in: int) -> str | None:
        if not self.exists(path):
            return None
        return self.signer.sign(normalize_object_path(path), expires_in)
