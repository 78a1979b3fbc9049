from __future__ import annotations

import time
from urllib.parse import quote

from itsdangerous import BadSignature, URLSafeTimedSerializer


class InvalidDownloadLink(Exception):
    pass


class DownloadSigner:
    """Signs ``/files/<path>`` links that stop working after ``expires_in`` seconds."""

    salt = "intakedesk.download"

    def __init__(self, secret_key: str, *, base_path: str = "/files"):
        self.serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)
        self.base_path = base_path.rstrip("/")

    def sign(self, path: str, expires_in: int) -> str:
        token = self.serializer.dumps({"path": path, "ttl": int(expires_in)})
        return f"{self.base_path}/{quote(path)}?token={token}"

    def verify(self, path: str, token: str, *, now: float | None = None) -> None:
        try:
            payload, signed_at = self.serializer.loads(token, return_timestamp=True)
        except BadSignature as exc:
            raise InvalidDownloadLink("bad signature") from exc

        if not isinstance(payload, dict) or payload.get("path") != path:
            raise InvalidDownloadLink("link does not match the requested object")

        current = time.time() if now is None else now
        if signed_at.timestamp() + int(payload.get("ttl", 0)) < current:
            raise InvalidDownloadLink("link expired")
