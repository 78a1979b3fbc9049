from __future__ import annotations

import hashlib
import hmac
import secrets
from functools import lru_cache
from typing import NamedTuple

SALT_BYTES = 16
KEY_BYTES = 64
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1


class CredentialFormatError(ValueError):
    """Stored salt or hash is not valid hex."""


class PasswordHash(NamedTuple):
    salt: str
    hash: str


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_BYTES,
    )


def _from_hex(value: str, label: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except (TypeError, ValueError) as exc:
        raise CredentialFormatError(f"stored password {label} is not valid hex") from exc


def hash_password(password: str, salt: str | None = None) -> PasswordHash:
    salt_bytes = _from_hex(salt, "salt") if salt is not None else secrets.token_bytes(SALT_BYTES)
    return PasswordHash(salt=salt_bytes.hex(), hash=_derive(password, salt_bytes).hex())


def verify_password(password: str, salt_hex: str, hash_hex: str) -> bool:
    salt = _from_hex(salt_hex, "salt")
    expected = _from_hex(hash_hex, "hash")
    derived = _derive(password, salt)
    if len(expected) != len(derived):
        return False
    return hmac.compare_digest(expected, derived)


@lru_cache(maxsize=1)
def placeholder_hash() -> PasswordHash:
    """Credentials checked for unknown emails so both login failures cost one scrypt run."""
    return hash_password(secrets.token_hex(16))
