"""Opaque bearer token codec.

A token is 16 random bytes rendered as unpadded base32 (26 characters).
Only the SHA-256 digest of that text is persisted; it is the lookup key,
so a leaked digest is no easier to reverse than guessing the secret.
"""
from __future__ import annotations

import base64
import enum
import hashlib
import re
import secrets

TOKEN_BYTES = 16
PLAINTEXT_LENGTH = 26

_PLAINTEXT_RE = re.compile(r"^[A-Z2-7]{%d}$" % PLAINTEXT_LENGTH)


class Scope(str, enum.Enum):
    """What a token is allowed to authorize."""

    ACTIVATION = "activation"
    AUTHENTICATION = "authentication"
    REFRESH = "refresh"
    PASSWORD_RESET = "password-reset"


def hash_of(plaintext: str) -> bytes:
    """Derive the lookup hash for a caller supplied token."""

    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def mint(byte_length: int = TOKEN_BYTES) -> tuple[str, bytes]:
    """Return ``(plaintext, hash)`` for a fresh random secret."""

    # secrets draws from the OS CSPRNG; failure there is not recoverable.
    raw = secrets.token_bytes(byte_length)
    plaintext = base64.b32encode(raw).decode("ascii").rstrip("=")
    return plaintext, hash_of(plaintext)


def is_well_formed(plaintext: object) -> bool:
    """Cheap shape check run before any store lookup."""

    return isinstance(plaintext, str) and bool(_PLAINTEXT_RE.match(plaintext))
