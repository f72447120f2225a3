"""Reversible content encoding and content-addressed digests."""

from __future__ import annotations

import base64
import hashlib
import secrets

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ventbuddy_stage.core.settings import settings

from .errors import DecodeFailed

DIGEST_PREFIX = "0x"
DIGEST_LENGTH = len(DIGEST_PREFIX) + 64
_KDF_INFO = b"ventbuddy-content-key"


def derive_content_key(secret: str) -> bytes:
    """Derive a Fernet key from the application secret."""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=_KDF_INFO)
    return base64.urlsafe_b64encode(hkdf.derive(secret.encode("utf-8")))


class ContentCodec:
    """Authenticated text codec plus SHA-256 content digests.

    ``decode(encode(s)) == s`` holds for any text. Tokens are Fernet tokens, so
    a corrupted or tampered token fails to decode instead of yielding garbage.
    """

    def __init__(self, key: bytes | str | None = None) -> None:
        if key is None:
            key = settings.content_key or derive_content_key(settings.secret_key)
        try:
            self._fernet = Fernet(key)
        except ValueError as err:
            raise ValueError(f"Invalid content key: {err}") from err

    def encode(self, plaintext: str) -> str:
        """Encrypt text into an opaque URL-safe token."""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decode(self, token: str) -> str:
        """Decrypt a token produced by :meth:`encode`.

        Raises:
            DecodeFailed: If the token is malformed, forged, or not UTF-8.
        """
        try:
            raw = self._fernet.decrypt(token.encode("ascii"))
            return raw.decode("utf-8")
        except (InvalidToken, UnicodeError) as err:
            raise DecodeFailed("Failed to decode content") from err

    @staticmethod
    def hash(content: str) -> str:
        """Return the ``0x``-prefixed SHA-256 hex digest of the content."""
        return DIGEST_PREFIX + hashlib.sha256(content.encode("utf-8")).hexdigest()

    @classmethod
    def verify(cls, content: str, digest: str) -> bool:
        """Return True if ``digest`` matches the content."""
        return secrets.compare_digest(cls.hash(content), digest.lower())


def make_preview(content: str, length: int | None = None) -> str:
    """Return the first ``length`` characters, with an ellipsis if truncated."""
    limit = settings.reply_preview_length if length is None else length
    if len(content) > limit:
        return content[:limit] + "..."
    return content


_default_codec: ContentCodec | None = None


def get_content_codec() -> ContentCodec:
    """Return the process-wide codec configured from settings."""
    global _default_codec
    if _default_codec is None:
        _default_codec = ContentCodec()
    return _default_codec
