"""Tenant API key generation and verification.

Keys are ``<prefix><body>`` where the body is 64 random bytes encoded as
URL-safe base64 without padding. Only the SHA-256 hex digest of the full
key and its prefix are stored; the plaintext exists only in the response
that created it.
"""

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass, field

from tenantcore.core.constants import (
    API_KEY_BODY_MAX_LENGTH,
    API_KEY_BODY_MIN_LENGTH,
    API_KEY_PREFIX_LIVE,
    API_KEY_PREFIX_TEST,
    API_KEY_RANDOM_BYTES,
)


KNOWN_PREFIXES: tuple[str, ...] = (API_KEY_PREFIX_LIVE, API_KEY_PREFIX_TEST)


@dataclass(frozen=True)
class GeneratedApiKey:
    """Result of minting a key. ``plaintext`` is excluded from repr."""

    plaintext: str = field(repr=False)
    hash: str
    prefix: str


class ApiKeyCodec:
    """Stateless helpers for tenant API keys."""

    @staticmethod
    def generate(is_production: bool = True) -> GeneratedApiKey:
        """Mint a new key.

        Args:
            is_production: Use the live prefix instead of the test prefix

        Returns:
            Plaintext (show once), hash (persist) and prefix (persist)
        """
        raw = secrets.token_bytes(API_KEY_RANDOM_BYTES)
        body = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        prefix = API_KEY_PREFIX_LIVE if is_production else API_KEY_PREFIX_TEST
        plaintext = f"{prefix}{body}"
        return GeneratedApiKey(
            plaintext=plaintext,
            hash=ApiKeyCodec.hash(plaintext),
            prefix=prefix,
        )

    @staticmethod
    def hash(key: str) -> str:
        """SHA-256 of the full key as lowercase hex.

        Raises:
            ValueError: If the key is empty or whitespace
        """
        if not key or not key.strip():
            raise ValueError("API key cannot be empty")
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    @staticmethod
    def validate(key: str | None, stored_hash: str | None) -> bool:
        """Constant-time check of ``key`` against a stored hash.

        Never raises; malformed input simply fails validation.
        """
        if not key or not key.strip() or not stored_hash or not stored_hash.strip():
            return False
        try:
            computed = ApiKeyCodec.hash(key)
            return hmac.compare_digest(
                computed.encode("ascii"),
                stored_hash.strip().lower().encode("ascii"),
            )
        except (ValueError, TypeError, AttributeError):
            return False

    @staticmethod
    def extract_prefix(key: str | None) -> str:
        """Return the recognised prefix of ``key`` or an empty string."""
        if not key:
            return ""
        for prefix in KNOWN_PREFIXES:
            if key.startswith(prefix):
                return prefix
        return ""

    @staticmethod
    def is_valid_format(key: str | None) -> bool:
        """Cheap structural check run before any hashing or lookup."""
        prefix = ApiKeyCodec.extract_prefix(key)
        if not prefix or key is None:
            return False
        body_length = len(key) - len(prefix)
        return API_KEY_BODY_MIN_LENGTH <= body_length <= API_KEY_BODY_MAX_LENGTH
