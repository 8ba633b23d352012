"""Security utilities for HMAC signing keys and digests."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable, Sequence
from typing import Protocol

from teetime.core.settings import QuoteSettings, get_quote_settings


class SigningKeyProvider(Protocol):
    """Source of the keys used to sign and verify quotes."""

    def current_key(self) -> bytes: ...

    def verification_keys(self) -> Sequence[bytes]: ...


class StaticSigningKeys:
    """Fixed key set: one active key plus retired keys still accepted."""

    def __init__(self, current: str, previous: Iterable[str] = ()) -> None:
        if not current:
            raise ValueError("A non-empty signing key is required")
        self._current = current.encode()
        self._previous = tuple(key.encode() for key in previous if key)

    def current_key(self) -> bytes:
        return self._current

    def verification_keys(self) -> Sequence[bytes]:
        return (self._current, *self._previous)


def signing_keys_from_settings(
    settings: QuoteSettings | None = None,
) -> StaticSigningKeys:
    """Build the key provider from configuration."""
    settings = settings or get_quote_settings()
    return StaticSigningKeys(settings.secret, settings.previous_secrets)


def hmac_hexdigest(key: bytes, payload: bytes) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``payload``."""
    return hmac.new(key, payload, hashlib.sha256).hexdigest()


def digest_matches(
    candidate: str, payload: bytes, keys: Iterable[bytes]
) -> bool:
    """Compare ``candidate`` against the digest under every key in constant time."""
    submitted = candidate.strip().lower().encode("utf-8")
    matched = False
    for key in keys:
        expected = hmac_hexdigest(key, payload).encode("ascii")
        # no early exit so every key is always evaluated
        matched |= hmac.compare_digest(expected, submitted)
    return matched
