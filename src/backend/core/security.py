"""Voter anonymization utilities.

Voters are anonymous: the only identity the engine ever sees is a keyed,
one-way fingerprint of the request's network origin.
"""

import hashlib
import hmac

from core.config import settings

# Origin used when the request carries no usable network address
UNKNOWN_ORIGIN = "unknown"


def generate_fingerprint(origin: str | None, salt: str | None = None) -> str:
    """
    Derive a stable voter fingerprint from a network origin.

    The fingerprint:
    1. Is deterministic (same origin + salt = same fingerprint)
    2. Cannot be reversed to recover the origin
    3. Cannot be recomputed without the server-side salt

    Missing or blank origins map to the fingerprint of ``"unknown"``.

    Args:
        origin: Raw network origin of the request (never stored)
        salt: Override for the process-wide FINGERPRINT_SALT (tests only)

    Returns:
        A 64-character hex HMAC-SHA256 digest
    """
    normalized = (origin or "").strip() or UNKNOWN_ORIGIN
    key = (salt if salt is not None else settings.FINGERPRINT_SALT).encode()
    return hmac.new(key, normalized.encode(), hashlib.sha256).hexdigest()


def redact_fingerprint(fingerprint: str) -> str:
    """Shorten a fingerprint for log output."""
    return fingerprint[:8]
