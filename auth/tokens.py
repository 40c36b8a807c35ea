"""
auth/tokens.py -- Password hashing and the access/refresh token issuer.

Security design decisions:
  JWT: python-jose with HS256. Every token carries only the user id ("id")
       and an expiry ("exp"). Access and refresh tokens are signed with two
       distinct secrets, so an access token can never pass refresh
       verification and vice versa. Verification returns None on any failure
       -- the service layer turns that into a 401.

  Passwords: bcrypt used directly (no passlib wrapper) over a SHA-256
       pre-digest, so long passwords never hit bcrypt's 72-byte limit. The work factor is
       configurable (BCRYPT_ROUNDS, default 12) so tests can run at the
       minimum cost while production keeps brute force expensive.

  Stateless tokens: there is no revocation list. Expiry is the only way a
       token stops working; a refresh mints a new pair without invalidating
       the old refresh token.

Layer rule: no imports from api/, content/, storage/, or cache/. Import from
core/ is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import Settings

logger = logging.getLogger("portfolio.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _prehash(plain: str) -> bytes:
    """SHA-256 digest of the password, base64-encoded to 44 bytes.

    bcrypt rejects input over 72 bytes, and the API accepts passwords up to
    128 characters (up to 512 UTF-8 bytes). Hashing a fixed-length digest
    keeps every accepted password in range without truncation.
    """
    return base64.b64encode(hashlib.sha256(plain.encode("utf-8")).digest())


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of the pre-digested plaintext password."""
    return bcrypt.hashpw(_prehash(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_prehash(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash -- treat as a mismatch, never as a match.
        return False


# ---------------------------------------------------------------------------
# Token issuer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """Creates and verifies signed, time-bounded access and refresh tokens.

    Constructed once in the lifespan (see TokenIssuer.from_settings) and held
    by AuthService. Tests build their own instances with short or negative
    lifetimes to exercise expiry.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
    ) -> None:
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh secrets must be different.")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
        )

    def issue(self, user_id: int) -> TokenPair:
        """Mint a fresh access/refresh pair for user_id."""
        return TokenPair(
            access_token=_encode(user_id, self._access_secret, self._access_ttl),
            refresh_token=_encode(user_id, self._refresh_secret, self._refresh_ttl),
        )

    def verify_access(self, token: str) -> int | None:
        """Return the user id from a valid access token, else None."""
        return _decode(token, self._access_secret)

    def verify_refresh(self, token: str) -> int | None:
        """Return the user id from a valid refresh token, else None."""
        return _decode(token, self._refresh_secret)


def _encode(user_id: int, secret: str, ttl: timedelta) -> str:
    payload = {"id": user_id, "exp": datetime.now(timezone.utc) + ttl}
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def _decode(token: str, secret: str) -> int | None:
    """Verify signature and expiry. Returns the embedded user id or None.

    Returning None (rather than raising) keeps the caller simple: any invalid
    token is treated as unauthenticated.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        return None
    user_id = payload.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return user_id
