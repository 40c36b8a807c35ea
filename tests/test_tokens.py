"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers bcrypt hashing/verification and the two-secret TokenIssuer: access and
refresh tokens are not interchangeable, expiry and tampering yield None.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from auth.tokens import TokenIssuer, hash_password, verify_password

ACCESS_SECRET = "a" * 32 + "-access"
REFRESH_SECRET = "r" * 32 + "-refresh"


def _issuer(access_ttl: timedelta = timedelta(hours=1), refresh_ttl: timedelta = timedelta(days=7)) -> TokenIssuer:
    return TokenIssuer(ACCESS_SECRET, REFRESH_SECRET, access_ttl, refresh_ttl)


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("correct horse", rounds=4)
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_hashes_are_salted(self) -> None:
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_long_passwords_compared_in_full(self) -> None:
        long_password = "x" * 90 + "-tail"
        hashed = hash_password(long_password, rounds=4)
        assert verify_password(long_password, hashed)
        assert not verify_password("x" * 90 + "-TAIL", hashed)
        assert verify_password("\u00e9" * 128, hash_password("\u00e9" * 128, rounds=4))

    def test_malformed_hash_never_matches(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokenIssuer:
    def test_round_trip(self) -> None:
        pair = _issuer().issue(42)
        assert _issuer().verify_access(pair.access_token) == 42
        assert _issuer().verify_refresh(pair.refresh_token) == 42

    def test_payload_carries_only_id_and_expiry(self) -> None:
        token = _issuer().issue(7).access_token
        claims = jwt.get_unverified_claims(token)
        assert set(claims) == {"id", "exp"}

    def test_tokens_not_interchangeable(self) -> None:
        pair = _issuer().issue(1)
        assert _issuer().verify_refresh(pair.access_token) is None
        assert _issuer().verify_access(pair.refresh_token) is None

    def test_expired_token_rejected(self) -> None:
        pair = _issuer(access_ttl=timedelta(seconds=-1)).issue(1)
        assert _issuer().verify_access(pair.access_token) is None

    def test_tampered_token_rejected(self) -> None:
        token = _issuer().issue(1).access_token
        head, payload, signature = token.split(".")
        assert _issuer().verify_access(f"{head}.{payload}.{signature[::-1]}") is None
        assert _issuer().verify_access("garbage") is None

    def test_non_integer_id_rejected(self) -> None:
        forged = jwt.encode({"id": "1", "exp": 9999999999}, ACCESS_SECRET, algorithm="HS256")
        assert _issuer().verify_access(forged) is None

    def test_identical_secrets_refused(self) -> None:
        with pytest.raises(ValueError):
            TokenIssuer(ACCESS_SECRET, ACCESS_SECRET, timedelta(hours=1), timedelta(days=1))
