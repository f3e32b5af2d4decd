"""
Tests for password hashing and session tokens
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from config import settings
from security import (
    bearer_token,
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("hunter22")
    second = hash_password("hunter22")
    assert first != second
    assert "hunter22" not in first
    assert verify_password("hunter22", first)
    assert not verify_password("hunter23", first)


def test_malformed_stored_hash_never_verifies():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "no-separator")


def test_session_token_round_trip():
    token = create_session_token("user-1", "a@startup.io", True)
    assert decode_session_token(token).user_id == "user-1"

    # Email and flag ride along for the client only
    payload = jwt.get_unverified_claims(token)
    assert payload["email"] == "a@startup.io"
    assert payload["isVerified"] is True


def test_session_token_lasts_seven_days():
    token = create_session_token("user-1", "a@startup.io", False)
    payload = jwt.get_unverified_claims(token)
    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600


def test_expired_token_rejected():
    token = create_session_token("user-1", "a@startup.io", False, expires_delta=timedelta(seconds=-1))
    assert decode_session_token(token) is None


def test_token_signed_with_other_secret_rejected():
    payload = {"sub": "user-1", "exp": datetime.now(timezone.utc) + timedelta(hours=1)}
    token = jwt.encode(payload, "wrong-secret-key", algorithm=settings.JWT_ALGORITHM)
    assert decode_session_token(token) is None


def test_garbage_and_subjectless_tokens_rejected():
    assert decode_session_token("not-a-valid-token") is None
    payload = {"exp": datetime.now(timezone.utc) + timedelta(hours=1)}
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    assert decode_session_token(token) is None


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer abc") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None
