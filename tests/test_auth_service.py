from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from crediario.config import settings
from crediario.infra.models import UserRole
from crediario.services.auth_service import (
    InvalidSession,
    SessionExpired,
    decode_session,
    encode_session,
    hash_password,
    open_session,
    verify_password,
)

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)


def test_session_lasts_configured_ttl():
    s = open_session(user_id=7, role=UserRole.STAFF, now=NOW)
    assert s.expires_at - s.issued_at == timedelta(hours=settings.SESSION_TTL_HOURS)
    assert s.is_valid(NOW + timedelta(hours=1))
    assert not s.is_valid(s.expires_at)


def test_token_carries_the_session():
    s = open_session(user_id=7, role=UserRole.ADMIN, now=NOW)
    decoded = decode_session(encode_session(s), now=NOW + timedelta(minutes=5))

    assert decoded.user_id == 7
    assert decoded.role == UserRole.ADMIN
    assert decoded.issued_at == s.issued_at
    assert decoded.expires_at == s.expires_at


def test_expired_token_is_refused():
    token = encode_session(open_session(user_id=1, role=UserRole.STAFF, now=NOW))
    with pytest.raises(SessionExpired):
        decode_session(token, now=NOW + timedelta(hours=settings.SESSION_TTL_HOURS, seconds=1))


def test_token_longer_than_ttl_is_refused():
    payload = {
        "sub": "1",
        "role": "ADMIN",
        "iat": int(NOW.timestamp()),
        "exp": int((NOW + timedelta(days=30)).timestamp()),
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(SessionExpired):
        decode_session(token, now=NOW + timedelta(hours=1))


@pytest.mark.parametrize("token", ["lixo", ""])
def test_garbage_token(token):
    with pytest.raises(InvalidSession):
        decode_session(token)


def test_wrong_secret():
    token = jwt.encode({"sub": "1", "role": "ADMIN", "iat": 0, "exp": 1}, "outro", algorithm="HS256")
    with pytest.raises(InvalidSession):
        decode_session(token)


def test_password_hashing():
    h = hash_password("minha-senha")
    assert h != "minha-senha"
    assert verify_password("minha-senha", h)
    assert not verify_password("errada", h)


def test_password_over_bcrypt_limit():
    with pytest.raises(ValueError, match="Senha muito longa"):
        hash_password("a" * 73)
