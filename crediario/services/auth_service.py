from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from crediario.config import settings
from crediario.infra.models import UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class SessionExpired(Exception):
    pass


class InvalidSession(Exception):
    pass


@dataclass(frozen=True)
class AuthSession:
    """Sessão explícita: quem, com qual papel, emitida quando e válida até quando."""
    user_id: int
    role: UserRole
    issued_at: datetime
    expires_at: datetime

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.issued_at <= now < self.expires_at


def _assert_bcrypt_limit(raw: str) -> None:
    if len(raw.encode("utf-8")) > 72:
        raise ValueError("Senha muito longa. Use uma senha menor.")


def hash_password(raw: str) -> str:
    _assert_bcrypt_limit(raw)
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    return pwd_context.verify(raw, hashed)


def open_session(*, user_id: int, role: UserRole, now: Optional[datetime] = None) -> AuthSession:
    issued = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    return AuthSession(
        user_id=user_id,
        role=role,
        issued_at=issued,
        expires_at=issued + timedelta(hours=settings.SESSION_TTL_HOURS),
    )


def encode_session(session: AuthSession) -> str:
    payload = {
        "sub": str(session.user_id),
        "role": session.role.value,
        "iat": int(session.issued_at.timestamp()),
        "exp": int(session.expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session(token: str, now: Optional[datetime] = None) -> AuthSession:
    try:
        # exp conferido abaixo, contra o TTL configurado
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False},
        )
        session = AuthSession(
            user_id=int(payload["sub"]),
            role=UserRole(payload["role"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (JWTError, KeyError, ValueError, TypeError) as e:
        raise InvalidSession("Token inválido.") from e

    ttl = timedelta(hours=settings.SESSION_TTL_HOURS)
    if session.expires_at - session.issued_at > ttl or not session.is_valid(now):
        raise SessionExpired("Sessão expirada.")
    return session
