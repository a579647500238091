from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from crediario.api.deps import DBSession
from crediario.infra.models import UserORM, UserRole
from crediario.services.auth_service import (
    AuthSession,
    InvalidSession,
    SessionExpired,
    decode_session,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_session(token: str = Depends(oauth2_scheme)) -> AuthSession:
    try:
        return decode_session(token)
    except SessionExpired:
        raise _unauthorized("Sessão expirada. Faça login novamente.")
    except InvalidSession:
        raise _unauthorized("Token inválido ou expirado.")


def get_current_user(
    session: AuthSession = Depends(get_current_session),
    db: Session = DBSession,
) -> UserORM:
    user = db.get(UserORM, session.user_id)
    if not user:
        raise _unauthorized("Token inválido ou expirado.")
    return user


def require_roles(*allowed: UserRole) -> Callable:
    allowed_set = set(allowed)

    def dep(user: UserORM = Depends(get_current_user)) -> UserORM:
        if user.role not in allowed_set:
            raise HTTPException(status_code=403, detail="Sem permissão.")
        return user

    return dep
