from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from crediario.api.deps import DBSession
from crediario.infra.models import UserORM
from crediario.schemas.auth import LoginIn, TokenOut
from crediario.services.auth_service import encode_session, open_session, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = DBSession):
    email = payload.email.strip().lower()

    user = db.execute(select(UserORM).where(UserORM.email == email)).scalars().first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("login recusado email=%s", email)
        raise HTTPException(status_code=401, detail="Credenciais inválidas.")

    session = open_session(user_id=user.id, role=user.role)
    return TokenOut(access_token=encode_session(session), expires_at=session.expires_at)
