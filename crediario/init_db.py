from __future__ import annotations

import logging
import os

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crediario.infra.db import engine
from crediario.infra.models import Base, UserORM, UserRole
from crediario.services.auth_service import hash_password

logger = logging.getLogger(__name__)


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("tabelas criadas/verificadas")


def ensure_admin(db: Session) -> bool:
    """
    Cria um usuário admin caso não exista. Retorna True se criou.
    Configure via variáveis de ambiente:
      ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME
    """
    email = os.getenv("ADMIN_EMAIL", "admin@admin.com").strip().lower()
    password = os.getenv("ADMIN_PASSWORD", "admin123").strip()
    name = os.getenv("ADMIN_NAME", "Admin").strip()

    if not email or not password:
        logger.warning("variáveis do admin inválidas; pulando criação do admin")
        return False

    existing = db.scalar(select(UserORM.id).where(UserORM.email == email))
    if existing:
        return False

    db.add(UserORM(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
    ))
    try:
        db.commit()
    except IntegrityError:
        # corrida: duas instâncias subindo juntas
        db.rollback()
        logger.info("admin já existe email=%s", email)
        return False

    logger.info("admin criado email=%s", email)
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
