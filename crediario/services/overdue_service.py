from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from crediario.infra.models import InstallmentORM, InstallmentStatus

logger = logging.getLogger(__name__)


def mark_overdue_installments(db: Session, *, today: date) -> int:
    """PENDING com vencimento antes de hoje -> OVERDUE. Retorna quantas mudaram."""
    ids = db.scalars(
        select(InstallmentORM.id).where(
            InstallmentORM.status == InstallmentStatus.PENDING,
            InstallmentORM.due_date < today,
        )
    ).all()
    if not ids:
        return 0

    db.execute(
        update(InstallmentORM)
        .where(InstallmentORM.id.in_(ids))
        .values(status=InstallmentStatus.OVERDUE)
    )
    db.flush()
    logger.info("parcelas marcadas como atrasadas: %s", len(ids))
    return len(ids)
