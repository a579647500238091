from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from crediario.infra.models import ClientORM, InstallmentORM, VisitORM, VisitStatus
from crediario.services.errors import DomainValidationError, NotFoundError
from crediario.services.money import Number, parse_money
from crediario.services.payment_service import PaymentResult, reconcile_payment

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = (VisitStatus.PAID, VisitStatus.PARTIAL)


@dataclass
class VisitResult:
    visit: VisitORM
    payment: Optional[PaymentResult]


def register_visit(
    db: Session,
    *,
    client_id: int,
    status: Optional[VisitStatus],
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
    amount_received: Optional[Number] = None,
    installment_id: Optional[int] = None,
    new_due_date: Optional[date] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    photo_key: Optional[str] = None,
    visited_at: Optional[datetime] = None,
) -> VisitResult:
    """
    Check-in de visita. Se veio pagamento + parcela, a baixa acontece
    na mesma transação da visita.
    """
    if status is None:
        raise DomainValidationError("Selecione o status da visita.")

    client = db.get(ClientORM, client_id)
    if not client:
        raise NotFoundError("Cliente não encontrado.")

    received = None
    if status in PAYMENT_STATUSES:
        if amount_received is None:
            raise DomainValidationError("Informe o valor recebido.")
        received = parse_money(amount_received)
        if received is None or received <= 0:
            raise DomainValidationError("Valor recebido inválido.")
    elif amount_received is not None:
        raise DomainValidationError("Valor recebido só vale para visita com pagamento.")

    payment: Optional[PaymentResult] = None
    if installment_id is not None:
        inst = db.get(InstallmentORM, installment_id)
        if not inst or inst.client_id != client_id:
            raise NotFoundError("Parcela não encontrada para este cliente.")
        if received is not None:
            payment = reconcile_payment(
                db,
                installment_id,
                amount=received,
                new_due_date=new_due_date,
                today=(visited_at.date() if visited_at else None),
            )

    visit = VisitORM(
        client_id=client_id,
        user_id=user_id,
        installment_id=installment_id,
        status=status,
        notes=(notes or "").strip() or None,
        amount_received=received,
        latitude=latitude,
        longitude=longitude,
        photo_key=photo_key,
        visited_at=visited_at or datetime.now(),
    )
    db.add(visit)
    db.flush()

    logger.info(
        "visita registrada id=%s client_id=%s status=%s recebido=%s",
        visit.id, client_id, status.value, received,
    )
    return VisitResult(visit=visit, payment=payment)


def day_bounds(day: date):
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time.max)
    return start, end


def list_visits(
    db: Session,
    *,
    client_id: Optional[int] = None,
    user_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = 200,
    offset: int = 0,
) -> List[VisitORM]:
    stmt = select(VisitORM).order_by(VisitORM.visited_at.desc(), VisitORM.id.desc())

    if client_id is not None:
        stmt = stmt.where(VisitORM.client_id == client_id)
    if user_id is not None:
        stmt = stmt.where(VisitORM.user_id == user_id)
    if date_from is not None:
        stmt = stmt.where(VisitORM.visited_at >= day_bounds(date_from)[0])
    if date_to is not None:
        stmt = stmt.where(VisitORM.visited_at <= day_bounds(date_to)[1])

    stmt = stmt.limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())
