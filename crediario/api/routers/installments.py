from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user, require_roles
from crediario.api.deps import DBSession
from crediario.api.errors import http_error
from crediario.infra.models import InstallmentORM, InstallmentStatus, UserRole
from crediario.schemas.installments import (
    InstallmentOut,
    InstallmentPay,
    MarkOverdueOut,
    PaymentOut,
)
from crediario.services.errors import DomainError
from crediario.services.overdue_service import mark_overdue_installments
from crediario.services.payment_service import (
    PaymentResult,
    mark_installment_paid,
    reconcile_payment,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


def payment_out(result: PaymentResult) -> PaymentOut:
    return PaymentOut(
        kind=result.kind,
        paid_amount=result.paid_amount,
        client_paid_amount=result.client.paid_amount,
        installment=InstallmentOut.model_validate(result.installment),
        remainder=(
            InstallmentOut.model_validate(result.remainder)
            if result.remainder is not None else None
        ),
    )


@router.get("", response_model=list[InstallmentOut])
def list_installments(
    db: Session = DBSession,
    client_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="PENDING|PAID|OVERDUE"),
    due_date: Optional[date] = Query(default=None),
):
    stmt = select(InstallmentORM).order_by(
        InstallmentORM.client_id.desc(),
        InstallmentORM.number.asc(),
        InstallmentORM.split_index.asc(),
    )
    if client_id is not None:
        stmt = stmt.where(InstallmentORM.client_id == client_id)
    if status:
        try:
            st = InstallmentStatus(status.strip().upper())
        except ValueError:
            raise HTTPException(status_code=400, detail="status inválido (PENDING|PAID|OVERDUE).")
        stmt = stmt.where(InstallmentORM.status == st)
    if due_date is not None:
        stmt = stmt.where(InstallmentORM.due_date == due_date)
    return db.execute(stmt).scalars().all()


@router.post("/mark-overdue", response_model=MarkOverdueOut)
def mark_overdue(
    db: Session = DBSession,
    _admin=Depends(require_roles(UserRole.ADMIN)),
):
    updated = mark_overdue_installments(db, today=datetime.now().date())
    return MarkOverdueOut(updated=updated)


@router.get("/{inst_id}", response_model=InstallmentOut)
def get_installment(inst_id: int, db: Session = DBSession):
    inst = db.get(InstallmentORM, inst_id)
    if not inst:
        raise HTTPException(status_code=404, detail="Parcela não encontrada.")
    return inst


@router.post("/{inst_id}/pay", response_model=PaymentOut)
def pay(inst_id: int, payload: InstallmentPay, db: Session = DBSession):
    try:
        result = reconcile_payment(
            db,
            inst_id,
            amount=payload.amount,
            new_due_date=payload.new_due_date,
        )
    except DomainError as e:
        raise http_error(e)
    except Exception:
        db.rollback()
        logger.exception("erro ao registrar pagamento installment_id=%s", inst_id)
        raise HTTPException(status_code=500, detail="Erro ao registrar pagamento.")
    return payment_out(result)


@router.post("/{inst_id}/mark-paid", response_model=PaymentOut)
def mark_paid(inst_id: int, db: Session = DBSession):
    try:
        result = mark_installment_paid(db, inst_id)
    except DomainError as e:
        raise http_error(e)
    except Exception:
        db.rollback()
        logger.exception("erro ao marcar parcela como paga installment_id=%s", inst_id)
        raise HTTPException(status_code=500, detail="Falha ao marcar parcela como paga.")
    return payment_out(result)
