from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.infra.models import BoletoORM, BoletoStatus
from crediario.schemas.boletos import BoletoCreate, BoletoOut, BoletoPay, BoletoUpdate

router = APIRouter(dependencies=[Depends(get_current_user)])


def _today() -> date:
    return datetime.now().date()


def _out(row: BoletoORM, today: Optional[date] = None) -> BoletoOut:
    today = today or _today()
    out = BoletoOut.model_validate(row)
    out.is_overdue = row.status == BoletoStatus.PENDING and row.due_date < today
    return out


def _get_or_404(db: Session, boleto_id: int) -> BoletoORM:
    row = db.get(BoletoORM, boleto_id)
    if not row:
        raise HTTPException(status_code=404, detail="Boleto não encontrado.")
    return row


@router.post("", response_model=BoletoOut, status_code=201)
def create_boleto(payload: BoletoCreate, db: Session = DBSession):
    row = BoletoORM(
        description=payload.description.strip(),
        amount=payload.amount,
        due_date=payload.due_date,
        status=BoletoStatus.PENDING,
    )
    db.add(row)
    db.flush()
    db.refresh(row)
    return _out(row)


@router.get("", response_model=list[BoletoOut])
def list_boletos(
    db: Session = DBSession,
    status: Optional[str] = Query(default=None, description="PENDING|PAID"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(BoletoORM).order_by(BoletoORM.due_date.asc(), BoletoORM.id.asc())

    if status:
        try:
            st = BoletoStatus(status.strip().upper())
        except ValueError:
            raise HTTPException(status_code=400, detail="status inválido (PENDING|PAID).")
        stmt = stmt.where(BoletoORM.status == st)

    stmt = stmt.limit(limit).offset(offset)
    today = _today()
    return [_out(r, today) for r in db.execute(stmt).scalars().all()]


@router.get("/{boleto_id}", response_model=BoletoOut)
def get_boleto(boleto_id: int, db: Session = DBSession):
    return _out(_get_or_404(db, boleto_id))


@router.put("/{boleto_id}", response_model=BoletoOut)
def update_boleto(boleto_id: int, payload: BoletoUpdate, db: Session = DBSession):
    row = _get_or_404(db, boleto_id)

    if payload.description is not None:
        row.description = payload.description.strip()
    if payload.amount is not None:
        row.amount = payload.amount
    if payload.due_date is not None:
        row.due_date = payload.due_date

    db.flush()
    db.refresh(row)
    return _out(row)


@router.post("/{boleto_id}/pay", response_model=BoletoOut)
def pay_boleto(
    boleto_id: int,
    payload: Optional[BoletoPay] = Body(default=None),
    db: Session = DBSession,
):
    row = _get_or_404(db, boleto_id)

    # idempotente: mantém a data do primeiro pagamento
    if row.status == BoletoStatus.PAID:
        return _out(row)

    row.status = BoletoStatus.PAID
    row.payment_date = (payload.payment_date if payload else None) or _today()

    db.flush()
    db.refresh(row)
    return _out(row)


@router.delete("/{boleto_id}", status_code=204)
def delete_boleto(boleto_id: int, db: Session = DBSession):
    row = _get_or_404(db, boleto_id)
    db.delete(row)
    db.flush()
    return Response(status_code=204)
