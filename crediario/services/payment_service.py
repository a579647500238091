from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crediario.infra.models import ClientORM, InstallmentORM, InstallmentStatus
from crediario.services.errors import NotFoundError, PaymentValidationError
from crediario.services.money import Number, format_brl, parse_money, quantize_money

logger = logging.getLogger(__name__)

FULL = "full"
PARTIAL = "partial"


@dataclass
class PaymentResult:
    kind: str  # full | partial
    paid_amount: Decimal
    installment: InstallmentORM
    remainder: Optional[InstallmentORM]
    client: ClientORM


def _today_local() -> date:
    return datetime.now().date()


def _next_split_index(db: Session, inst: InstallmentORM) -> int:
    current = db.scalar(
        select(func.max(InstallmentORM.split_index)).where(
            InstallmentORM.client_id == inst.client_id,
            InstallmentORM.number == inst.number,
        )
    )
    return int(current or 0) + 1


def _load_open_installment(db: Session, inst_id: int) -> InstallmentORM:
    inst = db.get(InstallmentORM, inst_id)
    if not inst:
        raise NotFoundError("Parcela não encontrada.")
    if inst.status == InstallmentStatus.PAID:
        raise PaymentValidationError("Parcela já está paga.")
    return inst


def validate_tendered(tendered: Optional[Number], outstanding: Decimal) -> Decimal:
    if tendered is None:
        raise PaymentValidationError("Informe o valor do pagamento.")
    value = parse_money(tendered)
    if value is None or value <= 0 or value > outstanding:
        raise PaymentValidationError(
            f"O valor deve ser entre R$ 0,01 e {format_brl(outstanding)}."
        )
    return value


def reconcile_payment(
    db: Session,
    inst_id: int,
    *,
    amount: Number,
    new_due_date: Optional[date] = None,
    today: Optional[date] = None,
) -> PaymentResult:
    """
    Aplica um pagamento numa parcela aberta (PENDING/OVERDUE).

    - valor == saldo: parcela marcada como paga.
    - valor < saldo: a própria parcela vira o pedaço pago (amount = valor pago)
      e nasce uma parcela PENDING com o restante, com a mesma numeração e
      split_index seguinte. Vencimento do restante = new_due_date ou o original.

    Tudo só com flush(); quem chama decide o commit (uma transação só).
    """
    inst = _load_open_installment(db, inst_id)
    outstanding = quantize_money(inst.amount)
    tendered = validate_tendered(amount, outstanding)

    client = db.get(ClientORM, inst.client_id)
    if not client:
        raise NotFoundError("Cliente não encontrado.")

    paid_on = today or _today_local()
    remainder: Optional[InstallmentORM] = None

    if tendered == outstanding:
        kind = FULL
    else:
        kind = PARTIAL
        remainder = InstallmentORM(
            client_id=inst.client_id,
            number=inst.number,
            split_index=_next_split_index(db, inst),
            parent_id=inst.id,
            amount=quantize_money(outstanding - tendered),
            due_date=new_due_date or inst.due_date,
            status=InstallmentStatus.PENDING,
        )
        db.add(remainder)
        inst.amount = tendered

    inst.status = InstallmentStatus.PAID
    inst.payment_date = paid_on

    client.paid_amount = quantize_money((client.paid_amount or Decimal("0")) + tendered)
    if client.paid_amount > client.total_amount:
        logger.warning(
            "client_id=%s paid_amount=%s passou do total_amount=%s",
            client.id, client.paid_amount, client.total_amount,
        )

    db.flush()

    logger.info(
        "pagamento %s: installment_id=%s client_id=%s valor=%s restante=%s",
        kind, inst.id, client.id, tendered,
        remainder.amount if remainder is not None else Decimal("0.00"),
    )
    return PaymentResult(
        kind=kind,
        paid_amount=tendered,
        installment=inst,
        remainder=remainder,
        client=client,
    )


def mark_installment_paid(
    db: Session,
    inst_id: int,
    *,
    today: Optional[date] = None,
) -> PaymentResult:
    """Baixa rápida (dashboard): paga o saldo inteiro da parcela."""
    inst = _load_open_installment(db, inst_id)
    return reconcile_payment(db, inst.id, amount=inst.amount, today=today)
