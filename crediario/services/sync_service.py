from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crediario.infra.models import SyncReceiptORM
from crediario.schemas.clients import ClientCreate
from crediario.schemas.sync import SyncItem, SyncPaymentData
from crediario.schemas.visits import VisitCreate
from crediario.services.client_service import create_client_with_schedule
from crediario.services.errors import DomainError
from crediario.services.payment_service import reconcile_payment
from crediario.services.visit_service import register_visit

logger = logging.getLogger(__name__)

APPLIED = "applied"
DUPLICATE = "duplicate"
REJECTED = "rejected"


@dataclass
class SyncItemResult:
    key: str
    status: str
    result_id: Optional[int] = None
    error: Optional[str] = None


def _apply_client(db: Session, data: Dict[str, Any], user_id: Optional[int]) -> int:
    payload = ClientCreate.model_validate(data)
    client = create_client_with_schedule(db, **payload.model_dump())
    return client.id


def _apply_payment(db: Session, data: Dict[str, Any], user_id: Optional[int]) -> int:
    payload = SyncPaymentData.model_validate(data)
    result = reconcile_payment(
        db,
        payload.installment_id,
        amount=payload.amount,
        new_due_date=payload.new_due_date,
        today=payload.paid_on,
    )
    return result.installment.id


def _apply_visit(db: Session, data: Dict[str, Any], user_id: Optional[int]) -> int:
    payload = VisitCreate.model_validate(data)
    result = register_visit(db, user_id=user_id, **payload.model_dump())
    return result.visit.id


APPLIERS: Dict[str, Callable[[Session, Dict[str, Any], Optional[int]], int]] = {
    "client": _apply_client,
    "payment": _apply_payment,
    "visit": _apply_visit,
}


def _error_message(e: Exception) -> str:
    if isinstance(e, ValidationError):
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        return f"{loc}: {first.get('msg', 'inválido')}" if loc else str(first.get("msg", "inválido"))
    if isinstance(e, IntegrityError):
        return "Conflito ao gravar registro."
    return str(e)


def apply_sync_batch(
    db: Session,
    items: List[SyncItem],
    *,
    user_id: Optional[int] = None,
) -> List[SyncItemResult]:
    """
    Entrega pelo menos uma vez: o aparelho pode reenviar à vontade,
    cada key é aplicada uma vez só. Cada item roda num SAVEPOINT, então
    um item rejeitado não derruba os outros. Rejeitado não vira recibo,
    pra poder ser reenviado depois de corrigido.
    """
    results: List[SyncItemResult] = []

    for item in items:
        receipt = db.get(SyncReceiptORM, item.key)
        if receipt is not None:
            results.append(SyncItemResult(key=item.key, status=DUPLICATE, result_id=receipt.result_id))
            continue

        apply = APPLIERS[item.type]
        try:
            with db.begin_nested():
                result_id = apply(db, item.data, user_id)
                db.add(SyncReceiptORM(key=item.key, type=item.type, result_id=result_id))
                db.flush()
        except (DomainError, ValidationError, IntegrityError) as e:
            logger.warning("sync rejeitado key=%s type=%s: %s", item.key, item.type, e)
            results.append(SyncItemResult(key=item.key, status=REJECTED, error=_error_message(e)))
            continue

        results.append(SyncItemResult(key=item.key, status=APPLIED, result_id=result_id))

    logger.info(
        "sync: %s itens (%s aplicados, %s duplicados, %s rejeitados)",
        len(results),
        sum(1 for r in results if r.status == APPLIED),
        sum(1 for r in results if r.status == DUPLICATE),
        sum(1 for r in results if r.status == REJECTED),
    )
    return results
