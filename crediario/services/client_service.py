from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from crediario.infra.models import (
    ClientORM,
    InstallmentORM,
    InstallmentStatus,
    PaymentType,
)
from crediario.services.errors import DomainValidationError, NotFoundError
from crediario.services.money import Number, quantize_money
from crediario.services.schedule_service import generate_schedule

logger = logging.getLogger(__name__)

OPEN_STATUSES = (InstallmentStatus.PENDING, InstallmentStatus.OVERDUE)


def normalize_phone(phone: str) -> str:
    return (
        phone.strip()
        .replace(" ", "")
        .replace("-", "")
        .replace("(", "")
        .replace(")", "")
    )


@dataclass
class ClientListing:
    client: ClientORM
    next_due_date: Optional[date]
    due_today: bool


def create_client_with_schedule(
    db: Session,
    *,
    name: str,
    phone: str,
    address: str,
    total_amount: Number,
    payment_type: Optional[PaymentType],
    first_payment_date: Optional[date],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> ClientORM:
    """Cadastra o cliente e gera as parcelas na mesma transação."""
    name = (name or "").strip()
    phone = normalize_phone(phone or "")
    address = (address or "").strip()

    if not name or not phone or not address or first_payment_date is None:
        raise DomainValidationError("Por favor, preencha todos os campos obrigatórios.")

    planned = generate_schedule(total_amount, payment_type, first_payment_date)

    client = ClientORM(
        name=name,
        phone=phone,
        address=address,
        total_amount=quantize_money(total_amount),
        paid_amount=Decimal("0.00"),
        payment_type=payment_type,
        first_payment_date=first_payment_date,
        latitude=latitude,
        longitude=longitude,
    )
    db.add(client)
    db.flush()

    for p in planned:
        db.add(
            InstallmentORM(
                client_id=client.id,
                number=p.number,
                split_index=0,
                amount=p.amount,
                due_date=p.due_date,
                status=InstallmentStatus.PENDING,
            )
        )
    db.flush()

    logger.info(
        "cliente cadastrado id=%s total=%s forma=%s parcelas=%s",
        client.id, client.total_amount, payment_type.value, len(planned),
    )
    return client


def get_client(db: Session, client_id: int) -> ClientORM:
    client = db.get(ClientORM, client_id)
    if not client:
        raise NotFoundError("Cliente não encontrado.")
    return client


def delete_client(db: Session, client_id: int) -> None:
    client = get_client(db, client_id)
    db.delete(client)
    db.flush()


def _next_due_by_client(
    db: Session, client_ids: Sequence[int]
) -> Dict[int, date]:
    if not client_ids:
        return {}
    stmt = (
        select(InstallmentORM.client_id, func.min(InstallmentORM.due_date))
        .where(
            InstallmentORM.client_id.in_(client_ids),
            InstallmentORM.status.in_(OPEN_STATUSES),
        )
        .group_by(InstallmentORM.client_id)
    )
    return {cid: due for cid, due in db.execute(stmt).all()}


def _clients_due_on(db: Session, client_ids: Sequence[int], day: date) -> set:
    if not client_ids:
        return set()
    stmt = select(InstallmentORM.client_id).where(
        InstallmentORM.client_id.in_(client_ids),
        InstallmentORM.status.in_(OPEN_STATUSES),
        InstallmentORM.due_date == day,
    )
    return set(db.execute(stmt).scalars().all())


def _created_ts(value: Optional[datetime]) -> float:
    return value.timestamp() if value is not None else 0.0


def collection_sort_key(item: ClientListing) -> Tuple:
    # 1) cobrança hoje; 2) próxima cobrança mais cedo; 3) sem parcela aberta, cadastro mais recente
    if item.due_today:
        return (0, 0, 0.0, 0)
    if item.next_due_date is not None:
        return (1, item.next_due_date.toordinal(), 0.0, 0)
    return (2, 0, -_created_ts(item.client.created_at), -(item.client.id or 0))


def sort_clients_for_collection(items: Iterable[ClientListing]) -> List[ClientListing]:
    return sorted(items, key=collection_sort_key)


def list_clients_for_collection(
    db: Session,
    *,
    today: date,
    q: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[ClientListing]:
    stmt = select(ClientORM).order_by(ClientORM.created_at.desc(), ClientORM.id.desc())

    if q:
        qn = q.strip()
        q_phone = normalize_phone(qn)
        stmt = stmt.where(
            or_(
                ClientORM.name.ilike(f"%{qn}%"),
                ClientORM.phone.ilike(f"%{q_phone}%"),
                ClientORM.address.ilike(f"%{qn}%"),
            )
        )

    clients = db.execute(stmt).scalars().all()
    ids = [c.id for c in clients]
    next_due = _next_due_by_client(db, ids)
    due_today = _clients_due_on(db, ids, today)

    listing = [
        ClientListing(
            client=c,
            next_due_date=next_due.get(c.id),
            due_today=c.id in due_today,
        )
        for c in clients
    ]
    ordered = sort_clients_for_collection(listing)
    return ordered[offset:offset + limit]
