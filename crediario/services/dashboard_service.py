from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, selectinload

from crediario.infra.models import ClientORM, InstallmentORM, InstallmentStatus
from crediario.services.geo import maps_link, whatsapp_link
from crediario.services.money import quantize_money


@dataclass
class TodayCollection:
    installment_id: int
    client_id: int
    client_name: str
    phone: str
    address: str
    amount: Decimal
    whatsapp_url: str
    maps_url: str


@dataclass
class DashboardData:
    total_clients: int
    total_due_today: Decimal
    total_overdue: Decimal
    total_received: Decimal
    collections_today: List[TodayCollection] = field(default_factory=list)


def _sum(db: Session, *conditions) -> Decimal:
    total = db.scalar(select(func.coalesce(func.sum(InstallmentORM.amount), 0)).where(*conditions))
    return quantize_money(total or 0)


def build_dashboard(db: Session, *, today: date) -> DashboardData:
    total_clients = db.scalar(select(func.count(ClientORM.id))) or 0

    # atrasado = OVERDUE + PENDING vencida que o worker ainda não marcou
    overdue_cond = or_(
        InstallmentORM.status == InstallmentStatus.OVERDUE,
        and_(
            InstallmentORM.status == InstallmentStatus.PENDING,
            InstallmentORM.due_date < today,
        ),
    )

    stmt = (
        select(InstallmentORM)
        .options(selectinload(InstallmentORM.client))
        .where(
            InstallmentORM.due_date == today,
            InstallmentORM.status == InstallmentStatus.PENDING,
        )
        .order_by(InstallmentORM.client_id.asc(), InstallmentORM.number.asc())
    )
    rows = db.execute(stmt).scalars().all()

    collections = [
        TodayCollection(
            installment_id=inst.id,
            client_id=inst.client_id,
            client_name=inst.client.name,
            phone=inst.client.phone,
            address=inst.client.address,
            amount=quantize_money(inst.amount),
            whatsapp_url=whatsapp_link(inst.client.phone),
            maps_url=maps_link(inst.client.address, inst.client.latitude, inst.client.longitude),
        )
        for inst in rows
    ]

    return DashboardData(
        total_clients=int(total_clients),
        total_due_today=quantize_money(sum((c.amount for c in collections), Decimal("0"))),
        total_overdue=_sum(db, overdue_cond),
        total_received=_sum(db, InstallmentORM.status == InstallmentStatus.PAID),
        collections_today=collections,
    )
