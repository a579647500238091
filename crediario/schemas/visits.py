from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crediario.infra.models import VisitStatus
from crediario.schemas.installments import PaymentOut
from crediario.services.money import MAX_MONEY

# status do app antigo
VISIT_STATUS_ALIASES = {
    "VISITADO": VisitStatus.VISITED,
    "NAO_ESTAVA": VisitStatus.NOT_HOME,
    "REAGENDADO": VisitStatus.RESCHEDULED,
    "PAGO": VisitStatus.PAID,
    "PARCIAL": VisitStatus.PARTIAL,
}


def parse_visit_status(v):
    if isinstance(v, str):
        key = v.strip().upper()
        return VISIT_STATUS_ALIASES.get(key, key)
    return v


class VisitCreate(BaseModel):
    client_id: int
    status: VisitStatus
    notes: Optional[str] = Field(default=None, max_length=2000)
    amount_received: Optional[Decimal] = Field(default=None, le=MAX_MONEY)
    installment_id: Optional[int] = None
    new_due_date: Optional[date] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    visited_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return parse_visit_status(v)


class VisitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    user_id: Optional[int] = None
    installment_id: Optional[int] = None
    status: str
    notes: Optional[str] = None
    amount_received: Optional[Decimal] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photo_url: Optional[str] = None
    visited_at: datetime


class VisitCreatedOut(BaseModel):
    visit: VisitOut
    payment: Optional[PaymentOut] = None
