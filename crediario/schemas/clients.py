from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crediario.infra.models import PaymentType
from crediario.schemas.installments import InstallmentOut
from crediario.services.money import MAX_MONEY

# aceita o nome antigo em português do app (semanal/quinzenal/mensal)
PAYMENT_TYPE_ALIASES = {
    "SEMANAL": PaymentType.WEEKLY,
    "QUINZENAL": PaymentType.BIWEEKLY,
    "MENSAL": PaymentType.MONTHLY,
}


def parse_payment_type(v):
    if isinstance(v, str):
        key = v.strip().upper()
        return PAYMENT_TYPE_ALIASES.get(key, key)
    return v


class ClientCreate(BaseModel):
    name: str = Field(min_length=2, max_length=140)
    phone: str = Field(min_length=8, max_length=20)
    address: str = Field(min_length=3, max_length=255)
    total_amount: Decimal = Field(gt=0, le=MAX_MONEY)
    payment_type: PaymentType
    first_payment_date: date
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("payment_type", mode="before")
    @classmethod
    def normalize_payment_type(cls, v):
        return parse_payment_type(v)


class SchedulePreviewIn(BaseModel):
    total_amount: Decimal = Field(gt=0, le=MAX_MONEY)
    payment_type: PaymentType
    first_payment_date: date

    @field_validator("payment_type", mode="before")
    @classmethod
    def normalize_payment_type(cls, v):
        return parse_payment_type(v)


class PlannedInstallmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    number: int
    amount: Decimal
    due_date: date


class SchedulePreviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    count: int
    installment_amount: Decimal
    installments: List[PlannedInstallmentOut]


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=140)
    phone: Optional[str] = Field(default=None, min_length=8, max_length=20)
    address: Optional[str] = Field(default=None, min_length=3, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    address: str
    total_amount: Decimal
    paid_amount: Decimal
    payment_type: str
    first_payment_date: date
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime


class ClientListItem(ClientOut):
    next_due_date: Optional[date] = None
    due_today: bool = False


class ClientDetailOut(ClientOut):
    remaining_amount: Decimal
    installments: List[InstallmentOut] = []
