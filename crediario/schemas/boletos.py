from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from crediario.services.money import MAX_MONEY


class BoletoCreate(BaseModel):
    description: str = Field(min_length=2, max_length=200)
    amount: Decimal = Field(gt=0, le=MAX_MONEY)
    due_date: date


class BoletoUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=2, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0, le=MAX_MONEY)
    due_date: Optional[date] = None


class BoletoPay(BaseModel):
    payment_date: Optional[date] = None  # se None, usa hoje


class BoletoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Decimal
    due_date: date
    status: str
    payment_date: Optional[date] = None
    is_overdue: bool = False

    created_at: datetime
    updated_at: datetime
