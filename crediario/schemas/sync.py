from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from crediario.services.money import MAX_MONEY


class SyncItem(BaseModel):
    # gerada no aparelho; reenvio com a mesma key não aplica de novo
    key: str = Field(min_length=1, max_length=120)
    type: Literal["client", "payment", "visit"]
    data: Dict[str, Any]
    timestamp: Optional[int] = None  # ms desde epoch, só informativo


class SyncIn(BaseModel):
    items: List[SyncItem] = Field(max_length=500)


class SyncPaymentData(BaseModel):
    installment_id: int
    amount: Decimal = Field(gt=0, le=MAX_MONEY)
    new_due_date: Optional[date] = None
    paid_on: Optional[date] = None


class SyncItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    status: str  # applied | duplicate | rejected
    result_id: Optional[int] = None
    error: Optional[str] = None


class SyncOut(BaseModel):
    applied: int
    duplicates: int
    rejected: int
    items: List[SyncItemOut]
