from __future__ import annotations

from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict


class TodayCollectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    installment_id: int
    client_id: int
    client_name: str
    phone: str
    address: str
    amount: Decimal
    whatsapp_url: str
    maps_url: str


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_clients: int
    total_due_today: Decimal
    total_overdue: Decimal
    total_received: Decimal
    collections_today: List[TodayCollectionOut]
