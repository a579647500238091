from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict


class DailyReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    visits: int
    successful_visits: int
    collected: Decimal
    distance_km: float
    efficiency: float


class ProductivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    date_from: date
    date_to: date
    total_visits: int
    successful_visits: int
    total_collected: Decimal
    average_per_visit: Decimal
    distance_km: float
    time_spent_minutes: int
    conversion_rate: float
    goal: Decimal
    goal_progress: float
    daily: List[DailyReportOut]
