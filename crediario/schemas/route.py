from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class RouteClientOut(BaseModel):
    id: int
    name: str
    phone: str
    address: str
    total_amount: Decimal
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    whatsapp_url: str
    maps_url: str


class OptimizedRouteOut(BaseModel):
    stops: List[RouteClientOut]
    url: Optional[str] = None
