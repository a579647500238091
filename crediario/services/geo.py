from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional
from urllib.parse import quote

from crediario.config import settings
from crediario.infra.models import ClientORM
from crediario.integrations.uazapi import to_whatsapp_number

EARTH_RADIUS_KM = 6371.0
SORT_OPTIONS = ("distance", "name", "amount")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def whatsapp_link(phone: str) -> str:
    return f"https://wa.me/{to_whatsapp_number(phone)}"


def maps_link(address: str, lat: Optional[float] = None, lng: Optional[float] = None) -> str:
    if lat is not None and lng is not None:
        return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lng}"
    return f"https://www.google.com/maps/dir/?api=1&destination={quote(address or '')}"


@dataclass
class ClientDistance:
    client: ClientORM
    distance_km: Optional[float]


def with_distances(
    clients: Iterable[ClientORM],
    origin_lat: Optional[float],
    origin_lng: Optional[float],
) -> List[ClientDistance]:
    out: List[ClientDistance] = []
    for c in clients:
        dist = None
        if (
            origin_lat is not None and origin_lng is not None
            and c.latitude is not None and c.longitude is not None
        ):
            dist = haversine_km(origin_lat, origin_lng, c.latitude, c.longitude)
        out.append(ClientDistance(client=c, distance_km=dist))
    return out


def clients_by_distance(
    clients: Iterable[ClientORM],
    origin_lat: Optional[float],
    origin_lng: Optional[float],
    sort_by: str = "distance",
) -> List[ClientDistance]:
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"sort_by inválido ({'|'.join(SORT_OPTIONS)}).")

    rows = with_distances(clients, origin_lat, origin_lng)

    if sort_by == "name":
        return sorted(rows, key=lambda r: r.client.name.casefold())
    if sort_by == "amount":
        return sorted(rows, key=lambda r: Decimal(r.client.total_amount), reverse=True)
    # sem coordenada vai pro fim
    return sorted(rows, key=lambda r: (r.distance_km is None, r.distance_km or 0.0))


@dataclass
class OptimizedRoute:
    stops: List[ClientDistance]
    url: str


def optimized_route(
    clients: Iterable[ClientORM],
    origin_lat: float,
    origin_lng: float,
    *,
    radius_km: Optional[float] = None,
    max_waypoints: Optional[int] = None,
) -> OptimizedRoute:
    radius = settings.ROUTE_RADIUS_KM if radius_km is None else radius_km
    limit = settings.ROUTE_MAX_WAYPOINTS if max_waypoints is None else max_waypoints

    nearby = [
        r for r in clients_by_distance(clients, origin_lat, origin_lng, "distance")
        if r.distance_km is not None and r.distance_km <= radius
    ][:limit]

    if not nearby:
        return OptimizedRoute(stops=[], url="")

    # último ponto é o destino; os demais viram waypoints
    destination = nearby[-1].client
    waypoints = "|".join(f"{r.client.latitude},{r.client.longitude}" for r in nearby[:-1])
    url = (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={origin_lat},{origin_lng}"
        f"&destination={destination.latitude},{destination.longitude}"
    )
    if waypoints:
        url += f"&waypoints={quote(waypoints, safe=',')}"
    return OptimizedRoute(stops=nearby, url=url)
