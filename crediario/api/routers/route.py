from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.infra.models import ClientORM
from crediario.schemas.route import OptimizedRouteOut, RouteClientOut
from crediario.services.geo import (
    SORT_OPTIONS,
    ClientDistance,
    clients_by_distance,
    maps_link,
    optimized_route,
    whatsapp_link,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


def _row_out(r: ClientDistance) -> RouteClientOut:
    c = r.client
    return RouteClientOut(
        id=c.id,
        name=c.name,
        phone=c.phone,
        address=c.address,
        total_amount=c.total_amount,
        latitude=c.latitude,
        longitude=c.longitude,
        distance_km=(round(r.distance_km, 2) if r.distance_km is not None else None),
        whatsapp_url=whatsapp_link(c.phone),
        maps_url=maps_link(c.address, c.latitude, c.longitude),
    )


@router.get("/clients", response_model=list[RouteClientOut])
def clients_near(
    db: Session = DBSession,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    sort_by: str = Query(default="distance", description="|".join(SORT_OPTIONS)),
):
    clients = db.execute(select(ClientORM)).scalars().all()
    try:
        rows = clients_by_distance(clients, lat, lng, sort_by)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_row_out(r) for r in rows]


@router.get("/optimized", response_model=OptimizedRouteOut)
def optimized(
    db: Session = DBSession,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    clients = db.execute(
        select(ClientORM).where(ClientORM.latitude.is_not(None), ClientORM.longitude.is_not(None))
    ).scalars().all()
    route = optimized_route(clients, lat, lng)
    return OptimizedRouteOut(
        stops=[_row_out(r) for r in route.stops],
        url=route.url or None,
    )
