from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from crediario.config import settings
from crediario.infra.models import VisitORM, VisitStatus
from crediario.services.errors import DomainValidationError
from crediario.services.geo import haversine_km
from crediario.services.money import quantize_money
from crediario.services.visit_service import list_visits

PERIOD_DAYS = {"today": 1, "week": 7, "month": 30}
MINUTES_PER_VISIT = 15
SUCCESS_STATUSES = (VisitStatus.PAID, VisitStatus.PARTIAL)


@dataclass
class DailyReport:
    date: date
    visits: int = 0
    successful_visits: int = 0
    collected: Decimal = Decimal("0.00")
    distance_km: float = 0.0
    efficiency: float = 0.0


@dataclass
class ProductivityReport:
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
    daily: List[DailyReport] = field(default_factory=list)


def period_range(period: str, today: date) -> Tuple[date, date]:
    days = PERIOD_DAYS.get(period)
    if days is None:
        raise DomainValidationError(f"period inválido ({'|'.join(PERIOD_DAYS)}).")
    return today - timedelta(days=days - 1), today


def goal_for(period: str) -> Decimal:
    goals = {
        "today": settings.DAILY_GOAL,
        "week": settings.WEEKLY_GOAL,
        "month": settings.MONTHLY_GOAL,
    }
    return Decimal(goals[period])


def _pct(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 1)


def _route_distance(visits: List[VisitORM]) -> float:
    points = [
        (v.latitude, v.longitude)
        for v in sorted(visits, key=lambda v: v.visited_at)
        if v.latitude is not None and v.longitude is not None
    ]
    total = 0.0
    for (lat1, lng1), (lat2, lng2) in zip(points, points[1:]):
        total += haversine_km(lat1, lng1, lat2, lng2)
    return round(total, 2)


def build_report(
    visits: Iterable[VisitORM],
    *,
    period: str,
    today: date,
) -> ProductivityReport:
    date_from, date_to = period_range(period, today)

    by_day: Dict[date, List[VisitORM]] = defaultdict(list)
    for v in visits:
        d = v.visited_at.date()
        if date_from <= d <= date_to:
            by_day[d].append(v)

    daily: List[DailyReport] = []
    d = date_from
    while d <= date_to:
        rows = by_day.get(d, [])
        ok = sum(1 for v in rows if v.status in SUCCESS_STATUSES)
        collected = sum((Decimal(v.amount_received or 0) for v in rows), Decimal("0"))
        daily.append(
            DailyReport(
                date=d,
                visits=len(rows),
                successful_visits=ok,
                collected=quantize_money(collected),
                distance_km=_route_distance(rows),
                efficiency=_pct(ok, len(rows)),
            )
        )
        d += timedelta(days=1)

    total_visits = sum(r.visits for r in daily)
    successful = sum(r.successful_visits for r in daily)
    total_collected = quantize_money(sum((r.collected for r in daily), Decimal("0")))
    goal = goal_for(period)

    return ProductivityReport(
        period=period,
        date_from=date_from,
        date_to=date_to,
        total_visits=total_visits,
        successful_visits=successful,
        total_collected=total_collected,
        average_per_visit=(
            quantize_money(total_collected / total_visits) if total_visits else Decimal("0.00")
        ),
        distance_km=round(sum(r.distance_km for r in daily), 2),
        time_spent_minutes=total_visits * MINUTES_PER_VISIT,
        conversion_rate=_pct(successful, total_visits),
        goal=goal,
        goal_progress=_pct(float(total_collected), float(goal)),
        daily=daily,
    )


def productivity_report(
    db: Session,
    *,
    period: str,
    today: date,
    user_id: Optional[int] = None,
) -> ProductivityReport:
    date_from, date_to = period_range(period, today)
    visits = list_visits(
        db,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        limit=10_000,
    )
    return build_report(visits, period=period, today=today)
