from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.api.errors import http_error
from crediario.schemas.reports import ProductivityOut
from crediario.services.errors import DomainError
from crediario.services.productivity_service import productivity_report

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/productivity", response_model=ProductivityOut)
def productivity(
    db: Session = DBSession,
    period: str = Query(default="today", description="today|week|month"),
    user_id: Optional[int] = Query(default=None),
):
    try:
        return productivity_report(
            db,
            period=period.strip().lower(),
            today=datetime.now().date(),
            user_id=user_id,
        )
    except DomainError as e:
        raise http_error(e)
