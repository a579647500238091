from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.schemas.dashboard import DashboardOut
from crediario.services.dashboard_service import build_dashboard

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=DashboardOut)
def dashboard(db: Session = DBSession):
    return build_dashboard(db, today=datetime.now().date())
