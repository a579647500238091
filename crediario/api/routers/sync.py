from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.infra.models import UserORM
from crediario.schemas.sync import SyncIn, SyncItemOut, SyncOut
from crediario.services.sync_service import APPLIED, DUPLICATE, REJECTED, apply_sync_batch

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("", response_model=SyncOut)
def sync(
    payload: SyncIn,
    db: Session = DBSession,
    user: UserORM = Depends(get_current_user),
):
    results = apply_sync_batch(db, payload.items, user_id=user.id)
    return SyncOut(
        applied=sum(1 for r in results if r.status == APPLIED),
        duplicates=sum(1 for r in results if r.status == DUPLICATE),
        rejected=sum(1 for r in results if r.status == REJECTED),
        items=[SyncItemOut.model_validate(r) for r in results],
    )
