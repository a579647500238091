from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.api.errors import http_error
from crediario.api.routers.installments import payment_out
from crediario.infra.models import UserORM, VisitORM, VisitStatus
from crediario.infra.storage_s3 import (
    S3StorageError,
    delete_object_best_effort,
    presign_get_url,
    upload_visit_photo,
    validate_photo,
)
from crediario.schemas.visits import VisitCreatedOut, VisitOut, parse_visit_status
from crediario.services.errors import DomainError
from crediario.services.money import MAX_MONEY
from crediario.services.visit_service import list_visits, register_visit

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


def _visit_out(visit: VisitORM) -> VisitOut:
    """Troca a key da foto por URL presignada sem mexer no ORM."""
    out = VisitOut.model_validate(visit)
    if visit.photo_key:
        try:
            out.photo_url = presign_get_url(visit.photo_key, expires_seconds=3600)
        except S3StorageError as e:
            logger.warning("presign falhou visit_id=%s: %s", visit.id, e)
            out.photo_url = None
    return out


@router.post("", response_model=VisitCreatedOut, status_code=201)
async def create_visit(
    db: Session = DBSession,
    user: UserORM = Depends(get_current_user),

    client_id: int = Form(...),
    status: str = Form(..., description="VISITED|NOT_HOME|RESCHEDULED|PAID|PARTIAL"),
    notes: Optional[str] = Form(default=None, max_length=2000),
    amount_received: Optional[Decimal] = Form(default=None, le=MAX_MONEY),
    installment_id: Optional[int] = Form(default=None),
    new_due_date: Optional[date] = Form(default=None),
    latitude: Optional[float] = Form(default=None, ge=-90, le=90),
    longitude: Optional[float] = Form(default=None, ge=-180, le=180),
    visited_at: Optional[datetime] = Form(default=None),

    photo: Optional[UploadFile] = File(default=None),
):
    try:
        st = VisitStatus(parse_visit_status(status))
    except ValueError:
        raise HTTPException(status_code=400, detail="Status de visita inválido.")

    photo_key: Optional[str] = None
    if photo is not None and photo.filename:
        data = await photo.read()
        try:
            validate_photo(data, photo.content_type)
        except S3StorageError as e:
            raise HTTPException(status_code=400, detail=str(e))
        try:
            photo_key = upload_visit_photo(data=data, content_type=photo.content_type, client_id=client_id)
        except S3StorageError as e:
            logger.error("upload da foto falhou client_id=%s: %s", client_id, e)
            raise HTTPException(
                status_code=502,
                detail="Não foi possível salvar a foto. Tente novamente ou envie a visita sem foto.",
            )

    try:
        result = register_visit(
            db,
            client_id=client_id,
            status=st,
            user_id=user.id,
            notes=notes,
            amount_received=amount_received,
            installment_id=installment_id,
            new_due_date=new_due_date,
            latitude=latitude,
            longitude=longitude,
            photo_key=photo_key,
            visited_at=visited_at,
        )
    except DomainError as e:
        delete_object_best_effort(photo_key)
        raise http_error(e)
    except Exception:
        db.rollback()
        delete_object_best_effort(photo_key)
        logger.exception("erro ao registrar visita client_id=%s", client_id)
        raise HTTPException(status_code=500, detail="Erro ao registrar visita.")

    return VisitCreatedOut(
        visit=_visit_out(result.visit),
        payment=(payment_out(result.payment) if result.payment is not None else None),
    )


@router.get("", response_model=list[VisitOut])
def list_visits_endpoint(
    db: Session = DBSession,
    client_id: Optional[int] = Query(default=None),
    user_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    visits = list_visits(
        db,
        client_id=client_id,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return [_visit_out(v) for v in visits]
