from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.api.errors import http_error
from crediario.schemas.clients import (
    ClientCreate,
    ClientDetailOut,
    ClientListItem,
    ClientOut,
    ClientUpdate,
    SchedulePreviewIn,
    SchedulePreviewOut,
)
from crediario.schemas.installments import InstallmentOut
from crediario.services.client_service import (
    create_client_with_schedule,
    delete_client,
    get_client,
    list_clients_for_collection,
    normalize_phone,
)
from crediario.services.errors import DomainError
from crediario.services.money import quantize_money
from crediario.services.schedule_service import preview_schedule

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


def _detail(client) -> ClientDetailOut:
    base = ClientOut.model_validate(client).model_dump()
    return ClientDetailOut(
        **base,
        remaining_amount=quantize_money(
            Decimal(client.total_amount) - Decimal(client.paid_amount or 0)
        ),
        installments=[InstallmentOut.model_validate(i) for i in client.installments],
    )


@router.post("/preview-schedule", response_model=SchedulePreviewOut)
def preview(payload: SchedulePreviewIn):
    try:
        return preview_schedule(payload.total_amount, payload.payment_type, payload.first_payment_date)
    except DomainError as e:
        raise http_error(e)


@router.post("", response_model=ClientDetailOut, status_code=201)
def create_client(payload: ClientCreate, db: Session = DBSession):
    try:
        client = create_client_with_schedule(db, **payload.model_dump())
    except DomainError as e:
        raise http_error(e)
    db.refresh(client)
    return _detail(client)


@router.get("", response_model=list[ClientListItem])
def list_clients(
    db: Session = DBSession,
    q: Optional[str] = Query(default=None, description="Busca por nome/telefone/endereço"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    rows = list_clients_for_collection(
        db,
        today=datetime.now().date(),
        q=q,
        limit=limit,
        offset=offset,
    )
    return [
        ClientListItem(
            **ClientOut.model_validate(r.client).model_dump(),
            next_due_date=r.next_due_date,
            due_today=r.due_today,
        )
        for r in rows
    ]


@router.get("/{client_id}", response_model=ClientDetailOut)
def get_client_endpoint(client_id: int, db: Session = DBSession):
    try:
        client = get_client(db, client_id)
    except DomainError as e:
        raise http_error(e)
    return _detail(client)


@router.put("/{client_id}", response_model=ClientOut)
def update_client(client_id: int, payload: ClientUpdate, db: Session = DBSession):
    try:
        client = get_client(db, client_id)
    except DomainError as e:
        raise http_error(e)

    if payload.name is not None:
        client.name = payload.name.strip()

    if payload.phone is not None:
        client.phone = normalize_phone(payload.phone)

    if payload.address is not None:
        client.address = payload.address.strip()

    if payload.latitude is not None:
        client.latitude = payload.latitude

    if payload.longitude is not None:
        client.longitude = payload.longitude

    if (client.latitude is None) != (client.longitude is None):
        raise HTTPException(status_code=400, detail="Informe latitude e longitude juntas.")

    db.flush()
    db.refresh(client)
    return client


@router.delete("/{client_id}", status_code=204)
def delete_client_endpoint(client_id: int, db: Session = DBSession):
    try:
        delete_client(db, client_id)
    except DomainError as e:
        raise http_error(e)
    logger.info("cliente removido id=%s", client_id)
    return Response(status_code=204)
