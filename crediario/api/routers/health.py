# crediario/api/routers/health.py
from __future__ import annotations

import logging
import time
from typing import Any, Optional

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crediario.infra import storage_s3
from crediario.infra.db import engine
from crediario.integrations import uazapi

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_db() -> Optional[str]:
    """None quando o banco responde; senão a mensagem (sem URL/credenciais)."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health: banco indisponível: %s", e.__class__.__name__)
        return e.__class__.__name__
    return None


@router.head("/health", include_in_schema=False)
def health_head() -> Response:
    return Response(status_code=200 if _check_db() is None else 503)


@router.get("/health")
def health() -> Any:
    started = time.time()
    db_error = _check_db()

    payload: dict[str, Any] = {
        "ok": db_error is None,
        "db": {"ok": db_error is None, "error": db_error},
        # fotos de visita e lembretes são opcionais: só informa
        "integrations": {
            "photo_storage": storage_s3.is_configured(),
            "whatsapp_reminders": uazapi.is_configured(),
        },
        "elapsed_ms": int((time.time() - started) * 1000),
    }
    if db_error is not None:
        return JSONResponse(payload, status_code=503)
    return payload
