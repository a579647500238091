# crediario/worker.py
from __future__ import annotations

import logging
import os
import time
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from dotenv import load_dotenv
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload

from crediario.config import settings
from crediario.infra.db import SessionLocal
from crediario.infra.models import InstallmentORM, InstallmentStatus, WppSendStatus
from crediario.integrations.uazapi import UazapiError, is_configured, send_whatsapp_text
from crediario.services.money import format_brl
from crediario.services.overdue_service import mark_overdue_installments

logger = logging.getLogger(__name__)

Sender = Callable[..., dict]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today_local_date() -> date:
    # servidor em UTC e cobrança em outro fuso: ajuste aqui
    return datetime.now().date()


def compute_backoff_seconds(tries: int) -> int:
    if tries <= 0:
        return 60
    if tries == 1:
        return 5 * 60
    if tries == 2:
        return 15 * 60
    if tries == 3:
        return 60 * 60
    return 6 * 60 * 60


def _aware(dt: datetime) -> datetime:
    # sqlite devolve datetime sem fuso
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def can_try(status: Optional[WppSendStatus], next_retry_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    # já enviado ou enviando: não tenta de novo
    if status in (WppSendStatus.SENT, WppSendStatus.SENDING):
        return False
    if next_retry_at is None:
        return True
    return _aware(next_retry_at) <= (now or now_utc())


def mark_failed(inst: InstallmentORM, err: str, now: Optional[datetime] = None) -> None:
    tries = int(inst.wa_today_tries or 0) + 1
    inst.wa_today_tries = tries
    inst.wa_today_status = WppSendStatus.FAILED
    inst.wa_today_last_error = err[:500]
    inst.wa_today_next_retry_at = (now or now_utc()) + timedelta(seconds=compute_backoff_seconds(tries))


def reminder_message(inst: InstallmentORM) -> str:
    client = inst.client
    first_name = (client.name or "").split(" ")[0] or "cliente"
    due_str = inst.due_date.strftime("%d/%m/%Y")
    return (
        f"Olá, {first_name}! 👋\n"
        f"📅 Sua parcela nº {inst.number} *vence hoje* ({due_str}).\n"
        f"💰 Valor: {format_brl(inst.amount)}\n"
        "Passaremos aí para receber. Obrigado!"
    )


def process_due_today(
    db: Session,
    *,
    today: Optional[date] = None,
    sender: Sender = send_whatsapp_text,
) -> int:
    """
    Lembrete "vence hoje" para o cliente de cada parcela PENDING do dia.
    Marca SENDING antes de enviar e commita cada linha, assim um
    erro no meio do lote não reenvia o que já saiu.
    """
    today = today or today_local_date()
    now = now_utc()

    stmt = (
        select(InstallmentORM)
        .options(selectinload(InstallmentORM.client))
        .where(
            and_(
                InstallmentORM.status == InstallmentStatus.PENDING,
                InstallmentORM.due_date == today,
                InstallmentORM.wa_today_status != WppSendStatus.SENT,
                or_(
                    InstallmentORM.wa_today_next_retry_at.is_(None),
                    InstallmentORM.wa_today_next_retry_at <= now,
                ),
            )
        )
        .order_by(InstallmentORM.client_id.asc(), InstallmentORM.id.asc())
        .limit(200)
    )

    rows = db.execute(stmt).scalars().all()
    sent = 0

    for inst in rows:
        if not can_try(inst.wa_today_status, inst.wa_today_next_retry_at, now):
            continue

        inst.wa_today_status = WppSendStatus.SENDING
        db.commit()

        try:
            sender(to=inst.client.phone, body=reminder_message(inst))
        except UazapiError as e:
            mark_failed(inst, str(e), now)
            db.commit()
            logger.warning(
                "lembrete falhou installment_id=%s tentativa=%s: %s",
                inst.id, inst.wa_today_tries, e,
            )
            continue
        except Exception as e:
            mark_failed(inst, f"{e.__class__.__name__}: {e}", now)
            db.commit()
            logger.exception("lembrete erro inesperado installment_id=%s", inst.id)
            continue

        inst.wa_today_status = WppSendStatus.SENT
        inst.wa_today_sent_at = now_utc()
        inst.wa_today_last_error = None
        inst.wa_today_next_retry_at = None
        db.commit()
        sent += 1
        logger.info("lembrete enviado installment_id=%s client_id=%s", inst.id, inst.client_id)

    return sent


def run_once(db: Session, *, reminders_enabled: bool) -> tuple[int, int]:
    # cada bloco isolado: erro em um não desfaz o outro
    overdue = sent = 0

    try:
        overdue = mark_overdue_installments(db, today=today_local_date())
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("erro marcando parcelas em atraso")

    if reminders_enabled:
        try:
            sent = process_due_today(db)
        except Exception:
            db.rollback()
            logger.exception("erro enviando lembretes do dia")

    return overdue, sent


def run_loop() -> None:
    interval = int(os.getenv("WORKER_INTERVAL_SECONDS", "60"))
    reminders_enabled = is_configured()

    if not reminders_enabled:
        logger.warning("UAZAPI_TOKEN não configurado; lembretes desativados, só marcação de atraso.")

    logger.info("worker iniciado interval=%ss lembretes=%s", interval, reminders_enabled)

    while True:
        started = time.time()

        with SessionLocal() as db:
            overdue, sent = run_once(db, reminders_enabled=reminders_enabled)

        if overdue or sent:
            logger.info("worker: atrasadas=%s lembretes=%s", overdue, sent)

        elapsed = time.time() - started
        time.sleep(max(1, interval - int(elapsed)))


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        run_loop()
    except KeyboardInterrupt:
        logger.info("worker parado (Ctrl+C)")
