# crediario/integrations/uazapi.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

BR_DDI = "55"


class UazapiError(RuntimeError):
    pass


@dataclass(frozen=True)
class UazapiConfig:
    base_url: str
    token: str
    timeout: int = 30


def is_configured() -> bool:
    return bool((os.getenv("UAZAPI_TOKEN") or "").strip())


def _config_from_env() -> UazapiConfig:
    token = (os.getenv("UAZAPI_TOKEN") or "").strip()
    if not token:
        raise UazapiError("UAZAPI_TOKEN não configurado.")
    return UazapiConfig(
        base_url=(os.getenv("UAZAPI_BASE_URL") or "https://free.uazapi.com").rstrip("/"),
        token=token,
        timeout=int(os.getenv("UAZAPI_TIMEOUT_SECONDS", "30")),
    )


def to_whatsapp_number(phone: str) -> str:
    """
    Telefone do cadastro -> número no formato do WhatsApp.

    "(85) 98888-7777" -> "5585988887777". Zero de operadora/tronco na frente
    é descartado; número que já vem com 55 fica como está.
    """
    digits = "".join(ch for ch in (phone or "") if ch.isdigit()).lstrip("0")
    if len(digits) in (10, 11):
        return BR_DDI + digits
    return digits


def _message_id(data: dict) -> Optional[str]:
    for key in ("messageid", "messageId", "id"):
        if data.get(key):
            return str(data[key])
    return None


def send_whatsapp_text(*, to: str, body: str) -> dict:
    """POST /send/text com {"number", "text"}. Erro de rede ou HTTP >= 400 vira UazapiError."""
    cfg = _config_from_env()
    number = to_whatsapp_number(to)
    if len(number) < 12:
        raise UazapiError(f"Telefone inválido para WhatsApp: {to!r}")

    try:
        r = requests.post(
            f"{cfg.base_url}/send/text",
            json={"number": number, "text": body},
            headers={"Accept": "application/json", "token": cfg.token},
            timeout=cfg.timeout,
        )
    except requests.RequestException as e:
        raise UazapiError(f"Falha de rede no envio: {e}") from e

    if r.status_code >= 400:
        raise UazapiError(f"UAZAPI HTTP {r.status_code}: {r.text[:300]}")

    # 2xx já é mensagem entregue; corpo fora do padrão não derruba o envio
    try:
        data = r.json() if r.content else {}
    except ValueError:
        logger.warning("uazapi: resposta sem JSON number=%s body=%r", number, r.text[:200])
        data = {}
    if not isinstance(data, dict):
        data = {"response": data}
    logger.debug("whatsapp enviado number=%s message_id=%s", number, _message_id(data))
    return data
