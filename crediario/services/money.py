from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")
# maior valor que cabe em Numeric(12,2)
MAX_MONEY = Decimal("9999999999.99")

Number = Union[Decimal, int, float, str]


def to_decimal(v: Number) -> Decimal:
    # float passa por str pra não carregar lixo binário (0.1 -> 0.1000000000000000055...)
    if isinstance(v, float):
        return Decimal(str(v))
    return Decimal(v)


def quantize_money(v: Number) -> Decimal:
    return to_decimal(v).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(v: Number) -> Optional[Decimal]:
    """Valor em centavos, ou None quando não é dinheiro válido (NaN, infinito, fora da coluna)."""
    try:
        value = quantize_money(v)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not value.is_finite() or abs(value) > MAX_MONEY:
        return None
    return value


def format_brl(value) -> str:
    if value is None:
        return "R$0,00"
    value = quantize_money(value)
    s = f"{value:,.2f}"
    s = s.replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R${s}"
