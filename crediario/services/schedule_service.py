from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from crediario.config import settings
from crediario.infra.models import PaymentType
from crediario.services.errors import ScheduleError
from crediario.services.money import Number, parse_money, quantize_money

# 10 anos de parcelas semanais
MAX_INSTALLMENTS = 520


@dataclass(frozen=True)
class PlannedInstallment:
    number: int
    amount: Decimal
    due_date: date


@dataclass(frozen=True)
class SchedulePreview:
    count: int
    installment_amount: Decimal
    installments: List[PlannedInstallment]


def nominal_installment(payment_type: PaymentType) -> Decimal:
    """Valor nominal de uma parcela (R$ 50 semanal, R$ 100 quinzenal, R$ 150 mensal)."""
    sizes = {
        PaymentType.WEEKLY: settings.WEEKLY_INSTALLMENT,
        PaymentType.BIWEEKLY: settings.BIWEEKLY_INSTALLMENT,
        PaymentType.MONTHLY: settings.MONTHLY_INSTALLMENT,
    }
    return Decimal(sizes[payment_type])


def due_date_for(start: date, payment_type: PaymentType, index: int) -> date:
    if payment_type == PaymentType.WEEKLY:
        return start + timedelta(days=7 * index)
    if payment_type == PaymentType.BIWEEKLY:
        return start + timedelta(days=15 * index)
    # mensal: sempre a partir da data inicial (31/01 -> 28/02 -> 31/03)
    return start + relativedelta(months=index)


def _validate(total: Optional[Number], payment_type: Optional[PaymentType]) -> Decimal:
    if payment_type is None:
        raise ScheduleError("Informe a forma de pagamento.")
    if total is None:
        raise ScheduleError("Informe o valor total.")
    value = parse_money(total)
    if value is None:
        raise ScheduleError("Valor total inválido.")
    if value <= 0:
        raise ScheduleError("O valor total deve ser maior que zero.")
    return value


def _count(value: Decimal, payment_type: PaymentType) -> int:
    count = math.ceil(value / nominal_installment(payment_type))
    if count > MAX_INSTALLMENTS:
        raise ScheduleError(
            f"Valor total gera {count} parcelas; o máximo é {MAX_INSTALLMENTS}."
        )
    return count


def installment_count(total: Number, payment_type: PaymentType) -> int:
    return _count(_validate(total, payment_type), payment_type)


def generate_schedule(
    total: Optional[Number],
    payment_type: Optional[PaymentType],
    start: date,
) -> List[PlannedInstallment]:
    value = _validate(total, payment_type)
    count = _count(value, payment_type)

    # resto redistribuído em todas as parcelas; a soma arredondada pode ficar alguns centavos fora
    amount = quantize_money(value / Decimal(count))

    return [
        PlannedInstallment(
            number=i + 1,
            amount=amount,
            due_date=due_date_for(start, payment_type, i),
        )
        for i in range(count)
    ]


def preview_schedule(
    total: Optional[Number],
    payment_type: Optional[PaymentType],
    start: date,
) -> SchedulePreview:
    planned = generate_schedule(total, payment_type, start)
    return SchedulePreview(
        count=len(planned),
        installment_amount=planned[0].amount,
        installments=planned,
    )
