from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import date

class InstallmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    client_id: int
    number: int
    split_index: int
    parent_id: Optional[int] = None
    due_date: date
    amount: Decimal
    status: str
    payment_date: Optional[date] = None

class InstallmentPay(BaseModel):
    # validação de faixa (> 0 e <= saldo) fica no service, com a mensagem pro usuário
    amount: Decimal
    new_due_date: Optional[date] = None

class PaymentOut(BaseModel):
    kind: str  # full | partial
    paid_amount: Decimal
    client_paid_amount: Decimal
    installment: InstallmentOut
    remainder: Optional[InstallmentOut] = None

class MarkOverdueOut(BaseModel):
    updated: int
