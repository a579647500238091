from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from crediario.infra.models import ExpenseCategory
from crediario.services.money import MAX_MONEY

CATEGORY_LABELS = {
    ExpenseCategory.GASOLINA: "Gasolina",
    ExpenseCategory.ALIMENTACAO: "Alimentação",
    ExpenseCategory.TRANSPORTE: "Transporte",
    ExpenseCategory.MANUTENCAO: "Manutenção",
    ExpenseCategory.ESCRITORIO: "Escritório",
    ExpenseCategory.MARKETING: "Marketing",
    ExpenseCategory.OUTROS: "Outros",
}


def _lower(v):
    if isinstance(v, str):
        return v.strip().lower()
    return v


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=2, max_length=200)
    amount: Decimal = Field(gt=0, le=MAX_MONEY)
    category: ExpenseCategory
    expense_date: date

    @field_validator("category", mode="before")
    @classmethod
    def normalize(cls, v):
        return _lower(v)


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=2, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0, le=MAX_MONEY)
    category: Optional[ExpenseCategory] = None
    expense_date: Optional[date] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize(cls, v):
        return _lower(v)


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Decimal
    category: str
    expense_date: date

    created_at: datetime
    updated_at: datetime


class CategoryOut(BaseModel):
    value: str
    label: str


class CategoryTotalOut(CategoryOut):
    total: Decimal
