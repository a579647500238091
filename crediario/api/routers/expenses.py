from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crediario.api.auth_deps import get_current_user
from crediario.api.deps import DBSession
from crediario.infra.models import ExpenseCategory, ExpenseORM
from crediario.schemas.expenses import (
    CATEGORY_LABELS,
    CategoryOut,
    CategoryTotalOut,
    ExpenseCreate,
    ExpenseOut,
    ExpenseUpdate,
)
from crediario.services.money import quantize_money

router = APIRouter(dependencies=[Depends(get_current_user)])


def _get_or_404(db: Session, expense_id: int) -> ExpenseORM:
    row = db.get(ExpenseORM, expense_id)
    if not row:
        raise HTTPException(status_code=404, detail="Despesa não encontrada.")
    return row


@router.get("/categories", response_model=list[CategoryOut])
def categories():
    return [CategoryOut(value=c.value, label=CATEGORY_LABELS[c]) for c in ExpenseCategory]


@router.get("/summary/by-category", response_model=list[CategoryTotalOut])
def totals_by_category(
    db: Session = DBSession,
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
):
    stmt = select(ExpenseORM.category, func.coalesce(func.sum(ExpenseORM.amount), 0)).group_by(
        ExpenseORM.category
    )
    if date_from is not None:
        stmt = stmt.where(ExpenseORM.expense_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(ExpenseORM.expense_date <= date_to)

    totals = {cat: quantize_money(total) for cat, total in db.execute(stmt).all()}

    # só categorias com gasto, maior primeiro
    out = [
        CategoryTotalOut(value=c.value, label=CATEGORY_LABELS[c], total=totals[c])
        for c in ExpenseCategory
        if totals.get(c, Decimal("0")) > 0
    ]
    return sorted(out, key=lambda r: r.total, reverse=True)


@router.post("", response_model=ExpenseOut, status_code=201)
def create_expense(payload: ExpenseCreate, db: Session = DBSession):
    row = ExpenseORM(
        description=payload.description.strip(),
        amount=payload.amount,
        category=payload.category,
        expense_date=payload.expense_date,
    )
    db.add(row)
    db.flush()
    db.refresh(row)
    return row


@router.get("", response_model=list[ExpenseOut])
def list_expenses(
    db: Session = DBSession,
    category: Optional[str] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(ExpenseORM).order_by(ExpenseORM.expense_date.desc(), ExpenseORM.id.desc())

    if category:
        try:
            cat = ExpenseCategory(category.strip().lower())
        except ValueError:
            raise HTTPException(status_code=400, detail="Categoria inválida.")
        stmt = stmt.where(ExpenseORM.category == cat)
    if date_from is not None:
        stmt = stmt.where(ExpenseORM.expense_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(ExpenseORM.expense_date <= date_to)

    stmt = stmt.limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, db: Session = DBSession):
    return _get_or_404(db, expense_id)


@router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(expense_id: int, payload: ExpenseUpdate, db: Session = DBSession):
    row = _get_or_404(db, expense_id)

    if payload.description is not None:
        row.description = payload.description.strip()
    if payload.amount is not None:
        row.amount = payload.amount
    if payload.category is not None:
        row.category = payload.category
    if payload.expense_date is not None:
        row.expense_date = payload.expense_date

    db.flush()
    db.refresh(row)
    return row


@router.delete("/{expense_id}", status_code=204)
def delete_expense(expense_id: int, db: Session = DBSession):
    row = _get_or_404(db, expense_id)
    db.delete(row)
    db.flush()
    return Response(status_code=204)
