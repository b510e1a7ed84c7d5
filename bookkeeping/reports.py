"""Read-only aggregation reports over incomes and expenses."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.orm import Session

from . import models, schemas
from .models import as_naive_utc, utcnow

EPOCH = datetime(1970, 1, 1)


def date_conditions(
    column: Any,
    date_from: Optional[datetime],
    date_to: Optional[datetime],
) -> List[ColumnElement[bool]]:
    """Inclusive bounds on ``column``; a missing bound adds no condition."""
    conditions: List[ColumnElement[bool]] = []
    if date_from is not None:
        conditions.append(column >= as_naive_utc(date_from))
    if date_to is not None:
        conditions.append(column <= as_naive_utc(date_to))
    return conditions


def _total(session: Session, model: Any, conditions: List[ColumnElement[bool]]) -> float:
    stmt = select(func.coalesce(func.sum(model.amount), 0)).where(*conditions)
    return float(session.scalar(stmt) or 0)


def income_vs_expense(
    session: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> schemas.IncomeVsExpenseRead:
    """Sum of income and expense amounts inside ``[date_from, date_to]``.

    Without ``date_from`` the window starts at the epoch; without ``date_to``
    it ends at the current instant.
    """
    lower = date_from if date_from is not None else EPOCH
    upper = date_to if date_to is not None else utcnow()
    total_income = _total(session, models.Income, date_conditions(models.Income.date, lower, upper))
    total_expense = _total(session, models.Expense, date_conditions(models.Expense.date, lower, upper))
    return schemas.IncomeVsExpenseRead(total_income=total_income, total_expense=total_expense)


def income_analysis(
    session: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    client: Optional[str] = None,
    payment_type: Optional[str] = None,
) -> List[schemas.IncomeAnalysisRow]:
    conditions = date_conditions(models.Income.date, date_from, date_to)
    if client:
        conditions.append(models.Income.client == client)
    if payment_type:
        conditions.append(models.Income.payment_method == payment_type)

    stmt = (
        select(
            models.Income.client,
            models.Income.payment_method,
            func.coalesce(func.sum(models.Income.amount), 0).label("total"),
            func.count(models.Income.id).label("count"),
        )
        .where(*conditions)
        .group_by(models.Income.client, models.Income.payment_method)
    )
    return [
        schemas.IncomeAnalysisRow(
            key=schemas.IncomeAnalysisKey(client=row.client, payment_type=row.payment_method),
            total=float(row.total),
            count=row.count,
        )
        for row in session.execute(stmt)
    ]


def expense_analysis(
    session: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    category: Optional[str] = None,
    payment_type: Optional[str] = None,
) -> List[schemas.ExpenseAnalysisRow]:
    conditions = date_conditions(models.Expense.date, date_from, date_to)
    if category:
        conditions.append(models.Expense.category == category)
    if payment_type:
        conditions.append(models.Expense.payment_method == payment_type)

    stmt = (
        select(
            models.Expense.category,
            models.Expense.payment_method,
            func.coalesce(func.sum(models.Expense.amount), 0).label("total"),
            func.count(models.Expense.id).label("count"),
        )
        .where(*conditions)
        .group_by(models.Expense.category, models.Expense.payment_method)
    )
    return [
        schemas.ExpenseAnalysisRow(
            key=schemas.ExpenseAnalysisKey(category=row.category, payment_type=row.payment_method),
            total=float(row.total),
            count=row.count,
        )
        for row in session.execute(stmt)
    ]
