from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from models.budget import Budget
from models.category import Category
from models.enums import CategoryGroup, TransactionType
from models.transaction import Transaction
from services.category_service import find_category_by_name, get_category
from services.errors import RecordNotFound
from utils.common_helpers import month_end, parse_month_key

logger = logging.getLogger(__name__)


def _spent(db: Session, user_id: int, category: Category, month: str) -> float:
    """Expenses booked against the category in the month, by link or by name."""
    start = parse_month_key(month)
    end = month_end(start)
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0.0))
        .filter(
            Transaction.user_id == user_id,
            Transaction.type == TransactionType.EXPENSE.value,
            Transaction.date >= start,
            Transaction.date <= end,
            or_(
                Transaction.category_id == category.id,
                and_(Transaction.category_id.is_(None), Transaction.category == category.name),
            ),
        )
        .scalar()
    )
    return float(total or 0.0)


def budget_progress(db: Session, budget: Budget) -> Dict[str, Any]:
    spent = _spent(db, budget.user_id, budget.category, budget.month)
    return {
        "id": budget.id,
        "category_id": budget.category_id,
        "category": budget.category.name,
        "amount": budget.amount,
        "month": budget.month,
        "spent": spent,
        "remaining": budget.amount - spent,
        "percent_used": round(spent / budget.amount * 100.0, 2) if budget.amount > 0 else 0.0,
        "created_at": budget.created_at,
        "updated_at": budget.updated_at,
    }


def list_budgets(db: Session, user_id: int, month: Optional[str] = None) -> Tuple[str, List[Dict[str, Any]]]:
    month = month or date.today().strftime("%Y-%m")
    parse_month_key(month)
    budgets = (
        db.query(Budget)
        .options(joinedload(Budget.category))
        .filter(Budget.user_id == user_id, Budget.month == month)
        .order_by(Budget.id.asc())
        .all()
    )
    return month, [budget_progress(db, b) for b in budgets]


def get_budget(db: Session, user_id: int, budget_id: int) -> Budget:
    budget = (
        db.query(Budget)
        .options(joinedload(Budget.category))
        .filter(Budget.user_id == user_id, Budget.id == budget_id)
        .first()
    )
    if not budget:
        raise RecordNotFound("Budget not found")
    return budget


def _find_budget(db: Session, user_id: int, category_id: int, month: str) -> Optional[Budget]:
    return (
        db.query(Budget)
        .filter(Budget.user_id == user_id, Budget.category_id == category_id, Budget.month == month)
        .first()
    )


def _set_amount(db: Session, budget: Budget, amount: float) -> Budget:
    budget.amount = amount
    db.commit()
    db.refresh(budget)
    return budget


def upsert_budget(
    db: Session,
    user_id: int,
    *,
    amount: float,
    month: str,
    category_name: Optional[str] = None,
    category_id: Optional[int] = None,
) -> Tuple[Budget, bool]:
    """
    Set the budget for (category, month). Returns (budget, created); an
    existing budget for the same pair is updated in place, including one
    inserted concurrently between our lookup and our insert.
    """
    if category_id is not None:
        category = get_category(db, user_id, category_id)
    else:
        # prefer the expense category when the name exists in several groups
        category = (
            find_category_by_name(db, user_id, category_name or "", CategoryGroup.EXPENSE)
            or find_category_by_name(db, user_id, category_name or "")
        )
        if not category:
            raise RecordNotFound("Category not found")
    category_pk = category.id

    existing = _find_budget(db, user_id, category_pk, month)
    if existing:
        return _set_amount(db, existing, amount), False

    budget = Budget(user_id=user_id, category_id=category_pk, amount=amount, month=month)
    db.add(budget)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_budget(db, user_id, category_pk, month)
        if not existing:
            raise
        logger.info("budget_upsert_race user_id=%s category_id=%s month=%s", user_id, category_pk, month)
        return _set_amount(db, existing, amount), False
    db.refresh(budget)
    return budget, True


def update_budget(db: Session, user_id: int, budget_id: int, *, amount: float) -> Budget:
    return _set_amount(db, get_budget(db, user_id, budget_id), amount)


def delete_budget(db: Session, user_id: int, budget_id: int) -> None:
    budget = get_budget(db, user_id, budget_id)
    db.delete(budget)
    db.commit()
