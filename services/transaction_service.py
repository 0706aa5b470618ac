from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Tuple

from sqlalchemy.orm import Session

from models.enums import TransactionStatus, TransactionType
from models.transaction import Transaction
from schemas.transaction import TransactionIn
from services.category_service import get_category
from services.errors import RecordNotFound

SortField = Literal["date", "amount", "category", "type"]

_SORT_COLUMNS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "category": Transaction.category,
    "type": Transaction.type,
}


def list_transactions(
    db: Session,
    user_id: int,
    *,
    type_: Optional[TransactionType] = None,
    category: Optional[str] = None,
    category_id: Optional[int] = None,
    status: Optional[TransactionStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    description: Optional[str] = None,
    sort_by: SortField = "date",
    order: Literal["asc", "desc"] = "desc",
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Transaction], Dict[str, int]]:
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    if type_ is not None:
        query = query.filter(Transaction.type == type_.value)
    if category:
        query = query.filter(Transaction.category == category)
    if category_id is not None:
        query = query.filter(Transaction.category_id == category_id)
    if status is not None:
        query = query.filter(Transaction.status == status.value)
    if start_date is not None:
        query = query.filter(Transaction.date >= start_date)
    if end_date is not None:
        query = query.filter(Transaction.date <= end_date)
    if min_amount is not None:
        query = query.filter(Transaction.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Transaction.amount <= max_amount)
    if description:
        pattern = description.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = query.filter(Transaction.notes.ilike(f"%{pattern}%", escape="\\"))

    total = query.count()

    column = _SORT_COLUMNS.get(sort_by, Transaction.date)
    ordering = column.asc() if order == "asc" else column.desc()
    tie = Transaction.id.asc() if order == "asc" else Transaction.id.desc()

    rows = (
        query.order_by(ordering, tie)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
        "page": page,
        "limit": limit,
    }
    return rows, pagination


def get_transaction(db: Session, user_id: int, transaction_id: int) -> Transaction:
    tx = (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id, Transaction.id == transaction_id)
        .first()
    )
    if not tx:
        raise RecordNotFound("Transaction not found")
    return tx


def _resolved_fields(db: Session, user_id: int, payload: TransactionIn) -> Dict[str, Any]:
    category_name = payload.category
    group = payload.category_group
    if payload.category_id is not None:
        # the linked category must belong to the caller
        linked = get_category(db, user_id, payload.category_id)
        category_name = category_name or linked.name
        group = group or linked.category_group

    group_value = group.value if hasattr(group, "value") else group
    return {
        "type": payload.type.value,
        "category_group": group_value or payload.type.group.value,
        "category": category_name,
        "sub_category": payload.sub_category,
        "category_id": payload.category_id,
        "amount": payload.amount,
        "date": payload.date,
        "notes": payload.notes,
        "status": payload.status.value if payload.status else None,
    }


def create_transaction(db: Session, user_id: int, payload: TransactionIn) -> Transaction:
    tx = Transaction(user_id=user_id, **_resolved_fields(db, user_id, payload))
    db.add(tx)
    db.commit()
    db.refresh(tx)
    return tx


def update_transaction(db: Session, user_id: int, transaction_id: int, payload: TransactionIn) -> Transaction:
    tx = get_transaction(db, user_id, transaction_id)
    for key, value in _resolved_fields(db, user_id, payload).items():
        setattr(tx, key, value)
    db.commit()
    db.refresh(tx)
    return tx


def delete_transaction(db: Session, user_id: int, transaction_id: int) -> None:
    tx = get_transaction(db, user_id, transaction_id)
    db.delete(tx)
    db.commit()


def all_transactions(db: Session, user_id: int) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.date.asc(), Transaction.id.asc())
        .all()
    )
