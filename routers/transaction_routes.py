from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.enums import TransactionStatus, TransactionType
from models.user import User
from schemas.general import MessageOut
from schemas.transaction import TransactionEnvelope, TransactionIn, TransactionListOut
from services.auth import get_current_user
from services.errors import RecordNotFound
from services.transaction_service import (
    create_transaction,
    delete_transaction,
    get_transaction,
    list_transactions,
    update_transaction,
)

router = APIRouter(tags=["transactions"])


@router.get("", response_model=TransactionListOut)
def get_user_transactions(
    type: Optional[TransactionType] = Query(None),
    category: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    description: Optional[str] = Query(None, max_length=200),
    sort_by: Literal["date", "amount", "category", "type"] = Query("date"),
    order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows, pagination = list_transactions(
        db,
        user.id,
        type_=type,
        category=category,
        category_id=category_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
        description=description,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    return {"transactions": rows, "pagination": pagination}


@router.post("", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
def create_user_transaction(
    payload: TransactionIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return {"transaction": create_transaction(db, user.id, payload)}
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/{transaction_id}", response_model=TransactionEnvelope)
def get_user_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return {"transaction": get_transaction(db, user.id, transaction_id)}
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.put("/{transaction_id}", response_model=TransactionEnvelope)
def update_user_transaction(
    transaction_id: int,
    payload: TransactionIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return {"transaction": update_transaction(db, user.id, transaction_id, payload)}
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{transaction_id}", response_model=MessageOut)
def delete_user_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        delete_transaction(db, user.id, transaction_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return MessageOut(message="Transaction deleted successfully")
