from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas.budget import BudgetCreate, BudgetListOut, BudgetOut, BudgetUpdate
from schemas.general import MessageOut
from services.auth import get_current_user
from services.budget_service import budget_progress, delete_budget, list_budgets, update_budget, upsert_budget
from services.errors import RecordNotFound

router = APIRouter(tags=["budgets"])


@router.get("", response_model=BudgetListOut)
def get_user_budgets(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    resolved_month, budgets = list_budgets(db, user.id, month)
    return {"month": resolved_month, "budgets": budgets}


@router.post("", response_model=BudgetOut, status_code=status.HTTP_201_CREATED)
def set_user_budget(
    payload: BudgetCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        budget, created = upsert_budget(
            db,
            user.id,
            amount=payload.amount,
            month=payload.month,
            category_name=payload.category,
            category_id=payload.category_id,
        )
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    if not created:
        response.status_code = status.HTTP_200_OK
    return budget_progress(db, budget)


@router.put("/{budget_id}", response_model=BudgetOut)
def update_user_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        budget = update_budget(db, user.id, budget_id, amount=payload.amount)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return budget_progress(db, budget)


@router.delete("/{budget_id}", response_model=MessageOut)
def delete_user_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        delete_budget(db, user.id, budget_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return MessageOut(message="Budget deleted successfully")
