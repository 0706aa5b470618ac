from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from services.analytics_service import (
    DEFAULT_INVESTMENT_HISTORY_MONTHS,
    build_dashboard,
    build_investment_summary,
)
from services.auth import get_current_user
from services.stock_service import list_stocks
from services.transaction_service import all_transactions

router = APIRouter(tags=["analytics"])


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")


@router.get("/analytics")
def get_analytics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    granularity: Literal["month", "day"] = Query("month"),
    history_months: Optional[int] = Query(None, ge=1, le=240),
    days: Optional[int] = Query(None, ge=1, le=366),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _check_range(start_date, end_date)
    try:
        return build_dashboard(
            all_transactions(db, user.id),
            list_stocks(db, user.id),
            start_date=start_date,
            end_date=end_date,
            granularity=granularity,
            history_months=history_months,
            days=days,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/investments")
def get_investments(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    history_months: int = Query(DEFAULT_INVESTMENT_HISTORY_MONTHS, ge=1, le=240),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return build_investment_summary(
        all_transactions(db, user.id),
        list_stocks(db, user.id),
        start_date=start_date,
        end_date=end_date,
        history_months=history_months,
    )
