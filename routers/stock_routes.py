# routers/stock_routes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import PRICE_REFRESH_RATE_LIMIT, limiter
from models.user import User
from schemas.general import MessageOut
from schemas.stock import RefreshPricesOut, StockEnvelope, StockIn, StockListOut
from services.auth import get_current_user
from services.errors import RecordNotFound
from services.holding_service import build_holdings
from services.quote_service import QuoteService, QuoteServiceError
from services.stock_service import (
    create_or_merge_stock,
    delete_stock,
    list_stocks,
    refresh_stock_prices,
    update_stock,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["stocks"])


def get_quote_service() -> QuoteService:
    try:
        return QuoteService()
    except QuoteServiceError as exc:
        logger.error("quote_service_unavailable error=%s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch prices")


@router.get("", response_model=StockListOut)
def get_user_stocks(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"stocks": list_stocks(db, user.id)}


@router.post("", response_model=StockEnvelope, status_code=status.HTTP_201_CREATED)
def save_stock(
    payload: StockIn,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    stock, averaged = create_or_merge_stock(db, user.id, payload)
    if averaged:
        response.status_code = status.HTTP_200_OK
        return {
            "stock": stock,
            "averaged": True,
            "message": f"Stock averaged: {stock.quantity:g} shares at {stock.buy_price:.2f} average price",
        }
    return {"stock": stock, "averaged": False}


@router.get("/holdings")
def get_user_holdings(
    include_closed: bool = Query(False),
    top_n: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return build_holdings(list_stocks(db, user.id), include_closed=include_closed, top_n=top_n)


@router.post("/refresh-prices", response_model=RefreshPricesOut)
@limiter.limit(PRICE_REFRESH_RATE_LIMIT)
async def refresh_prices(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    quotes: QuoteService = Depends(get_quote_service),
):
    try:
        stocks, updated = await refresh_stock_prices(db, user.id, quotes)
    except QuoteServiceError as exc:
        logger.error("stock_price_refresh_failed user_id=%s error=%s", user.id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch prices")

    if not stocks:
        return {"message": "No stocks to update", "stocks": [], "prices_updated": 0}
    return {"message": "Prices updated successfully", "stocks": stocks, "prices_updated": updated}


@router.put("/{stock_id}", response_model=StockEnvelope)
def update_user_stock(
    stock_id: int,
    payload: StockIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return {"stock": update_stock(db, user.id, stock_id, payload)}
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{stock_id}", response_model=MessageOut)
def delete_user_stock(
    stock_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        delete_stock(db, user.id, stock_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return MessageOut(message="Stock deleted successfully")
