from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from models.enums import TradeType
from models.stock import Stock
from schemas.stock import StockIn
from services.errors import RecordNotFound
from services.quote_service import QuoteService, format_exchange_symbol

logger = logging.getLogger(__name__)


def list_stocks(db: Session, user_id: int) -> List[Stock]:
    return (
        db.query(Stock)
        .filter(Stock.user_id == user_id)
        .order_by(Stock.created_at.desc(), Stock.id.desc())
        .all()
    )


def get_stock(db: Session, user_id: int, stock_id: int) -> Stock:
    stock = db.query(Stock).filter(Stock.user_id == user_id, Stock.id == stock_id).first()
    if not stock:
        raise RecordNotFound("Stock not found")
    return stock


def _merge_brokers(existing: str | None, new: str | None) -> str | None:
    names = [b.strip() for b in (existing or "").split(",") if b.strip()]
    if new and new.strip() and new.strip() not in names:
        names.append(new.strip())
    return ", ".join(names) or None


def create_or_merge_stock(db: Session, user_id: int, payload: StockIn) -> Tuple[Stock, bool]:
    """
    Record a lot. A BUY for a symbol that already has a BUY lot is folded
    into that lot at the weighted average price:
        (q1*p1 + q2*p2) / (q1 + q2)
    Returns (stock, averaged).
    """
    if payload.type == TradeType.BUY:
        existing = (
            db.query(Stock)
            .filter(
                Stock.user_id == user_id,
                Stock.symbol == payload.symbol,
                Stock.type == TradeType.BUY.value,
            )
            .order_by(Stock.id.asc())
            .with_for_update()
            .first()
        )
        if existing:
            total_qty = existing.quantity + payload.quantity
            total_invested = existing.quantity * existing.buy_price + payload.quantity * payload.buy_price
            existing.quantity = total_qty
            existing.buy_price = total_invested / total_qty
            existing.total_value = total_invested
            existing.name = payload.name or existing.name
            existing.broker = _merge_brokers(existing.broker, payload.broker)
            if payload.date and (existing.date is None or payload.date < existing.date):
                existing.date = payload.date
            db.commit()
            db.refresh(existing)
            logger.info("stock_lot_averaged stock_id=%s", existing.id)
            return existing, True

    stock = Stock(
        user_id=user_id,
        symbol=payload.symbol,
        name=payload.name,
        quantity=payload.quantity,
        buy_price=payload.buy_price,
        sell_price=payload.sell_price,
        broker=payload.broker,
        type=payload.type.value,
        date=payload.date,
        total_value=payload.quantity * payload.buy_price,
    )
    db.add(stock)
    db.commit()
    db.refresh(stock)
    return stock, False


def update_stock(db: Session, user_id: int, stock_id: int, payload: StockIn) -> Stock:
    stock = get_stock(db, user_id, stock_id)
    stock.symbol = payload.symbol
    stock.name = payload.name
    stock.quantity = payload.quantity
    stock.buy_price = payload.buy_price
    stock.sell_price = payload.sell_price
    stock.broker = payload.broker
    stock.type = payload.type.value
    if payload.date is not None:
        stock.date = payload.date
    stock.total_value = payload.quantity * payload.buy_price
    db.commit()
    db.refresh(stock)
    return stock


def delete_stock(db: Session, user_id: int, stock_id: int) -> None:
    stock = get_stock(db, user_id, stock_id)
    db.delete(stock)
    db.commit()


async def refresh_stock_prices(db: Session, user_id: int, quotes: QuoteService) -> Tuple[List[Stock], int]:
    """
    Pull live prices for every lot of the user and store them as current_price.
    Returns (lots, number of lots updated). QuoteServiceError propagates.
    """
    stocks = list_stocks(db, user_id)
    if not stocks:
        return [], 0

    prices = await quotes.get_prices(s.symbol for s in stocks)

    updated = 0
    for s in stocks:
        price = prices.get(s.symbol.upper()) or prices.get(format_exchange_symbol(s.symbol))
        if price:
            s.current_price = price
            updated += 1

    db.commit()
    logger.info("stock_prices_refreshed lots=%d updated=%d", len(stocks), updated)
    return list_stocks(db, user_id), updated
