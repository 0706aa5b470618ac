from __future__ import annotations

import heapq
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.enums import TradeType
from utils.common_helpers import as_date, to_float

logger = logging.getLogger(__name__)


@dataclass
class Position:
    """Synthetic holding for one symbol, rebuilt by replaying its lots."""

    symbol: str
    name: Optional[str] = None
    quantity: float = 0.0
    total_invested: float = 0.0
    realized_cost: float = 0.0
    oversold_quantity: float = 0.0
    lot_count: int = 0
    current_price: Optional[float] = None
    brokers: List[str] = field(default_factory=list)

    @property
    def avg_cost(self) -> float:
        if self.quantity <= 0:
            return 0.0
        return self.total_invested / self.quantity

    @property
    def is_open(self) -> bool:
        return self.quantity > 0

    def buy(self, quantity: float, price: float) -> None:
        self.quantity += quantity
        self.total_invested += quantity * price

    def sell(self, quantity: float) -> None:
        # Cost leaves at the previous average; the average itself is unchanged.
        if quantity > self.quantity:
            self.oversold_quantity += quantity - self.quantity
            quantity = self.quantity
        removed = quantity * self.avg_cost
        self.total_invested -= removed
        self.realized_cost += removed
        self.quantity -= quantity
        if self.quantity <= 0:
            self.quantity = 0.0
            self.total_invested = 0.0

    def add_broker(self, broker: Optional[str]) -> None:
        b = (broker or "").strip()
        if b and b not in self.brokers:
            self.brokers.append(b)


def lot_date(lot: Any) -> Optional[date]:
    """Trade date of a lot, falling back to when it was recorded."""
    return as_date(getattr(lot, "date", None)) or as_date(getattr(lot, "created_at", None))


def is_sell(lot: Any) -> bool:
    raw = getattr(lot, "type", None)
    value = raw.value if isinstance(raw, TradeType) else str(raw or "")
    return value.upper() == TradeType.SELL.value


def replay_lots(lots: Iterable[Any]) -> Dict[str, Position]:
    """
    Replay lots per symbol in trade-date order and return positions keyed by
    upper-cased symbol. Same-day lots replay in the order they were recorded
    (row id); lots with no date at all go last.
    """
    ordered = sorted(lots, key=lambda lot: (lot_date(lot) or date.max, getattr(lot, "id", None) or 0))
    positions: Dict[str, Position] = {}

    for lot in ordered:
        symbol = (getattr(lot, "symbol", "") or "").strip().upper()
        if not symbol:
            continue
        pos = positions.get(symbol)
        if pos is None:
            pos = positions[symbol] = Position(symbol=symbol)

        qty = to_float(getattr(lot, "quantity", 0.0))
        pos.lot_count += 1
        pos.name = getattr(lot, "name", None) or pos.name
        pos.add_broker(getattr(lot, "broker", None))
        price = getattr(lot, "current_price", None)
        if price is not None:
            pos.current_price = to_float(price)

        if is_sell(lot):
            before = pos.oversold_quantity
            pos.sell(qty)
            if pos.oversold_quantity > before:
                logger.warning(
                    "stock_replay_oversold symbol=%s excess=%.4f",
                    symbol, pos.oversold_quantity - before,
                )
        else:
            pos.buy(qty, to_float(getattr(lot, "buy_price", 0.0)))

    return positions


def stock_invested_total(positions: Dict[str, Position]) -> float:
    return sum(p.total_invested for p in positions.values() if p.is_open)


# -----------------------
# Holdings view
# -----------------------

def _compute_pl_fields(item: Dict[str, Any]) -> None:
    qty = to_float(item.get("quantity"))
    curr = item.get("current_price")
    total_cost = to_float(item.get("total_invested"))
    value = item.get("current_value")

    if value is not None and total_cost > 0:
        item["unrealized_pl"] = round(value - total_cost, 8)
        item["unrealized_pl_pct"] = round((value / total_cost - 1.0) * 100.0, 8)
    elif curr is not None and item.get("avg_cost") and qty > 0:
        unit_cost = to_float(item["avg_cost"])
        item["unrealized_pl"] = round((curr - unit_cost) * qty, 8)
        item["unrealized_pl_pct"] = round((curr / unit_cost - 1.0) * 100.0, 8)
    else:
        item["unrealized_pl"] = None
        item["unrealized_pl_pct"] = None


def _position_to_item(pos: Position) -> Dict[str, Any]:
    price = pos.current_price
    current_value = round(price * pos.quantity, 8) if price is not None and price > 0 else None
    return {
        "symbol": pos.symbol,
        "name": pos.name,
        "quantity": round(pos.quantity, 8),
        "avg_cost": round(pos.avg_cost, 8),
        "total_invested": round(pos.total_invested, 8),
        "realized_cost": round(pos.realized_cost, 8),
        "oversold_quantity": round(pos.oversold_quantity, 8),
        "lot_count": pos.lot_count,
        "broker": ", ".join(pos.brokers) or None,
        "current_price": price,
        "current_value": current_value,
        "price_status": "stored" if current_value is not None else "unavailable",
    }


def build_holdings(
    lots: Iterable[Any],
    *,
    include_closed: bool = False,
    top_n: int = 5,
) -> Dict[str, Any]:
    positions = replay_lots(lots)
    items = [
        _position_to_item(p)
        for p in positions.values()
        if include_closed or p.is_open
    ]

    # market value falls back to cost when no price has been fetched yet
    valued: List[Tuple[float, Dict[str, Any]]] = []
    market_value = 0.0
    for it in items:
        v = it["current_value"] if it["current_value"] is not None else it["total_invested"]
        v = max(to_float(v), 0.0)
        market_value += v
        valued.append((v, it))

    for v, it in valued:
        it["weight"] = round(v / market_value * 100.0, 8) if market_value > 0 and v > 0 else None
        _compute_pl_fields(it)

    total_invested = sum(it["total_invested"] for it in items)
    unrealized_pl = market_value - total_invested

    n = max(1, top_n)
    top_items = [it for _, it in heapq.nlargest(n, valued, key=lambda t: t[0])]

    return {
        "items": items,
        "top_items": top_items,
        "totals": {
            "total_invested": round(total_invested, 8),
            "market_value": round(market_value, 8),
            "unrealized_pl": round(unrealized_pl, 8),
            "unrealized_pl_pct": round(unrealized_pl / total_invested * 100.0, 8) if total_invested > 0 else 0.0,
            "holding_count": sum(1 for it in items if it["quantity"] > 0),
        },
        "as_of": int(time.time()),
    }
