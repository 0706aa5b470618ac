"""
Dashboard and investment aggregation over already-loaded records.

Everything here is pure: callers pass ORM rows (or any objects exposing the
same attributes) and get chart-ready dicts back. Per-user datasets are small,
so all grouping happens in memory in a single pass.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from models.enums import TransactionStatus, TransactionType
from services.holding_service import is_sell, replay_lots, stock_invested_total
from utils.common_helpers import (
    add_months,
    as_date,
    month_end,
    month_start,
    months_between,
    pct_growth,
    to_float,
)

Granularity = Literal["month", "day"]

EQUITY_STOCKS_LABEL = "Equity Stocks"
UNCATEGORIZED_LABEL = "Uncategorized"
DEFAULT_DAYS = 30
DEFAULT_INVESTMENT_HISTORY_MONTHS = 6
FULL_HISTORY_THRESHOLD_MONTHS = 12
MAX_BUCKETS = 3660


def _value(raw: Any) -> str:
    return raw.value if isinstance(raw, Enum) else str(raw or "")


def tx_type(tx: Any) -> str:
    return _value(getattr(tx, "type", None)).lower()


def is_active(tx: Any) -> bool:
    return _value(getattr(tx, "status", None)).lower() != TransactionStatus.TERMINATED.value


def category_name(tx: Any) -> str:
    return (getattr(tx, "category", None) or "").strip() or UNCATEGORIZED_LABEL


@dataclass
class Totals:
    income: float = 0.0
    expense: float = 0.0
    investment: float = 0.0

    @property
    def savings(self) -> float:
        return self.income - self.expense

    def add(self, tx: Any) -> None:
        kind = tx_type(tx)
        amount = to_float(getattr(tx, "amount", 0.0))
        if kind == TransactionType.INCOME.value:
            self.income += amount
        elif kind == TransactionType.EXPENSE.value:
            self.expense += amount
        elif kind == TransactionType.INVESTMENT.value and is_active(tx):
            self.investment += amount


@dataclass(frozen=True)
class Window:
    start: date
    end: date
    granularity: Granularity

    def contains(self, d: Optional[date]) -> bool:
        return d is not None and self.start <= d <= self.end


@dataclass
class Bucket:
    label: str
    start: date
    end: date
    totals: Totals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "income": self.totals.income,
            "expense": self.totals.expense,
            "investment": self.totals.investment,
            "savings": self.totals.savings,
        }


def resolve_window(
    tx_dates: Sequence[date],
    *,
    today: date,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    granularity: Granularity = "month",
    history_months: Optional[int] = None,
    days: Optional[int] = None,
) -> Window:
    """
    Pick the date window the dashboard covers.

    Explicit dates win. Otherwise day granularity looks back `days` days,
    month granularity looks back `history_months` calendar months (capped at
    the user's history once the request goes past a year), and with nothing
    given the window spans the user's whole history.
    """
    first = min(tx_dates, default=None)
    last = max(tx_dates, default=None)

    if start_date is not None or end_date is not None:
        end = end_date or max(today, start_date)  # type: ignore[arg-type]
        start = start_date or (first if first is not None and first <= end else end)
        if start > end:
            raise ValueError("start_date must be on or before end_date")
        return Window(start, end, granularity)

    if granularity == "day":
        n = max(1, days or DEFAULT_DAYS)
        return Window(today - timedelta(days=n - 1), today, "day")

    if history_months is not None:
        n = max(1, history_months)
        if n > FULL_HISTORY_THRESHOLD_MONTHS:
            span = months_between(first, today) + 1 if first is not None else 1
            n = min(n, max(span, 1))
        return Window(add_months(today, -(n - 1)), month_end(today), "month")

    start = month_start(first) if first is not None else month_start(today)
    end = month_end(max(today, last) if last is not None else today)
    return Window(start, end, "month")


def _make_buckets(window: Window) -> List[Bucket]:
    buckets: List[Bucket] = []
    if window.granularity == "day":
        count = (window.end - window.start).days + 1
        if count > MAX_BUCKETS:
            raise ValueError(f"window too large for daily buckets (max {MAX_BUCKETS} days)")
        for i in range(count):
            d = window.start + timedelta(days=i)
            buckets.append(Bucket(d.strftime("%b %d"), d, d, Totals()))
        return buckets

    count = months_between(window.start, window.end) + 1
    if count > MAX_BUCKETS:
        raise ValueError(f"window too large (max {MAX_BUCKETS} months)")
    for i in range(count):
        m = add_months(window.start, i)
        buckets.append(
            Bucket(
                m.strftime("%b %Y"),
                max(m, window.start),
                min(month_end(m), window.end),
                Totals(),
            )
        )
    return buckets


def _bucket_index(window: Window, d: date) -> int:
    if window.granularity == "day":
        return (d - window.start).days
    return months_between(window.start, d)


def _breakdown(values: Dict[str, float]) -> List[Dict[str, Any]]:
    return [{"name": name, "value": value} for name, value in values.items()]


def _period_totals(transactions: Iterable[Any], start: date, end: date) -> Totals:
    totals = Totals()
    for tx in transactions:
        d = as_date(getattr(tx, "date", None))
        if d is not None and start <= d <= end:
            totals.add(tx)
    return totals


def build_dashboard(
    transactions: Sequence[Any],
    stocks: Sequence[Any],
    *,
    today: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    granularity: Granularity = "month",
    history_months: Optional[int] = None,
    days: Optional[int] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    dated: List[Tuple[date, Any]] = []
    for tx in transactions:
        d = as_date(getattr(tx, "date", None))
        if d is not None:
            dated.append((d, tx))

    window = resolve_window(
        [d for d, _ in dated],
        today=today,
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
        history_months=history_months,
        days=days,
    )
    buckets = _make_buckets(window)

    totals = Totals()
    income_by_category: Dict[str, float] = {}
    expense_by_category: Dict[str, float] = {}
    investment_by_category: Dict[str, float] = {}

    for d, tx in dated:
        if not window.contains(d):
            continue
        totals.add(tx)
        buckets[_bucket_index(window, d)].totals.add(tx)

        kind = tx_type(tx)
        name = category_name(tx)
        amount = to_float(getattr(tx, "amount", 0.0))
        if kind == TransactionType.INCOME.value:
            income_by_category[name] = income_by_category.get(name, 0.0) + amount
        elif kind == TransactionType.EXPENSE.value:
            expense_by_category[name] = expense_by_category.get(name, 0.0) + amount
        elif kind == TransactionType.INVESTMENT.value and is_active(tx):
            investment_by_category[name] = investment_by_category.get(name, 0.0) + amount

    stock_invested = stock_invested_total(replay_lots(stocks))
    if stock_invested > 0:
        investment_by_category[EQUITY_STOCKS_LABEL] = (
            investment_by_category.get(EQUITY_STOCKS_LABEL, 0.0) + stock_invested
        )

    this_month = _period_totals(transactions, month_start(today), month_end(today))
    prev_start = add_months(today, -1)
    last_month = _period_totals(transactions, prev_start, month_end(prev_start))

    net_savings = totals.income - totals.expense
    savings_rate = net_savings / totals.income * 100.0 if totals.income > 0 else 0.0

    return {
        "window": {
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "granularity": window.granularity,
        },
        "metrics": {
            "total_income": totals.income,
            "total_expenses": totals.expense,
            "net_savings": net_savings,
            "transaction_investments": totals.investment,
            "stock_investments": stock_invested,
            "total_investments": totals.investment + stock_invested,
            "this_month_income": this_month.income,
            "this_month_expenses": this_month.expense,
            "this_month_investments": this_month.investment,
            "last_month_income": last_month.income,
            "last_month_expenses": last_month.expense,
            "last_month_investments": last_month.investment,
            "savings_rate": round(savings_rate, 2),
            "income_growth": pct_growth(this_month.income, last_month.income),
            "expense_growth": pct_growth(this_month.expense, last_month.expense),
            "investment_growth": pct_growth(this_month.investment, last_month.investment),
        },
        "series": [b.to_dict() for b in buckets],
        "income_breakdown": _breakdown(income_by_category),
        "expense_breakdown": _breakdown(expense_by_category),
        "investment_allocation": _breakdown(investment_by_category),
    }


# -----------------------
# Investments page
# -----------------------

def _lot_flow(lot: Any) -> float:
    qty = to_float(getattr(lot, "quantity", 0.0))
    if is_sell(lot):
        price = getattr(lot, "sell_price", None)
        return -qty * to_float(price if price is not None else getattr(lot, "buy_price", 0.0))
    return qty * to_float(getattr(lot, "buy_price", 0.0))


def build_investment_summary(
    transactions: Sequence[Any],
    stocks: Sequence[Any],
    *,
    today: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    history_months: int = DEFAULT_INVESTMENT_HISTORY_MONTHS,
) -> Dict[str, Any]:
    today = today or date.today()

    investments: List[Tuple[date, Any]] = []
    for tx in transactions:
        if tx_type(tx) != TransactionType.INVESTMENT.value or not is_active(tx):
            continue
        d = as_date(getattr(tx, "date", None))
        if d is None:
            continue
        if start_date is not None and d < start_date:
            continue
        if end_date is not None and d > end_date:
            continue
        investments.append((d, tx))

    by_category: Dict[str, float] = {}
    for _, tx in investments:
        name = category_name(tx)
        by_category[name] = by_category.get(name, 0.0) + to_float(tx.amount)

    stock_invested = stock_invested_total(replay_lots(stocks))
    if stock_invested > 0:
        by_category[EQUITY_STOCKS_LABEL] = by_category.get(EQUITY_STOCKS_LABEL, 0.0) + stock_invested

    total_invested = sum(by_category.values())

    # unified flow: investment transactions plus every stock lot
    flows: List[Tuple[date, float]] = [(d, to_float(tx.amount)) for d, tx in investments]
    for lot in stocks:
        d = as_date(getattr(lot, "date", None)) or as_date(getattr(lot, "created_at", None))
        if d is not None:
            flows.append((d, _lot_flow(lot)))

    this_start, this_end = month_start(today), month_end(today)
    prev_start = add_months(today, -1)
    prev_end = month_end(prev_start)
    this_month_total = sum(a for d, a in flows if this_start <= d <= this_end)
    last_month_total = sum(a for d, a in flows if prev_start <= d <= prev_end)

    monthly_data: List[Dict[str, Any]] = []
    n = max(1, history_months)
    for i in range(n - 1, -1, -1):
        m_start = add_months(today, -i)
        m_end = month_end(m_start)

        month_breakdown: Dict[str, float] = {}
        count = 0
        for d, tx in investments:
            if m_start <= d <= m_end:
                name = category_name(tx)
                month_breakdown[name] = month_breakdown.get(name, 0.0) + to_float(tx.amount)
                count += 1

        stocks_amount = 0.0
        for lot in stocks:
            d = as_date(getattr(lot, "date", None))
            if d is None or is_sell(lot) or not (m_start <= d <= m_end):
                continue
            stocks_amount += _lot_flow(lot)
            count += 1
        if stocks_amount > 0:
            month_breakdown[EQUITY_STOCKS_LABEL] = month_breakdown.get(EQUITY_STOCKS_LABEL, 0.0) + stocks_amount

        monthly_data.append({
            "month": m_start.strftime("%b %Y"),
            "amount": max(0.0, sum(month_breakdown.values())),
            "count": count,
            "by_category": month_breakdown,
        })

    return {
        "total_invested": total_invested,
        "category_count": len(by_category),
        "monthly_growth": pct_growth(this_month_total, last_month_total),
        "category_breakdown": [{"category": k, "amount": v} for k, v in by_category.items()],
        "allocation": _breakdown(by_category),
        "monthly_data": monthly_data,
        "categories": list(by_category.keys()),
    }
