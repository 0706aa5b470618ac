from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.enums import TradeType
from utils.common_helpers import normalize_symbol


class StockIn(BaseModel):
    symbol: str
    name: Optional[str] = Field(default=None, max_length=200)
    quantity: float = Field(gt=0)
    buy_price: float = Field(ge=0)
    sell_price: Optional[float] = Field(default=None, ge=0)
    broker: Optional[str] = Field(default=None, max_length=200)
    type: TradeType = TradeType.BUY
    date: Optional[dt.date] = None

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, value: str) -> str:
        return normalize_symbol(value)

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("name", "broker")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class StockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: Optional[str] = None
    quantity: float
    buy_price: float
    sell_price: Optional[float] = None
    current_price: Optional[float] = None
    total_value: Optional[float] = None
    broker: Optional[str] = None
    type: str
    date: Optional[dt.date] = None
    created_at: dt.datetime


class StockEnvelope(BaseModel):
    stock: StockOut
    averaged: bool = False
    message: Optional[str] = None


class StockListOut(BaseModel):
    stocks: List[StockOut]


class RefreshPricesOut(BaseModel):
    message: str
    stocks: List[StockOut]
    prices_updated: int
