from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.enums import CategoryGroup, TransactionStatus, TransactionType
from schemas.general import Pagination


class TransactionIn(BaseModel):
    type: TransactionType
    amount: float = Field(gt=0)
    date: dt.date
    category_group: Optional[CategoryGroup] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    category_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[TransactionStatus] = None

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("category_group", mode="before")
    @classmethod
    def normalize_group(cls, value):
        if isinstance(value, str) and value.strip():
            try:
                return CategoryGroup.normalize(value)
            except ValueError:
                raise ValueError("category_group must be one of Income, Expense, Investment")
        return value or None

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("category", "sub_category", "notes")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("category", "sub_category")
    @classmethod
    def limit_length(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > 120:
            raise ValueError("must be at most 120 characters")
        return value


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    category_group: str
    category: Optional[str] = None
    sub_category: Optional[str] = None
    category_id: Optional[int] = None
    amount: float
    date: dt.date
    notes: Optional[str] = None
    status: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class TransactionEnvelope(BaseModel):
    transaction: TransactionOut


class TransactionListOut(BaseModel):
    transactions: List[TransactionOut]
    pagination: Pagination
