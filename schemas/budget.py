from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from utils.common_helpers import parse_month_key


class BudgetCreate(BaseModel):
    category: Optional[str] = None
    category_id: Optional[int] = None
    amount: float = Field(gt=0)
    month: str

    @field_validator("month")
    @classmethod
    def validate_month(cls, value: str) -> str:
        value = (value or "").strip()
        parse_month_key(value)
        return value

    @field_validator("category")
    @classmethod
    def strip_category(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def require_category(self):
        if self.category is None and self.category_id is None:
            raise ValueError("category or category_id is required")
        return self


class BudgetUpdate(BaseModel):
    amount: float = Field(gt=0)


class BudgetOut(BaseModel):
    id: int
    category_id: int
    category: str
    amount: float
    month: str
    spent: float
    remaining: float
    percent_used: float
    created_at: datetime
    updated_at: datetime


class BudgetListOut(BaseModel):
    month: str
    budgets: List[BudgetOut]
