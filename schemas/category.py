from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, field_validator

from models.enums import CategoryGroup


def _validate_name(value: str) -> str:
    name = (value or "").strip()
    if not name or len(name) > 120:
        raise ValueError("name must be 1-120 characters")
    return name


class CategoryCreate(BaseModel):
    category_group: CategoryGroup
    name: str

    @field_validator("category_group", mode="before")
    @classmethod
    def normalize_group(cls, value):
        if isinstance(value, str):
            try:
                return CategoryGroup.normalize(value)
            except ValueError:
                raise ValueError("category_group must be one of Income, Expense, Investment")
        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)


class CategoryUpdate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_group: str
    name: str
    is_default: bool
    created_at: datetime


class CategoryEnvelope(BaseModel):
    category: CategoryOut


class CategoryListOut(BaseModel):
    categories: List[CategoryOut]
