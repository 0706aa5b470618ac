from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from models.category import Category
from models.enums import CategoryGroup
from services.errors import DuplicateRecord, RecordNotFound


def list_categories(db: Session, user_id: int, category_group: Optional[CategoryGroup] = None) -> List[Category]:
    query = db.query(Category).filter(Category.user_id == user_id)
    if category_group is not None:
        query = query.filter(Category.category_group == category_group.value)
    return query.order_by(Category.is_default.desc(), Category.name.asc(), Category.id.asc()).all()


def get_category(db: Session, user_id: int, category_id: int) -> Category:
    category = (
        db.query(Category)
        .filter(Category.user_id == user_id, Category.id == category_id)
        .first()
    )
    if not category:
        raise RecordNotFound("Category not found")
    return category


def find_category_by_name(
    db: Session,
    user_id: int,
    name: str,
    category_group: Optional[CategoryGroup] = None,
) -> Optional[Category]:
    query = db.query(Category).filter(Category.user_id == user_id, Category.name == name)
    if category_group is not None:
        query = query.filter(Category.category_group == category_group.value)
    return query.order_by(Category.id.asc()).first()


def _ensure_unique(db: Session, user_id: int, name: str, group: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Category).filter(
        Category.user_id == user_id,
        Category.name == name,
        Category.category_group == group,
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise DuplicateRecord("Category with this name already exists in the group")


def create_category(db: Session, user_id: int, *, category_group: CategoryGroup, name: str) -> Category:
    _ensure_unique(db, user_id, name, category_group.value)
    category = Category(user_id=user_id, category_group=category_group.value, name=name, is_default=False)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def rename_category(db: Session, user_id: int, category_id: int, *, name: str) -> Category:
    category = get_category(db, user_id, category_id)
    if name != category.name:
        _ensure_unique(db, user_id, name, category.category_group, exclude_id=category.id)
        category.name = name
        db.commit()
        db.refresh(category)
    return category


def delete_category(db: Session, user_id: int, category_id: int) -> None:
    # budgets go with the category; transactions keep the name and lose the link
    category = get_category(db, user_id, category_id)
    db.delete(category)
    db.commit()
