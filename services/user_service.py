from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from models.category import Category
from models.enums import CategoryGroup
from models.user import User
from services.auth import get_password_hash, verify_password
from services.errors import DuplicateRecord

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: dict[CategoryGroup, tuple[str, ...]] = {
    CategoryGroup.INCOME: ("Salary", "Freelancing", "Investment Returns"),
    CategoryGroup.EXPENSE: (
        "Rent",
        "Groceries",
        "Utilities",
        "Entertainment",
        "Transportation",
        "Healthcare",
        "Insurance",
        "Investment Out",
    ),
    CategoryGroup.INVESTMENT: (
        "Stocks",
        "Mutual Funds",
        "Real Estate",
        "Crypto",
        "Gold",
        "Bonds",
        "Fixed Deposits",
    ),
}


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(db: Session, *, full_name: str, email: str, password: str) -> User:
    """Create a user together with the default category set, in one commit."""
    if get_user_by_email(db, email):
        raise DuplicateRecord("Email already registered")

    user = User(
        email=email.strip().lower(),
        full_name=full_name,
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.flush()

    for group, names in DEFAULT_CATEGORIES.items():
        for name in names:
            db.add(Category(user_id=user.id, category_group=group.value, name=name, is_default=True))

    db.commit()
    db.refresh(user)
    logger.info("user_created user_id=%s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def update_profile(
    db: Session,
    user: User,
    *,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
) -> User:
    if email is not None and email != user.email:
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise DuplicateRecord("Email already in use")
        user.email = email

    if full_name is not None:
        user.full_name = full_name

    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    """Delete the account and everything it owns as a single transaction."""
    user_id = user.id
    try:
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("user_deleted user_id=%s", user_id)
