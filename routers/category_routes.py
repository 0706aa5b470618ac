from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.enums import CategoryGroup
from models.user import User
from schemas.category import CategoryCreate, CategoryEnvelope, CategoryListOut, CategoryUpdate
from services.auth import get_current_user
from services.category_service import create_category, delete_category, list_categories, rename_category
from services.errors import DuplicateRecord, RecordNotFound

router = APIRouter(tags=["categories"])


@router.get("", response_model=CategoryListOut)
def get_user_categories(
    category_group: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    group = None
    if category_group:
        try:
            group = CategoryGroup.normalize(category_group)
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown category group")
    return {"categories": list_categories(db, user.id, group)}


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
def create_user_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        category = create_category(db, user.id, category_group=payload.category_group, name=payload.name)
    except DuplicateRecord as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"category": category}


@router.put("/{category_id}", response_model=CategoryEnvelope)
def rename_user_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return {"category": rename_category(db, user.id, category_id, name=payload.name)}
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except DuplicateRecord as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        delete_category(db, user.id, category_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
