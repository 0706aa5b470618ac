from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas.auth import ProfileUpdate, UserEnvelope, UserOut
from schemas.general import MessageOut
from services.auth import clear_auth_cookie, get_current_user
from services.errors import DuplicateRecord
from services.user_service import delete_user, update_profile

router = APIRouter(tags=["user"])


@router.get("/profile", response_model=UserEnvelope)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserOut.model_validate(current_user))


@router.put("/profile", response_model=UserEnvelope)
def put_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        user = update_profile(db, current_user, full_name=payload.full_name, email=payload.email)
    except DuplicateRecord as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserEnvelope(user=UserOut.model_validate(user))


@router.delete("/profile", response_model=MessageOut)
def delete_profile(
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    delete_user(db, current_user)
    clear_auth_cookie(response)
    return MessageOut(message="Account deleted successfully")
