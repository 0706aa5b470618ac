import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import AUTH_RATE_LIMIT, limiter
from models.user import User
from schemas.auth import LoginIn, LoginOut, SignupIn, UserEnvelope, UserOut
from schemas.general import MessageOut
from services.auth import clear_auth_cookie, create_user_token, get_current_user, set_auth_cookie
from services.errors import DuplicateRecord
from services.user_service import authenticate_user, create_user

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
def signup(request: Request, payload: SignupIn, db: Session = Depends(get_db)):
    try:
        user = create_user(db, full_name=payload.full_name, email=payload.email, password=payload.password)
    except DuplicateRecord as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"message": "User created successfully", "user": UserOut.model_validate(user)}


@router.post("/login", response_model=LoginOut)
@limiter.limit(AUTH_RATE_LIMIT)
def login(request: Request, payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        logger.info("login_failed")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_user_token(user)
    set_auth_cookie(response, token)
    logger.info("login_succeeded user_id=%s", user.id)
    return LoginOut(
        message="Login successful",
        user=UserOut.model_validate(user),
        access_token=token,
    )


@router.post("/logout", response_model=MessageOut)
def logout(response: Response):
    clear_auth_cookie(response)
    return MessageOut(message="Logged out")


@router.get("/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserOut.model_validate(current_user))
