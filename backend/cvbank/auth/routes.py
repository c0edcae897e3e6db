"""Authentication routes."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database.base import get_db
from ..dependencies import get_current_user
from ..errors import Unauthenticated
from .models import User
from .schemas import LoginRequest, SignupRequest, UserResponse
from .service import authenticate_user, create_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(request: Request, body: SignupRequest, db: Session = Depends(get_db)):
    user = create_user(db, body.name, body.email, body.password)
    db.commit()
    request.session["user_id"] = str(user.id)
    return JSONResponse(
        {"ok": True, "user": UserResponse.from_user(user).model_dump()},
        status_code=201,
    )


@router.post("/login")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    if not user:
        logger.info("Failed login attempt for %s", body.email)
        raise Unauthenticated("Invalid credentials")
    request.session["user_id"] = str(user.id)
    return JSONResponse({"ok": True, "user": UserResponse.from_user(user).model_dump()})


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return JSONResponse({"ok": True})


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return JSONResponse({"ok": True, "user": UserResponse.from_user(user).model_dump()})
