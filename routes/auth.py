from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from core.config import TOKEN_COOKIE, settings
from core.db import get_db
from core.errors import AuthenticationMissing, InvalidToken
from core.logging import logger
from models.user import User
from schemas.auth import LoginRequest, SessionOut
from security import jwt as jwt_utils
from security.password import verify_password

router = APIRouter(prefix="/api/auth", tags=["auth"])


def require_token(token: Optional[str] = Cookie(default=None, alias=TOKEN_COOKIE)) -> str:
    if not token:
        raise AuthenticationMissing("No token found in cookies")
    return token


def get_current_user(token: str = Depends(require_token), db: Session = Depends(get_db)) -> User:
    payload = jwt_utils.decode_access(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidToken("Token subject is not a user id")
    user = db.get(User, user_id)
    if not user:
        raise InvalidToken("Token user no longer exists")
    return user


@router.post("/login", response_model=SessionOut)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email.lower()).one_or_none()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    token = jwt_utils.create_access_token(str(user.id))
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    logger.info("login user_id=%s", user.id)
    return SessionOut(user_id=user.id, name=user.name, email=user.email)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"ok": True}
