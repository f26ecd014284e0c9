from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from natours.core.config import settings
from natours.core.errors import AppError
from natours.core.security import decode_jwt
from natours.db.session import get_db
from natours.models.user import User
from natours.resources import USERS
from natours.services.auth_service import changed_password_after

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    jwt_cookie: str | None = Cookie(default=None, alias=settings.JWT_COOKIE_NAME),
    db: Session = Depends(get_db),
) -> User:
    token = creds.credentials if creds else jwt_cookie
    if not token or token == "loggedout":
        raise AppError("You are not logged in! Please log in to get access.", 401)
    try:
        payload = decode_jwt(token, settings.JWT_SECRET)
    except ExpiredSignatureError:
        raise AppError("Your token has expired! Please log in again.", 401)
    except JWTError:
        raise AppError("Invalid token. Please log in again!", 401)

    user = USERS.query(db).find({"id": payload.get("sub")}).first() if payload.get("sub") else None
    if user is None:
        raise AppError("The user belonging to this token does no longer exist.", 401)
    if changed_password_after(user, payload.get("iat")):
        raise AppError("User recently changed password! Please log in again.", 401)
    return user

def restrict_to(*roles: str):
    def _inner(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AppError("You do not have permission to perform this action", 403)
        return user
    return _inner

def current_user_id(user: User = Depends(get_current_user)) -> str:
    return str(user.id)
