from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from natours.core.config import settings
from natours.core.errors import AppError
from natours.core.security import create_jwt, create_reset_token, hash_password, hash_reset_token, verify_password
from natours.models.user import User
from natours.resources import USERS
from natours.schemas.user import ResetPasswordIn, SignupIn, UpdatePasswordIn, UserDocument
from natours.services.email_service import EmailDeliveryError, send_password_reset, send_welcome

_LOG = logging.getLogger("natours.auth")

SELF_UPDATABLE_FIELDS = ("name", "email")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def sign_token(user: User) -> str:
    return create_jwt({"sub": str(user.id)}, settings.JWT_SECRET, timedelta(days=settings.JWT_EXPIRES_DAYS))


def changed_password_after(user: User, issued_at: Any) -> bool:
    if user.password_changed_at is None:
        return False
    try:
        iat = int(issued_at)
    except (TypeError, ValueError):
        return True
    return iat < int(_as_utc(user.password_changed_at).timestamp())


def set_password(user: User, password: str, *, is_new: bool = False) -> None:
    user.password = hash_password(password)
    if not is_new:
        # One second back so a token signed right after the change stays valid.
        user.password_changed_at = _utcnow() - timedelta(seconds=1)


def user_document(db: Session, user: User) -> dict[str, Any]:
    return USERS.query(db).to_document(user)


def token_response(request: Request, db: Session, user: User, status_code: int = 200) -> JSONResponse:
    token = sign_token(user)
    response = JSONResponse(
        {"status": "success", "token": token, "data": {"user": user_document(db, user)}},
        status_code=status_code,
    )
    response.set_cookie(
        key=settings.JWT_COOKIE_NAME,
        value=token,
        max_age=int(settings.JWT_COOKIE_EXPIRES_DAYS) * 24 * 60 * 60,
        httponly=True,
        secure=request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https",
        samesite="lax",
    )
    return response


def find_user_by_email(db: Session, email: Any) -> User | None:
    normalized = str(email or "").strip().lower()
    if not normalized:
        return None
    return USERS.query(db).find({"email": normalized}).first()


def signup(db: Session, payload: dict[str, Any], welcome_url: str) -> User:
    data = SignupIn.model_validate(
        {key: payload.get(key) for key in ("name", "email", "password", "password_confirm")}
    )
    user = User(name=data.name, email=data.email)
    set_password(user, data.password, is_new=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    _LOG.info("signup user_id=%s", user.id)
    try:
        send_welcome(to=user.email, name=user.name, url=welcome_url)
    except EmailDeliveryError:
        _LOG.warning("welcome email failed user_id=%s", user.id, exc_info=True)
    return user


def login(db: Session, email: Any, password: Any) -> User:
    if not email or not password:
        raise AppError("Please provide email and password!", 400)
    user = find_user_by_email(db, email)
    if user is None or not verify_password(str(password), user.password):
        _LOG.info("failed login email=%s", str(email).strip().lower())
        raise AppError("Incorrect email or password", 401)
    return user


def forgot_password(db: Session, email: Any, reset_url_for) -> None:
    user = find_user_by_email(db, email)
    if user is None:
        raise AppError("There is no user with that email address.", 404)

    raw_token, hashed = create_reset_token()
    user.password_reset_token = hashed
    user.password_reset_expires = _utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES)
    db.commit()

    try:
        send_password_reset(to=user.email, name=user.name, url=reset_url_for(raw_token))
    except EmailDeliveryError:
        _LOG.exception("password reset email failed user_id=%s", user.id)
        user.password_reset_token = None
        user.password_reset_expires = None
        db.commit()
        raise AppError("There was an error sending the email. Try again later!", 500)


def reset_password(db: Session, raw_token: str, payload: dict[str, Any]) -> User:
    user = (
        USERS.query(db)
        .find({"password_reset_token": hash_reset_token(raw_token), "password_reset_expires": {"$gt": _utcnow()}})
        .first()
    )
    if user is None:
        raise AppError("Token is invalid or has expired", 400)
    data = ResetPasswordIn.model_validate(payload)
    set_password(user, data.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.commit()
    db.refresh(user)
    return user


def update_password(db: Session, user: User, payload: dict[str, Any]) -> User:
    if not verify_password(str(payload.get("password_current") or ""), user.password):
        raise AppError("Your current password is wrong.", 401)
    data = UpdatePasswordIn.model_validate(payload)
    set_password(user, data.password)
    db.commit()
    db.refresh(user)
    return user


def update_me(db: Session, user: User, payload: dict[str, Any]) -> User:
    if "password" in payload or "password_confirm" in payload:
        raise AppError("This route is not for password updates. Please use /update-my-password.", 400)
    changes = {key: payload[key] for key in SELF_UPDATABLE_FIELDS if key in payload}
    current = USERS.snapshot(user)
    validated = UserDocument.model_validate({**current, **changes})
    for key in changes:
        setattr(user, key, getattr(validated, key))
    db.commit()
    db.refresh(user)
    return user


def deactivate(db: Session, user: User) -> None:
    user.active = False
    db.commit()
    _LOG.info("user deactivated user_id=%s", user.id)
