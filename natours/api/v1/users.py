from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from natours.core.config import settings
from natours.core.deps import current_user_id, get_current_user, restrict_to
from natours.core.errors import AppError
from natours.db.session import get_db
from natours.models.user import User
from natours.resources import USERS
from natours.schemas.user import ForgotPasswordIn, LoginIn
from natours.services import auth_service
from natours.services import handler_factory as factory

router = APIRouter()

LOGGED_OUT_COOKIE_SECONDS = 10


@router.post("/signup")
def signup(request: Request, payload: dict = Depends(factory.json_payload), db: Session = Depends(get_db)):
    user = auth_service.signup(db, payload, welcome_url=str(request.url_for("get_me")))
    return auth_service.token_response(request, db, user, 201)


@router.post("/login")
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    user = auth_service.login(db, payload.email, payload.password)
    return auth_service.token_response(request, db, user)


@router.get("/logout")
def logout():
    response = JSONResponse({"status": "success"})
    response.set_cookie(
        key=settings.JWT_COOKIE_NAME,
        value="loggedout",
        max_age=LOGGED_OUT_COOKIE_SECONDS,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/forgot-password")
def forgot_password(request: Request, payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    auth_service.forgot_password(
        db,
        payload.email,
        reset_url_for=lambda token: str(request.url_for("reset_password", token=token)),
    )
    return JSONResponse({"status": "success", "message": "Token sent to email!"})


@router.patch("/reset-password/{token}")
def reset_password(
    token: str,
    request: Request,
    payload: dict = Depends(factory.json_payload),
    db: Session = Depends(get_db),
):
    user = auth_service.reset_password(db, token, payload)
    return auth_service.token_response(request, db, user)


@router.patch("/update-my-password")
def update_my_password(
    request: Request,
    payload: dict = Depends(factory.json_payload),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = auth_service.update_password(db, user, payload)
    return auth_service.token_response(request, db, user)


router.add_api_route(
    "/me",
    factory.get_one(USERS, id_dependency=current_user_id),
    methods=["GET"],
    name="get_me",
)


@router.patch("/update-me")
def update_me(
    payload: dict = Depends(factory.json_payload),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = auth_service.update_me(db, user, payload)
    return factory.success(200, {"user": auth_service.user_document(db, user)})


@router.delete("/delete-me")
def delete_me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    auth_service.deactivate(db, user)
    return factory.success(204, None)


ADMIN_ONLY = [Depends(restrict_to("admin"))]


@router.post("", dependencies=ADMIN_ONLY)
def create_user():
    raise AppError("This route is not yet defined! Please use /signup instead", 500)


router.add_api_route("", factory.get_all(USERS), methods=["GET"], dependencies=ADMIN_ONLY)
router.add_api_route("/{id}", factory.get_one(USERS), methods=["GET"], dependencies=ADMIN_ONLY)
router.add_api_route("/{id}", factory.update_one(USERS), methods=["PATCH"], dependencies=ADMIN_ONLY)
router.add_api_route("/{id}", factory.delete_one(USERS), methods=["DELETE"], dependencies=ADMIN_ONLY)
