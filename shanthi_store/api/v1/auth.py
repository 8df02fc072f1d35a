from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from shanthi_store.api.deps import get_current_active_user
from shanthi_store.core.config import settings
from shanthi_store.core.exceptions import (
    EmailAlreadyExists,
    InactiveAccount,
    InvalidCredentials,
    PhoneAlreadyRegistered,
)
from shanthi_store.core.rate_limiter import limiter
from shanthi_store.core.security import create_access_token, hash_password, verify_password
from shanthi_store.db.session import get_db
from shanthi_store.models.user import User
from shanthi_store.schemas.user import ShopperLogin, ShopperOut, ShopperRegister
from shanthi_store.utils.response import success

router = APIRouter()
logger = structlog.get_logger()

TOKEN_COOKIE = "access_token"


def shopper_payload(user: User) -> dict:
    return ShopperOut.model_validate(user).model_dump(mode="json", by_alias=True)


def _with_token_cookie(request: Request, body: dict, token: str) -> JSONResponse:
    response = JSONResponse(content=body)
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production" and request.url.scheme == "https",
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    return response


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Create a shopper account",
    responses={
        409: {"description": "Email or phone already registered"},
        422: {"description": "Validation error"},
    },
)
@limiter.limit("5/minute")
def register(request: Request, shopper_in: ShopperRegister, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.email == shopper_in.email).first():
        raise EmailAlreadyExists()
    if shopper_in.phone and db.query(User.id).filter(User.phone == shopper_in.phone).first():
        raise PhoneAlreadyRegistered()

    user = User(
        email=shopper_in.email,
        password_hash=hash_password(shopper_in.password),
        full_name=shopper_in.full_name,
        phone=shopper_in.phone,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("shopper_registered", user_id=user.id)
    return success(data=shopper_payload(user), message="Registration successful")


@router.post(
    "/login",
    response_model=dict,
    summary="Sign in",
    description="""
Returns a bearer token for the storefront client. Browsers also receive it as
an httpOnly `access_token` cookie. After signing in the client replays any
cart and wishlist items saved while signed out.
""",
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Account inactive"},
    },
)
@limiter.limit("5/minute")
def login(request: Request, credentials: ShopperLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("login_rejected", email_domain=credentials.email.split("@")[-1])
        raise InvalidCredentials()
    if not user.is_active:
        raise InactiveAccount()

    token = create_access_token(user.id, user.role.value)
    body = success(
        data={"user": shopper_payload(user), "access_token": token, "token_type": "bearer"},
        message="Login successful",
    )
    logger.info("shopper_signed_in", user_id=user.id)
    return _with_token_cookie(request, body, token)


@router.post("/logout", response_model=dict)
def logout():
    response = JSONResponse(content=success(message="Logged out"))
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return response


@router.get("/me", response_model=dict)
def get_me(current_user: User = Depends(get_current_active_user)):
    return success(data=shopper_payload(current_user), message="Current user")
