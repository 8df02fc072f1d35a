from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from shanthi_store.core.exceptions import InactiveAccount
from shanthi_store.core.security import decode_token
from shanthi_store.db.session import get_db
from shanthi_store.models.user import User, UserRole

logger = structlog.get_logger()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _request_token(request: Request) -> Optional[str]:
    # The storefront client sends a bearer header, browsers fall back to the login cookie
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.cookies.get("access_token")


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = _request_token(request)
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_token(token)
    if payload.get("type") != "access" or not str(payload.get("sub", "")).isdigit():
        raise _unauthorized("Invalid authentication credentials")

    user = db.get(User, int(payload["sub"]))
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise InactiveAccount()
    return current_user


def require_admin(request: Request, current_user: User = Depends(get_current_active_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    logger.info(
        "admin_action",
        action=f"{request.method} {request.url.path}",
        admin_user_id=current_user.id,
    )
    return current_user
