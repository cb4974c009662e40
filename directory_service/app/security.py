from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, Request, Response

from .config import AppConfig, AuthConfig, get_config
from .exceptions import UnauthorizedError


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CurrentUser:
    """세션 토큰에서 복원한 호출자 정보 ({id, isAdmin} 클레임)."""

    id: str
    is_admin: bool = False


# --- password ------------------------------------------------------------------


def hash_password(password: str, rounds: int = 10) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # 저장된 해시가 bcrypt 형식이 아니면 불일치로 본다.
        logger.warning("stored password hash is not a valid bcrypt hash")
        return False


# --- token ---------------------------------------------------------------------


def create_access_token(user_id: str, is_admin: bool, config: AuthConfig) -> str:
    now = datetime.now(timezone.utc)
    claims: dict[str, object] = {"id": user_id, "isAdmin": is_admin, "iat": now}
    if config.jwt_expires_hours:
        claims["exp"] = now + timedelta(hours=config.jwt_expires_hours)
    return jwt.encode(claims, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: AuthConfig) -> CurrentUser:
    try:
        claims = jwt.decode(
            token, config.jwt_secret, algorithms=[config.jwt_algorithm]
        )
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Unauthorized") from exc

    user_id = claims.get("id")
    if not user_id:
        raise UnauthorizedError("Unauthorized")
    return CurrentUser(id=str(user_id), is_admin=bool(claims.get("isAdmin", False)))


def set_session_cookie(response: Response, token: str, config: AuthConfig) -> None:
    response.set_cookie(
        key=config.cookie_name,
        value=token,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response, config: AuthConfig) -> None:
    response.delete_cookie(key=config.cookie_name, httponly=True)


# --- FastAPI dependencies --------------------------------------------------------


def get_current_user(
    request: Request,
    config: AppConfig = Depends(get_config),
) -> CurrentUser:
    """유효한 access_token 쿠키가 없으면 401 로 거절한다."""

    token = request.cookies.get(config.auth.cookie_name)
    if not token:
        raise UnauthorizedError("Unauthorized")

    user = decode_access_token(token, config.auth)
    request.state.user_id = user.id
    return user


def get_optional_user(
    request: Request,
    config: AppConfig = Depends(get_config),
) -> CurrentUser | None:
    """토큰이 없거나 잘못되었어도 거절하지 않고 익명(None)으로 진행한다."""

    token = request.cookies.get(config.auth.cookie_name)
    if not token:
        return None

    try:
        user = decode_access_token(token, config.auth)
    except UnauthorizedError:
        return None

    request.state.user_id = user.id
    return user
