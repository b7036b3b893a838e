"""认证凭据：bcrypt 密码哈希，以及携带 ``user_id`` 与会话 ``sid`` 的访问令牌。"""

from contextvars import ContextVar
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .logger import logger

_session_id_ctx: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(user_id: int, session_id: str) -> str:
    """签发访问令牌，``exp`` 仅作参考，真正的有效期由会话登记的滑动过期决定。"""
    settings = get_settings()
    claims = {
        "user_id": user_id,
        "sid": session_id,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_token_claims(token: str) -> Optional[tuple[int, str]]:
    """校验签名并返回 ``(user_id, session_id)``，签名无效或缺少字段时返回 ``None``。"""
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.warning("auth.token_invalid error=%s", exc)
        return None

    user_id = claims.get("user_id")
    session_id = claims.get("sid")
    if not isinstance(user_id, int) or not isinstance(session_id, str):
        logger.warning("auth.token_invalid error=missing_claims")
        return None
    return user_id, session_id


def store_current_session_id(session_id: Optional[str]) -> None:
    """记录当前请求的会话 ID，注销时据此删除会话登记。"""
    _session_id_ctx.set(session_id)


def get_current_session_id() -> Optional[str]:
    return _session_id_ctx.get()
