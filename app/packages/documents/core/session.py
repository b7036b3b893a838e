"""登录会话登记：JWT 中的 ``sid`` 必须在此登记且未过期，Token 才被视为有效。

会话采用滑动过期，每个携带 Token 的请求都会把有效期顺延 ``ttl_seconds``；注销即删除登记。
``SESSION_BACKEND=memory`` 时使用进程内登记表（测试与单机调试），否则使用 Redis。
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Optional

import redis

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.logger import logger

SESSION_KEY_PREFIX = "docvault:session:"


class RedisSessionStore:
    """每个会话一个字符串键，值为用户 ID，依赖 Redis 键过期实现滑动有效期。"""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def open(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        self._client.set(SESSION_KEY_PREFIX + session_id, str(user_id), ex=ttl_seconds)
        return session_id

    def refresh(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        key = SESSION_KEY_PREFIX + session_id
        if self._client.get(key) != str(user_id):
            return False
        return bool(self._client.expire(key, ttl_seconds))

    def close(self, session_id: str) -> None:
        self._client.delete(SESSION_KEY_PREFIX + session_id)


class MemorySessionStore:
    """进程内登记表：``session_id -> (user_id, 到期的单调时钟时刻)``。"""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def open(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (user_id, time.monotonic() + ttl_seconds)
        return session_id

    def refresh(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        current = time.monotonic()
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None or entry[0] != user_id:
                return False
            if entry[1] < current:
                del self._sessions[session_id]
                return False
            self._sessions[session_id] = (user_id, current + ttl_seconds)
            return True

    def close(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)


SessionStore = RedisSessionStore | MemorySessionStore

_store: Optional[SessionStore] = None
_store_guard = threading.Lock()


def _get_store() -> SessionStore:
    global _store
    with _store_guard:
        if _store is None:
            _store = _build_store()
        return _store


def _build_store() -> SessionStore:
    settings = get_settings()
    if settings.session_backend.strip().lower() == "memory":
        logger.info("session.store backend=memory")
        return MemorySessionStore()
    client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        client.ping()
    except redis.RedisError as exc:
        logger.warning("session.store backend=memory reason=redis_unavailable url=%s error=%s", settings.redis_url, exc)
        return MemorySessionStore()
    logger.info("session.store backend=redis url=%s", settings.redis_url)
    return RedisSessionStore(client)


def create_session(user_id: int, ttl_seconds: int) -> str:
    """登记新会话并返回会话 ID，写入 JWT 的 ``sid``。"""
    return _get_store().open(user_id, ttl_seconds)


def touch_session(session_id: str, user_id: int, ttl_seconds: int) -> bool:
    """会话存在且属于该用户时顺延有效期并返回 ``True``。"""
    return _get_store().refresh(session_id, user_id, ttl_seconds)


def delete_session(session_id: str) -> None:
    _get_store().close(session_id)
