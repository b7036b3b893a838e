"""登录会话登记表与访问令牌的单元测试。"""

from jose import jwt

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.security import create_access_token, read_token_claims
from app.packages.documents.core.session import MemorySessionStore


def test_memory_session_refresh_and_close():
    store = MemorySessionStore()
    session_id = store.open(7, ttl_seconds=60)

    assert store.refresh(session_id, 7, ttl_seconds=60)
    assert not store.refresh(session_id, 8, ttl_seconds=60)
    assert not store.refresh("unknown", 7, ttl_seconds=60)

    store.close(session_id)
    assert not store.refresh(session_id, 7, ttl_seconds=60)


def test_memory_session_expires():
    store = MemorySessionStore()
    session_id = store.open(3, ttl_seconds=-1)
    assert not store.refresh(session_id, 3, ttl_seconds=60)


def test_token_claims_round_trip_user_and_session():
    token = create_access_token(5, "abc123")
    assert read_token_claims(token) == (5, "abc123")


def test_token_without_session_is_rejected():
    settings = get_settings()
    token = jwt.encode({"user_id": 5}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    assert read_token_claims(token) is None
    assert read_token_claims("not-a-token") is None
