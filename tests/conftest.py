"""测试夹具：为 pytest 提供数据库、上传目录与客户端的共享配置。"""

import os
import shutil
import tempfile
import uuid
from typing import Callable, Generator

# 必须在导入应用之前设置环境变量，配置对象会被缓存
_TMP_ROOT = tempfile.mkdtemp(prefix="docvault-tests-")
TEST_DB_PATH = os.path.join(_TMP_ROOT, "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["UPLOAD_ROOT"] = os.path.join(_TMP_ROOT, "Uploads")
os.environ["LOG_DIR"] = os.path.join(_TMP_ROOT, "log")
os.environ["SESSION_BACKEND"] = "memory"
os.environ["APP_ACTIVE_PACKAGE"] = "documents"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.packages.documents.core.dependencies import get_db
from app.packages.documents.core.security import get_password_hash
from app.packages.documents.crud.users import user_crud
from app.packages.documents.db import session as db_session
from app.packages.documents.db.init_db import init_db
from app.packages.documents.models.base import Base
from app.packages.documents.models.user import User
from app.main import app

TEST_PASSWORD = "secret123"
_PASSWORD_HASH: dict[str, str] = {}


def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    engine.dispose()
    shutil.rmtree(_TMP_ROOT, ignore_errors=True)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session_fixture):
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_user(db_session_fixture) -> User:
    return user_crud.get_by_username(db_session_fixture, "admin")


@pytest.fixture()
def make_user(db_session_fixture) -> Callable[..., User]:
    """按角色创建测试用户，密码统一为 ``TEST_PASSWORD``。"""

    def _make(role: str = "EDITOR") -> User:
        if "hash" not in _PASSWORD_HASH:
            _PASSWORD_HASH["hash"] = get_password_hash(TEST_PASSWORD)
        return user_crud.create(
            db_session_fixture,
            {
                "username": _unique(role.lower()),
                "email": None,
                "hashed_password": _PASSWORD_HASH["hash"],
                "role": role,
                "is_active": True,
            },
        )

    return _make


@pytest.fixture()
def unique_name() -> Callable[[str], str]:
    """生成带随机后缀的名称，避免共享数据库中的路径冲突。"""
    return _unique


@pytest.fixture()
def login(client: TestClient) -> Callable[..., dict]:
    """登录并返回携带 Bearer 令牌的请求头。"""

    def _login(username: str, password: str = TEST_PASSWORD) -> dict:
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture()
def admin_headers(login) -> dict:
    return login("admin", "admin123")
