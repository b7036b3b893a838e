"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.constants import ACCESS_TOKEN_TYPE
from app.packages.documents.core.security import read_token_claims, store_current_session_id
from app.packages.documents.core.session import touch_session
from app.packages.documents.crud.users import user_crud
from app.packages.documents.db import session as db_session
from app.packages.documents.models.user import User

security_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    """解析 ``Authorization`` 头部并返回当前认证用户，不存在或非法时抛出 401。"""
    store_current_session_id(None)
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="缺少认证信息")

    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="认证类型无效")

    claims = read_token_claims(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")
    user_id, session_id = claims

    user = user_crud.get(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="用户不存在")

    ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
    if not touch_session(session_id, user.id, ttl_seconds):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")

    store_current_session_id(session_id)
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """确保已认证用户仍处于激活状态，否则拒绝访问。"""
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="用户未激活")
    return current_user
