"""认证服务：封装注册、登录、登出与个人信息查询。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.constants import (
    ACCESS_TOKEN_TYPE,
    HTTP_STATUS_CREATED,
    HTTP_STATUS_OK,
    HTTP_STATUS_UNAUTHORIZED,
)
from app.packages.documents.core.enums import UserRoleEnum
from app.packages.documents.core.exceptions import AppException, ConflictError, InvalidInputError
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.core.security import (
    create_access_token,
    get_current_session_id,
    get_password_hash,
    verify_password,
)
from app.packages.documents.core.session import create_session, delete_session
from app.packages.documents.crud.users import user_crud
from app.packages.documents.models.user import User
from app.packages.documents.services.permission_service import serialize_user

# 管理员只能通过初始化种子创建
_REGISTRABLE_ROLES = {UserRoleEnum.EDITOR.value, UserRoleEnum.VIEWER.value}


class AuthService:
    """负责处理用户注册与登录流程，并保持逻辑聚合。"""

    def register_user(
        self,
        db: Session,
        *,
        username: str,
        password: str,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> dict:
        """创建新用户，角色仅允许 EDITOR 或 VIEWER，缺省为 VIEWER。"""
        normalized_role = (role or UserRoleEnum.VIEWER.value).strip().upper()
        if normalized_role not in _REGISTRABLE_ROLES:
            raise InvalidInputError("注册角色只能为 EDITOR 或 VIEWER")

        if user_crud.get_by_username(db, username):
            raise ConflictError("用户名已存在")

        user = user_crud.create(
            db,
            {
                "username": username,
                "email": email,
                "hashed_password": get_password_hash(password),
                "role": normalized_role,
                "is_active": True,
            },
        )
        logger.info("auth.register user_id=%s username=%s role=%s", user.id, user.username, user.role)
        return create_response("注册成功", serialize_user(user), HTTP_STATUS_CREATED)

    def login(self, db: Session, *, username: str, password: str) -> dict:
        """校验用户凭证并签发访问令牌。"""
        user = user_crud.get_by_username(db, username)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("auth.login_failed username=%s", username)
            raise AppException(msg="用户名或密码错误", code=HTTP_STATUS_UNAUTHORIZED)
        if not user.is_active:
            raise AppException(msg="用户未激活", code=HTTP_STATUS_UNAUTHORIZED)

        ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
        session_id = create_session(user.id, ttl_seconds)
        access_token = create_access_token(user.id, session_id)

        logger.info("auth.login user_id=%s", user.id)
        return create_response(
            "登录成功",
            {
                "access_token": access_token,
                "token_type": ACCESS_TOKEN_TYPE,
                "user": serialize_user(user),
            },
            HTTP_STATUS_OK,
        )

    def logout(self, *, current_user: User) -> dict:
        session_id = get_current_session_id()
        if session_id:
            delete_session(session_id)
        logger.info("auth.logout user_id=%s", current_user.id)
        return create_response("退出成功", None, HTTP_STATUS_OK)

    def get_profile(self, *, current_user: User) -> dict:
        return create_response("获取用户信息成功", serialize_user(current_user), HTTP_STATUS_OK)


auth_service = AuthService()
