"""认证相关路由定义。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.documents.api.v1.schemas.auth import (
    LoginRequest,
    LogoutResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from app.packages.documents.core.dependencies import get_current_active_user, get_db
from app.packages.documents.models.user import User
from app.packages.documents.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    """调用认证服务完成注册流程并返回统一响应。"""
    return auth_service.register_user(
        db,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        role=payload.role,
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, username=payload.username, password=payload.password)


@router.post("/logout", response_model=LogoutResponse)
def logout(current_user: User = Depends(get_current_active_user)) -> LogoutResponse:
    """退出登录，前端需删除本地缓存的令牌。"""
    return auth_service.logout(current_user=current_user)


@router.get("/profile", response_model=ProfileResponse)
def profile(current_user: User = Depends(get_current_active_user)) -> ProfileResponse:
    return auth_service.get_profile(current_user=current_user)
