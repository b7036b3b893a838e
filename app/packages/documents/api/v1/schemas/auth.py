"""认证相关的请求与响应模型。"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.packages.documents.api.v1.schemas.common import ResponseEnvelope


class RegisterRequest(BaseModel):
    """用户注册需要的字段；角色只能为 EDITOR 或 VIEWER。"""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)


class UserData(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str
    is_active: bool


class TokenResponseData(BaseModel):
    """登录成功后签发的令牌信息。"""

    access_token: str
    token_type: Literal["bearer"]
    user: UserData


RegisterResponse = ResponseEnvelope[UserData]
ProfileResponse = ResponseEnvelope[UserData]
TokenResponse = ResponseEnvelope[TokenResponseData]
LogoutResponse = ResponseEnvelope[None]
