"""权限接口的请求/响应模型。"""

from typing import Optional

from pydantic import BaseModel, Field

from app.packages.documents.api.v1.schemas.common import ResponseEnvelope


class GrantRequest(BaseModel):
    userId: int = Field(..., ge=1)
    resourceType: str
    resourceId: int = Field(..., ge=1)
    permissionType: str
    # 目录授权未显式传 false 时默认级联
    cascadeToChildren: Optional[bool] = None


class RevokeRequest(BaseModel):
    userId: int = Field(..., ge=1)
    resourceType: str
    resourceId: int = Field(..., ge=1)
    cascadeToChildren: Optional[bool] = None


class PermissionCheckData(BaseModel):
    has_permission: bool
    message: str


PermissionResponse = ResponseEnvelope[dict]
PermissionCheckResponse = ResponseEnvelope[PermissionCheckData]
PermissionListResponse = ResponseEnvelope[dict]
