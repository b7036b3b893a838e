"""权限路由：授权、撤销、检查与查询。"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.documents.api.v1.schemas.permissions import (
    GrantRequest,
    PermissionCheckResponse,
    PermissionListResponse,
    PermissionResponse,
    RevokeRequest,
)
from app.packages.documents.core.dependencies import get_current_active_user, get_db
from app.packages.documents.models.user import User
from app.packages.documents.services.permission_service import permission_service
from app.packages.documents.utils.path_utils import parse_resource_id

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.post("/grant", response_model=PermissionResponse)
def grant_permission(
    payload: GrantRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionResponse:
    return permission_service.grant(
        db,
        current_user=current_user,
        user_id=payload.userId,
        resource_type=payload.resourceType,
        resource_id=payload.resourceId,
        permission_type=payload.permissionType,
        cascade_to_children=payload.cascadeToChildren,
    )


@router.post("/revoke", response_model=PermissionResponse)
def revoke_permission(
    payload: RevokeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionResponse:
    return permission_service.revoke(
        db,
        current_user=current_user,
        user_id=payload.userId,
        resource_type=payload.resourceType,
        resource_id=payload.resourceId,
        cascade_to_children=payload.cascadeToChildren,
    )


@router.get("/check/{resource_type}/{resource_id}", response_model=PermissionCheckResponse)
def check_permission(
    resource_type: str,
    resource_id: str,
    required_permission: str = Query("READ", alias="requiredPermission"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionCheckResponse:
    return permission_service.check(
        db,
        current_user=current_user,
        resource_type=resource_type,
        resource_id=parse_resource_id(resource_id),
        required_permission=required_permission,
    )


@router.get("/get-user-list", response_model=PermissionListResponse)
def get_user_list(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionListResponse:
    return permission_service.list_users(db, current_user=current_user)


@router.get("/user/{user_id}", response_model=PermissionListResponse)
def get_user_permissions(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionListResponse:
    return permission_service.list_user_permissions(
        db, current_user=current_user, user_id=parse_resource_id(user_id, "用户 ID")
    )


@router.get("/resource/{resource_type}/{resource_id}", response_model=PermissionListResponse)
def get_resource_permissions(
    resource_type: str,
    resource_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionListResponse:
    return permission_service.list_resource_permissions(
        db,
        current_user=current_user,
        resource_type=resource_type,
        resource_id=parse_resource_id(resource_id),
    )


@router.post("/reconcile/{directory_id}", response_model=PermissionListResponse)
def reconcile_directory(
    directory_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PermissionListResponse:
    """重新物化目录上的级联授权（仅管理员）。"""
    return permission_service.reconcile(
        db, current_user=current_user, directory_id=parse_resource_id(directory_id, "目录 ID")
    )
