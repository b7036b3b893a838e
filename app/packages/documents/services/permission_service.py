"""权限管理服务：授权、撤销、检查与查询。

目录授权默认级联到现有子树，授权与级联在同一事务中完成，失败整体回滚。
"""

from __future__ import annotations

from typing import Optional, Union

from sqlalchemy.orm import Session

from app.packages.documents.core.constants import HTTP_STATUS_OK
from app.packages.documents.core.enums import PermissionTypeEnum, ResourceTypeEnum, UserRoleEnum
from app.packages.documents.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from app.packages.documents.core.guards import forbid_unless_admin, forbid_unless_roles, is_admin, role_of
from app.packages.documents.core.locks import tree_lock
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.core.timezone import format_datetime
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.permissions import permission_crud
from app.packages.documents.crud.users import user_crud
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.permission import Permission
from app.packages.documents.models.user import User
from app.packages.documents.services.cascade_service import cascade_grant, cascade_revoke, reconcile
from app.packages.documents.services.permission_resolver import user_can

Resource = Union[Directory, FileRecord]


def serialize_permission(permission: Permission) -> dict:
    is_file = permission.resource_type == ResourceTypeEnum.FILE.value
    return {
        "id": permission.id,
        "user_id": permission.user_id,
        "resource_type": permission.resource_type,
        "resource_id": permission.file_id if is_file else permission.directory_id,
        "permission_type": permission.permission_type,
        "granted_by": permission.granted_by,
        "cascade_to_children": bool(permission.cascade_to_children),
        "create_time": format_datetime(permission.create_time),
    }


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": role_of(user),
        "is_active": user.is_active,
    }


class PermissionService:
    """聚合资源授权相关的业务能力。"""

    def _normalize_resource_type(self, value: Optional[str]) -> str:
        token = (value or "").strip().upper()
        if token not in {item.value for item in ResourceTypeEnum}:
            raise InvalidInputError("资源类型必须为 FILE 或 DIRECTORY")
        return token

    def _normalize_permission_type(self, value: Optional[str]) -> str:
        token = (value or "").strip().upper()
        if token not in {item.value for item in PermissionTypeEnum}:
            raise InvalidInputError("权限类型必须为 READ 或 WRITE")
        return token

    def _load_resource(self, db: Session, resource_type: str, resource_id: int) -> Resource:
        if resource_type == ResourceTypeEnum.FILE.value:
            resource = file_crud.get(db, resource_id)
            label = "文件"
        else:
            resource = directory_crud.get(db, resource_id)
            label = "目录"
        if resource is None:
            raise NotFoundError(f"{label}不存在")
        return resource

    def _tree_path(self, resource: Resource) -> str:
        return resource.path if isinstance(resource, Directory) else resource.directory_path

    def _prepare_change(
        self, db: Session, *, current_user: User, user_id: int, resource_type: str, resource_id: int
    ) -> Resource:
        forbid_unless_roles(
            current_user,
            (UserRoleEnum.ADMIN, UserRoleEnum.EDITOR),
            message="当前角色无权管理权限",
        )
        if user_crud.get(db, user_id) is None:
            raise NotFoundError("目标用户不存在")
        resource = self._load_resource(db, resource_type, resource_id)
        if not user_can(db, current_user, resource, PermissionTypeEnum.WRITE.value):
            raise ForbiddenError("只有资源所有者或拥有写权限的用户可以管理权限")
        return resource

    def grant(
        self,
        db: Session,
        *,
        current_user: User,
        user_id: int,
        resource_type: Optional[str],
        resource_id: int,
        permission_type: Optional[str],
        cascade_to_children: Optional[bool] = None,
    ) -> dict:
        resource_type = self._normalize_resource_type(resource_type)
        permission_type = self._normalize_permission_type(permission_type)
        resource = self._prepare_change(
            db, current_user=current_user, user_id=user_id, resource_type=resource_type, resource_id=resource_id
        )
        is_directory = resource_type == ResourceTypeEnum.DIRECTORY.value
        cascade = is_directory and cascade_to_children is not False

        with tree_lock(self._tree_path(resource)):
            try:
                permission = permission_crud.upsert(
                    db,
                    user_id=user_id,
                    resource_type=resource_type,
                    resource_id=resource_id,
                    permission_type=permission_type,
                    granted_by=current_user.id,
                    cascade_to_children=cascade,
                    auto_commit=False,
                )
                cascaded = 0
                if cascade:
                    cascaded = cascade_grant(db, resource_id, user_id, permission_type, current_user.id)
                db.commit()
            except Exception:
                db.rollback()
                raise
            db.refresh(permission)

        logger.info(
            "permission.grant user_id=%s %s=%s type=%s by=%s cascaded=%s",
            user_id,
            resource_type,
            resource_id,
            permission_type,
            current_user.id,
            cascaded,
        )
        data = serialize_permission(permission)
        data["cascaded"] = cascaded
        return create_response("授权成功", data, HTTP_STATUS_OK)

    def revoke(
        self,
        db: Session,
        *,
        current_user: User,
        user_id: int,
        resource_type: Optional[str],
        resource_id: int,
        cascade_to_children: Optional[bool] = None,
    ) -> dict:
        resource_type = self._normalize_resource_type(resource_type)
        resource = self._prepare_change(
            db, current_user=current_user, user_id=user_id, resource_type=resource_type, resource_id=resource_id
        )
        cascade = resource_type == ResourceTypeEnum.DIRECTORY.value and cascade_to_children is not False

        with tree_lock(self._tree_path(resource)):
            try:
                removed = permission_crud.delete_for_user(
                    db, user_id=user_id, resource_type=resource_type, resource_id=resource_id
                )
                cascaded = cascade_revoke(db, resource_id, user_id) if cascade else 0
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info(
            "permission.revoke user_id=%s %s=%s by=%s removed=%s cascaded=%s",
            user_id,
            resource_type,
            resource_id,
            current_user.id,
            removed,
            cascaded,
        )
        return create_response(
            "撤销权限成功",
            {
                "user_id": user_id,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "removed": removed,
                "cascaded": cascaded,
            },
            HTTP_STATUS_OK,
        )

    def check(
        self,
        db: Session,
        *,
        current_user: User,
        resource_type: Optional[str],
        resource_id: int,
        required_permission: Optional[str] = None,
    ) -> dict:
        resource_type = self._normalize_resource_type(resource_type)
        required = self._normalize_permission_type(required_permission or PermissionTypeEnum.READ.value)
        resource = self._load_resource(db, resource_type, resource_id)
        allowed = user_can(db, current_user, resource, required)
        data = {
            "has_permission": allowed,
            "message": "拥有访问权限" if allowed else "没有访问权限",
        }
        return create_response("权限检查完成", data, HTTP_STATUS_OK)

    def list_user_permissions(self, db: Session, *, current_user: User, user_id: int) -> dict:
        if user_id != current_user.id and not is_admin(current_user):
            raise ForbiddenError("只能查看自己的权限")
        if user_crud.get(db, user_id) is None:
            raise NotFoundError("用户不存在")
        items = [serialize_permission(item) for item in permission_crud.list_for_user(db, user_id)]
        return create_response("获取用户权限成功", {"total": len(items), "items": items}, HTTP_STATUS_OK)

    def list_resource_permissions(
        self, db: Session, *, current_user: User, resource_type: Optional[str], resource_id: int
    ) -> dict:
        resource_type = self._normalize_resource_type(resource_type)
        resource = self._load_resource(db, resource_type, resource_id)
        if not user_can(db, current_user, resource, PermissionTypeEnum.READ.value):
            raise ForbiddenError("没有查看该资源权限的权限")
        rows = permission_crud.list_for_resource(db, resource_type=resource_type, resource_id=resource_id)
        items = [serialize_permission(item) for item in rows]
        data = {
            "resource_type": resource_type,
            "resource_id": resource_id,
            "owner_id": resource.created_by,
            "total": len(items),
            "items": items,
        }
        return create_response("获取资源权限成功", data, HTTP_STATUS_OK)

    def list_users(self, db: Session, *, current_user: User) -> dict:
        forbid_unless_roles(
            current_user,
            (UserRoleEnum.ADMIN, UserRoleEnum.EDITOR),
            message="当前角色无权查看用户列表",
        )
        items = [serialize_user(item) for item in user_crud.list_all(db)]
        return create_response("获取用户列表成功", {"total": len(items), "items": items}, HTTP_STATUS_OK)

    def reconcile(self, db: Session, *, current_user: User, directory_id: int) -> dict:
        forbid_unless_admin(current_user, message="只有管理员可以执行权限修复")
        directory = directory_crud.get(db, directory_id)
        if directory is None:
            raise NotFoundError("目录不存在")
        with tree_lock(directory.path):
            try:
                touched = reconcile(db, directory.id)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return create_response(
            "权限修复完成", {"directory_id": directory.id, "touched": touched}, HTTP_STATUS_OK
        )


permission_service = PermissionService()
