"""资源权限 CRUD：按 (用户, 资源类型, 资源 ID) 三元组定位与 upsert。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.documents.core.enums import PermissionTypeEnum, ResourceTypeEnum
from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.permission import Permission


def satisfying_types(required: str) -> list[str]:
    """READ 需求可由 READ/WRITE 满足，WRITE 需求只能由 WRITE 满足。"""
    if required == PermissionTypeEnum.READ.value:
        return [PermissionTypeEnum.READ.value, PermissionTypeEnum.WRITE.value]
    return [PermissionTypeEnum.WRITE.value]


class CRUDPermission(CRUDBase[Permission]):
    """封装资源权限的查询与写入逻辑，避免在业务层重复编写。"""

    def _resource_query(self, db: Session, *, resource_type: str, resource_id: int):
        query = self.query(db).filter(Permission.resource_type == resource_type)
        if resource_type == ResourceTypeEnum.FILE.value:
            return query.filter(Permission.file_id == resource_id)
        return query.filter(Permission.directory_id == resource_id)

    def get_for_user(
        self, db: Session, *, user_id: int, resource_type: str, resource_id: int
    ) -> Optional[Permission]:
        return (
            self._resource_query(db, resource_type=resource_type, resource_id=resource_id)
            .filter(Permission.user_id == user_id)
            .first()
        )

    def list_cascading_for_directory(self, db: Session, directory_id: int) -> list[Permission]:
        return (
            self._resource_query(
                db, resource_type=ResourceTypeEnum.DIRECTORY.value, resource_id=directory_id
            )
            .filter(Permission.cascade_to_children.is_(True))
            .order_by(Permission.id.asc())
            .all()
        )

    def list_for_resource(self, db: Session, *, resource_type: str, resource_id: int) -> list[Permission]:
        return (
            self._resource_query(db, resource_type=resource_type, resource_id=resource_id)
            .order_by(Permission.id.asc())
            .all()
        )

    def list_for_user(self, db: Session, user_id: int) -> list[Permission]:
        return self.query(db).filter(Permission.user_id == user_id).order_by(Permission.id.asc()).all()

    def list_for_user_on_files(self, db: Session, *, user_id: int, file_ids: Iterable[int]) -> list[Permission]:
        id_set = {item for item in file_ids if item is not None}
        if not id_set:
            return []
        return (
            self.query(db)
            .filter(Permission.user_id == user_id)
            .filter(Permission.resource_type == ResourceTypeEnum.FILE.value)
            .filter(Permission.file_id.in_(id_set))
            .all()
        )

    def list_for_user_on_directories(
        self, db: Session, *, user_id: int, directory_ids: Iterable[int]
    ) -> list[Permission]:
        id_set = {item for item in directory_ids if item is not None}
        if not id_set:
            return []
        return (
            self.query(db)
            .filter(Permission.user_id == user_id)
            .filter(Permission.resource_type == ResourceTypeEnum.DIRECTORY.value)
            .filter(Permission.directory_id.in_(id_set))
            .all()
        )

    def list_write_directory_ids(self, db: Session, user_id: int) -> list[int]:
        rows = (
            db.query(Permission.directory_id)
            .filter(Permission.user_id == user_id)
            .filter(Permission.resource_type == ResourceTypeEnum.DIRECTORY.value)
            .filter(Permission.permission_type == PermissionTypeEnum.WRITE.value)
            .all()
        )
        return [row[0] for row in rows if row[0] is not None]

    def upsert(
        self,
        db: Session,
        *,
        user_id: int,
        resource_type: str,
        resource_id: int,
        permission_type: str,
        granted_by: int,
        cascade_to_children: bool,
        auto_commit: bool = True,
    ) -> Permission:
        """按三元组写入授权：已存在则更新级别、授权人与级联标记。"""
        permission = self.get_for_user(
            db, user_id=user_id, resource_type=resource_type, resource_id=resource_id
        )
        if permission is None:
            permission = Permission(user_id=user_id, resource_type=resource_type)
            if resource_type == ResourceTypeEnum.FILE.value:
                permission.file_id = resource_id
            else:
                permission.directory_id = resource_id
        permission.permission_type = permission_type
        permission.granted_by = granted_by
        # 文件没有子节点，级联标记恒为 False
        permission.cascade_to_children = (
            bool(cascade_to_children) if resource_type == ResourceTypeEnum.DIRECTORY.value else False
        )
        return self.save(db, permission, auto_commit=auto_commit)

    def delete_for_user(
        self, db: Session, *, user_id: int, resource_type: str, resource_id: int
    ) -> int:
        """删除指定三元组的授权，返回删除行数；不提交事务。"""
        return (
            self._resource_query(db, resource_type=resource_type, resource_id=resource_id)
            .filter(Permission.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def delete_for_resources(
        self, db: Session, *, file_ids: Iterable[int] = (), directory_ids: Iterable[int] = ()
    ) -> int:
        removed = 0
        file_set = {item for item in file_ids if item is not None}
        dir_set = {item for item in directory_ids if item is not None}
        if file_set:
            removed += (
                self.query(db)
                .filter(Permission.file_id.in_(file_set))
                .delete(synchronize_session=False)
            )
        if dir_set:
            removed += (
                self.query(db)
                .filter(Permission.directory_id.in_(dir_set))
                .delete(synchronize_session=False)
            )
        return removed


permission_crud = CRUDPermission(Permission)
