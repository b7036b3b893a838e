"""级联传播引擎：将目录上的授权/撤销深度优先地物化到整棵子树。

所有写入只 ``flush`` 不提交，由调用方在同一事务中提交或回滚，
任何一步失败都会中止整个级联。
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.packages.documents.core.enums import ResourceTypeEnum
from app.packages.documents.core.exceptions import NotFoundError
from app.packages.documents.core.logger import logger
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.permissions import permission_crud


def cascade_grant(db: Session, directory_id: int, user_id: int, permission_type: str, granted_by: int) -> int:
    """为 ``directory_id`` 的全部后代写入授权，返回写入行数；重复调用结果不变。"""
    touched = 0
    for child in directory_crud.list_children(db, directory_id):
        permission_crud.upsert(
            db,
            user_id=user_id,
            resource_type=ResourceTypeEnum.DIRECTORY.value,
            resource_id=child.id,
            permission_type=permission_type,
            granted_by=granted_by,
            cascade_to_children=True,
            auto_commit=False,
        )
        touched += 1
        touched += cascade_grant(db, child.id, user_id, permission_type, granted_by)

    for file in file_crud.list_in_directory(db, directory_id):
        permission_crud.upsert(
            db,
            user_id=user_id,
            resource_type=ResourceTypeEnum.FILE.value,
            resource_id=file.id,
            permission_type=permission_type,
            granted_by=granted_by,
            cascade_to_children=False,
            auto_commit=False,
        )
        touched += 1
    return touched


def cascade_revoke(db: Session, directory_id: int, user_id: int) -> int:
    """删除 ``directory_id`` 全部后代上该用户的授权，返回删除行数。"""
    removed = 0
    for child in directory_crud.list_children(db, directory_id):
        removed += permission_crud.delete_for_user(
            db,
            user_id=user_id,
            resource_type=ResourceTypeEnum.DIRECTORY.value,
            resource_id=child.id,
        )
        removed += cascade_revoke(db, child.id, user_id)

    for file in file_crud.list_in_directory(db, directory_id):
        removed += permission_crud.delete_for_user(
            db,
            user_id=user_id,
            resource_type=ResourceTypeEnum.FILE.value,
            resource_id=file.id,
        )
    db.flush()
    return removed


def copy_cascading_to_directory(db: Session, *, parent_id: int, directory_id: int, granted_by: int) -> int:
    """新建目录时对父目录级联授权做一次性快照复制。"""
    copied = 0
    for row in permission_crud.list_cascading_for_directory(db, parent_id):
        permission_crud.upsert(
            db,
            user_id=row.user_id,
            resource_type=ResourceTypeEnum.DIRECTORY.value,
            resource_id=directory_id,
            permission_type=row.permission_type,
            granted_by=granted_by,
            cascade_to_children=True,
            auto_commit=False,
        )
        copied += 1
    return copied


def copy_cascading_to_file(db: Session, *, directory_id: int, file_id: int, granted_by: int) -> int:
    """首次上传时把所属目录的级联授权复制到文件（文件上不级联）。"""
    copied = 0
    for row in permission_crud.list_cascading_for_directory(db, directory_id):
        permission_crud.upsert(
            db,
            user_id=row.user_id,
            resource_type=ResourceTypeEnum.FILE.value,
            resource_id=file_id,
            permission_type=row.permission_type,
            granted_by=granted_by,
            cascade_to_children=False,
            auto_commit=False,
        )
        copied += 1
    return copied


def reconcile(db: Session, directory_id: int) -> int:
    """重新物化目录上每一条级联授权，修复此前中断或晚于授权创建的子树。"""
    directory = directory_crud.get(db, directory_id)
    if directory is None:
        raise NotFoundError("目录不存在")
    touched = 0
    for row in permission_crud.list_cascading_for_directory(db, directory_id):
        touched += cascade_grant(db, directory_id, row.user_id, row.permission_type, row.granted_by)
    logger.info("Reconciled cascading permissions on %s: %s rows", directory.path, touched)
    return touched
