"""目录服务：目录的创建、删除与内容浏览。"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.constants import HTTP_STATUS_CREATED, HTTP_STATUS_OK
from app.packages.documents.core.enums import ApprovalStatusEnum, PermissionTypeEnum, UserRoleEnum
from app.packages.documents.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from app.packages.documents.core.guards import forbid_unless_admin, forbid_unless_roles, is_admin
from app.packages.documents.core.locks import tree_lock
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.core.timezone import format_datetime
from app.packages.documents.crud.approvals import approval_crud
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.permissions import permission_crud
from app.packages.documents.crud.versions import version_crud
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.user import User
from app.packages.documents.services.blob_store import get_blob_store
from app.packages.documents.services.cascade_service import copy_cascading_to_directory
from app.packages.documents.services.permission_resolver import (
    Principal,
    check_view,
    has_path_access,
    view_of_directory,
    view_of_file,
)
from app.packages.documents.utils.path_utils import archive_mirror, normalize_path, split_path


def serialize_directory(directory: Directory) -> dict:
    return {
        "id": directory.id,
        "name": directory.name,
        "path": directory.path,
        "parent_id": directory.parent_id,
        "created_by": directory.created_by,
        "create_time": format_datetime(directory.create_time),
    }


def serialize_file(file: FileRecord) -> dict:
    return {
        "id": file.id,
        "name": file.name,
        "path": file.path,
        "directory_id": file.directory_id,
        "directory_path": file.directory_path,
        "created_by": file.created_by,
        "approval_status": file.approval_status,
        "approved_by": file.approved_by,
        "description": file.description,
        "create_time": format_datetime(file.create_time),
        "update_time": format_datetime(file.update_time),
    }


class DirectoryService:
    """聚合目录树的维护与浏览能力。"""

    def create_directory(self, db: Session, *, current_user: User, folder_path: Optional[str]) -> dict:
        forbid_unless_roles(
            current_user,
            (UserRoleEnum.ADMIN, UserRoleEnum.EDITOR),
            message="只有管理员或编辑可以创建目录",
        )
        path = normalize_path(folder_path)
        if not path:
            raise InvalidInputError("目录路径不能为空")

        settings = get_settings()
        parent_path, name = split_path(path)
        if not parent_path and name == settings.archive_dir_name:
            raise InvalidInputError(f"顶层目录不能命名为 {settings.archive_dir_name}")

        # 顶层目录与根目录下的同名文件互斥，需同时持有根目录的子树锁
        with tree_lock(parent_path), tree_lock(path):
            if directory_crud.get_by_path(db, path) is not None:
                raise ConflictError("目录已存在")
            if file_crud.get_by_path(db, path) is not None:
                raise ConflictError("同名文件已存在")

            parent: Optional[Directory] = None
            if parent_path:
                parent = directory_crud.get_by_path(db, parent_path)
                if parent is None:
                    raise NotFoundError("父目录不存在")
                if not is_admin(current_user) and not has_path_access(
                    db, current_user.id, current_user.role, parent_path, PermissionTypeEnum.WRITE.value
                ):
                    raise ForbiddenError("没有在父目录下创建目录的权限")

            get_blob_store().makedirs(path)

            directory = Directory(
                name=name,
                path=path,
                parent_id=parent.id if parent else None,
                created_by=current_user.id,
            )
            try:
                directory_crud.save(db, directory, auto_commit=False)
                copied = 0
                if parent is not None:
                    copied = copy_cascading_to_directory(
                        db, parent_id=parent.id, directory_id=directory.id, granted_by=current_user.id
                    )
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ConflictError("目录已存在") from exc
            except Exception:
                db.rollback()
                raise
            db.refresh(directory)

        logger.info(
            "directory.create path=%s user_id=%s inherited_permissions=%s", path, current_user.id, copied
        )
        return create_response("目录创建成功", serialize_directory(directory), HTTP_STATUS_CREATED)

    def delete_directory(self, db: Session, *, current_user: User, folder_path: Optional[str]) -> dict:
        forbid_unless_admin(current_user, message="只有管理员可以删除目录")
        path = normalize_path(folder_path)
        if not path:
            raise InvalidInputError("不能删除根目录")

        with tree_lock(path):
            directory = directory_crud.get_by_path(db, path)
            if directory is None:
                raise NotFoundError("目录不存在")

            directories = directory_crud.list_subtree(db, path)
            files = file_crud.list_in_subtree(db, path)
            directory_ids = [item.id for item in directories]
            file_ids = [item.id for item in files]

            try:
                for version in version_crud.list_for_files(db, file_ids):
                    db.delete(version)
                for event in approval_crud.list_for_files(db, file_ids):
                    db.delete(event)
                permission_crud.delete_for_resources(db, file_ids=file_ids, directory_ids=directory_ids)
                for file in files:
                    db.delete(file)
                for item in directories:
                    db.delete(item)
                db.flush()

                store = get_blob_store()
                store.remove_tree(path)
                store.remove_tree(archive_mirror(get_settings().archive_dir_name, path))
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info(
            "directory.delete path=%s user_id=%s directories=%s files=%s",
            path,
            current_user.id,
            len(directory_ids),
            len(file_ids),
        )
        return create_response(
            "目录删除成功",
            {"path": path, "deleted_directories": len(directory_ids), "deleted_files": len(file_ids)},
            HTTP_STATUS_OK,
        )

    def list_directory(self, db: Session, *, current_user: User, path: Optional[str]) -> dict:
        key = normalize_path(path)
        principal = Principal.of(current_user)
        current: Optional[Directory] = None
        parent: Optional[Directory] = None

        if key:
            current = directory_crud.get_by_path(db, key)
            if current is None:
                raise NotFoundError("目录不存在")
            current_view = view_of_directory(db, current)
            can_read_current = check_view(db, principal, current_view, PermissionTypeEnum.READ.value)
            if not can_read_current:
                raise ForbiddenError("没有访问该目录的权限")
            can_edit_current = check_view(db, principal, current_view, PermissionTypeEnum.WRITE.value)
            if current.parent_id is not None:
                parent = directory_crud.get(db, current.parent_id)
            self._ensure_mirror(key)
        else:
            # 根目录没有归属者，子项逐个过滤
            can_read_current = False
            can_edit_current = has_path_access(
                db, current_user.id, current_user.role, "", PermissionTypeEnum.WRITE.value
            )

        folders = []
        for child in directory_crud.list_children(db, current.id if current else None):
            view = view_of_directory(db, child)
            if not can_read_current and not check_view(db, principal, view, PermissionTypeEnum.READ.value):
                continue
            entry = serialize_directory(child)
            entry["is_owner"] = child.created_by == current_user.id
            entry["can_edit"] = check_view(db, principal, view, PermissionTypeEnum.WRITE.value)
            folders.append(entry)

        files = []
        for file in file_crud.list_in_directory(db, current.id if current else None):
            view = view_of_file(db, file)
            can_edit = check_view(db, principal, view, PermissionTypeEnum.WRITE.value)
            if not can_read_current and not check_view(db, principal, view, PermissionTypeEnum.READ.value):
                continue
            approved = file.approval_status == ApprovalStatusEnum.APPROVED.value
            if not principal.is_admin and not approved and not can_edit:
                continue
            entry = serialize_file(file)
            entry["is_owner"] = file.created_by == current_user.id
            entry["can_edit"] = can_edit
            files.append(entry)

        data = {
            "current": serialize_directory(current) if current else {"id": None, "name": "", "path": ""},
            "parent": serialize_directory(parent) if parent else None,
            "can_edit": can_edit_current,
            "folders": folders,
            "files": files,
        }
        return create_response("获取目录内容成功", data, HTTP_STATUS_OK)

    def _ensure_mirror(self, key: str) -> None:
        store = get_blob_store()
        if store.dir_exists(key):
            return
        try:
            store.makedirs(key)
            logger.warning("directory.mirror_recreated path=%s", key)
        except OSError as exc:
            logger.warning("directory.mirror_recreate_failed path=%s error=%s", key, exc)


directory_service = DirectoryService()
