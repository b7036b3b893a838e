"""文件服务：上传（含历史版本归档）与内容读取。"""

from __future__ import annotations

from typing import Optional

from fastapi.responses import FileResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.constants import HTTP_STATUS_OK
from app.packages.documents.core.enums import ApprovalStatusEnum, PermissionTypeEnum, UserRoleEnum
from app.packages.documents.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from app.packages.documents.core.guards import forbid_unless_roles
from app.packages.documents.core.locks import file_lock, tree_lock
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.versions import version_crud
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.file_version import FileVersion
from app.packages.documents.models.user import User
from app.packages.documents.services.approval_service import apply_upload_status
from app.packages.documents.services.blob_store import BlobTransaction, get_blob_store
from app.packages.documents.services.cascade_service import copy_cascading_to_file
from app.packages.documents.services.directory_service import serialize_file
from app.packages.documents.services.permission_resolver import has_path_access, user_can
from app.packages.documents.utils.path_utils import (
    archive_path,
    join_path,
    normalize_path,
    validate_name,
)


class FileService:
    """聚合文件上传与读取逻辑。"""

    def upload_file(
        self,
        db: Session,
        *,
        current_user: User,
        folder_path: Optional[str],
        file_name: Optional[str],
        content: bytes,
        description: Optional[str] = None,
    ) -> dict:
        forbid_unless_roles(
            current_user,
            (UserRoleEnum.ADMIN, UserRoleEnum.EDITOR),
            message="当前角色无权上传文件",
        )
        directory_key = normalize_path(folder_path)
        name = validate_name(file_name)

        if not directory_key and name == get_settings().archive_dir_name:
            raise InvalidInputError("文件名与归档目录冲突")

        path = join_path(directory_key, name)
        clean_description = description.strip() if description and description.strip() else None

        # 先目录树锁后文件锁
        with tree_lock(directory_key), file_lock(path):
            directory: Optional[Directory] = None
            if directory_key:
                directory = directory_crud.get_by_path(db, directory_key)
                if directory is None:
                    raise NotFoundError("目标目录不存在")

            if not has_path_access(db, current_user.id, current_user.role, directory_key, PermissionTypeEnum.WRITE.value):
                raise ForbiddenError("没有向该目录上传文件的权限")
            if directory_crud.get_by_path(db, path) is not None:
                raise ConflictError("同名目录已存在")

            store = get_blob_store()
            tx = BlobTransaction(store)
            version_number: Optional[int] = None
            archived_key: Optional[str] = None
            try:
                existing = file_crud.get_by_path(db, path, for_update=True)
                staged = tx.stage(path, content)

                if existing is None:
                    file = FileRecord(
                        name=name,
                        path=path,
                        directory_id=directory.id if directory else None,
                        directory_path=directory_key,
                        created_by=current_user.id,
                        description=clean_description,
                    )
                    file_crud.save(db, file, auto_commit=False)
                    apply_upload_status(db, file, current_user)
                    if directory is not None:
                        copy_cascading_to_file(
                            db, directory_id=directory.id, file_id=file.id, granted_by=current_user.id
                        )
                else:
                    file = existing
                    if store.exists(path):
                        version_number = version_crud.next_number(db, file.id)
                        archived_key = archive_path(
                            get_settings().archive_dir_name, directory_key, name, version_number
                        )
                        tx.copy(path, archived_key)
                        version_crud.save(
                            db,
                            FileVersion(
                                file_id=file.id,
                                file_path=archived_key,
                                version_number=version_number,
                                created_by=file.created_by,
                                description=file.description,
                                approved_by=file.approved_by,
                            ),
                            auto_commit=False,
                        )
                    else:
                        logger.warning("file.upload current_blob_missing path=%s file_id=%s", path, file.id)
                    file.description = clean_description
                    apply_upload_status(db, file, current_user)
                    file_crud.save(db, file, auto_commit=False)

                tx.commit(staged, path, restore_from=archived_key)
                db.commit()
                tx.finish()
            except IntegrityError as exc:
                db.rollback()
                tx.rollback()
                raise ConflictError("文件版本写入冲突，请重试") from exc
            except Exception:
                db.rollback()
                tx.rollback()
                raise
            db.refresh(file)

        logger.info(
            "file.upload path=%s file_id=%s user_id=%s version=%s status=%s",
            path,
            file.id,
            current_user.id,
            version_number,
            file.approval_status,
        )
        return create_response(
            "文件上传成功",
            {"file": serialize_file(file), "version_number": version_number},
            HTTP_STATUS_OK,
        )

    def get_file_content(self, db: Session, *, current_user: User, file_id: int) -> FileResponse:
        file = file_crud.get(db, file_id)
        if file is None:
            raise NotFoundError("文件不存在")
        if not user_can(db, current_user, file, PermissionTypeEnum.READ.value):
            raise ForbiddenError("没有读取该文件的权限")
        # 未通过审批的文件仅对管理员、创建者与有写权限的用户可见
        if file.approval_status != ApprovalStatusEnum.APPROVED.value and not user_can(
            db, current_user, file, PermissionTypeEnum.WRITE.value
        ):
            raise ForbiddenError("文件尚未通过审批")
        return get_blob_store().download(file.path, filename=file.name)


file_service = FileService()
