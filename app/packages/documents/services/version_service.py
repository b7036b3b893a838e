"""版本服务：历史版本的查询、对比、恢复与删除。"""

from __future__ import annotations

import difflib
import posixpath
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.constants import BINARY_EXTENSIONS, HTTP_STATUS_OK
from app.packages.documents.core.enums import PermissionTypeEnum
from app.packages.documents.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from app.packages.documents.core.guards import is_admin
from app.packages.documents.core.locks import file_lock, tree_lock
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.core.timezone import format_datetime
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.versions import version_crud
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.file_version import FileVersion
from app.packages.documents.models.user import User
from app.packages.documents.services.approval_service import apply_upload_status
from app.packages.documents.services.blob_store import BlobTransaction, get_blob_store
from app.packages.documents.services.directory_service import serialize_file
from app.packages.documents.services.permission_resolver import user_can
from app.packages.documents.utils.path_utils import archive_path, parse_version_number


def _is_text(name: str) -> bool:
    return posixpath.splitext(name)[1].lower() not in BINARY_EXTENSIONS


def serialize_version(version: FileVersion) -> dict:
    return {
        "id": version.id,
        "file_id": version.file_id,
        "file_path": version.file_path,
        "version_number": version.version_number,
        "created_by": version.created_by,
        "description": version.description,
        "approved_by": version.approved_by,
        "create_time": format_datetime(version.create_time),
    }


class VersionService:
    """聚合历史版本相关的业务能力。"""

    def _load_file(self, db: Session, file_id: int) -> FileRecord:
        file = file_crud.get(db, file_id)
        if file is None:
            raise NotFoundError("文件不存在")
        return file

    def _load_version(self, db: Session, file: FileRecord, version_number: int) -> FileVersion:
        version = version_crud.get_by_number(db, file_id=file.id, version_number=version_number)
        if version is None:
            raise NotFoundError(f"版本 {version_number} 不存在")
        return version

    def _require(self, db: Session, user: User, file: FileRecord, level: str) -> None:
        if not user_can(db, user, file, level):
            raise ForbiddenError("没有访问该文件的权限")

    def list_versions(self, db: Session, *, current_user: User, file_id: int) -> dict:
        file = self._load_file(db, file_id)
        self._require(db, current_user, file, PermissionTypeEnum.READ.value)
        versions = version_crud.list_for_file(db, file.id)
        data = {
            "file": serialize_file(file),
            "total": len(versions),
            "items": [serialize_version(item) for item in versions],
        }
        return create_response("获取版本列表成功", data, HTTP_STATUS_OK)

    def get_version(self, db: Session, *, current_user: User, file_id: int, version_number: str | int) -> dict:
        file = self._load_file(db, file_id)
        number = parse_version_number(version_number)
        self._require(db, current_user, file, PermissionTypeEnum.READ.value)
        version = self._load_version(db, file, number)

        data = serialize_version(version)
        data["is_text"] = _is_text(file.name)
        data["content"] = None
        store = get_blob_store()
        if data["is_text"] and store.exists(version.file_path):
            data["content"] = store.read(version.file_path).decode("utf-8", errors="replace")
        return create_response("获取版本详情成功", data, HTTP_STATUS_OK)

    def compare_versions(
        self,
        db: Session,
        *,
        current_user: User,
        file_id: int,
        first: str | int,
        second: str | int,
    ) -> dict:
        file = self._load_file(db, file_id)
        first_number = parse_version_number(first)
        second_number = parse_version_number(second)
        self._require(db, current_user, file, PermissionTypeEnum.READ.value)
        if not _is_text(file.name):
            raise InvalidInputError("二进制文件不支持内容对比")

        store = get_blob_store()
        contents: list[str] = []
        for number in (first_number, second_number):
            version = self._load_version(db, file, number)
            if not store.exists(version.file_path):
                raise NotFoundError(f"版本 {number} 的文件内容不存在")
            contents.append(store.read(version.file_path).decode("utf-8", errors="replace"))

        diff = difflib.unified_diff(
            contents[0].splitlines(keepends=True),
            contents[1].splitlines(keepends=True),
            fromfile=f"v{first_number}",
            tofile=f"v{second_number}",
        )
        data = {
            "file_id": file.id,
            "version1": {"version_number": first_number, "content": contents[0]},
            "version2": {"version_number": second_number, "content": contents[1]},
            "diff": "".join(diff),
        }
        return create_response("版本对比成功", data, HTTP_STATUS_OK)

    def restore_version(
        self, db: Session, *, current_user: User, file_id: int, version_number: str | int
    ) -> dict:
        """将历史版本恢复为当前内容：当前内容先归档为新版本，再按上传规则重置状态。"""
        file = self._load_file(db, file_id)
        number = parse_version_number(version_number)
        self._require(db, current_user, file, PermissionTypeEnum.WRITE.value)
        target = self._load_version(db, file, number)

        settings = get_settings()
        store = get_blob_store()
        if not store.exists(target.file_path):
            raise NotFoundError(f"版本 {number} 的文件内容不存在")

        with tree_lock(file.directory_path), file_lock(file.path):
            tx = BlobTransaction(store)
            snapshot_number: Optional[int] = None
            archived_key: Optional[str] = None
            try:
                file = file_crud.get_by_path(db, file.path, for_update=True)
                if file is None:
                    raise NotFoundError("文件不存在")
                staged = tx.stage(file.path, store.read(target.file_path))

                if store.exists(file.path):
                    snapshot_number = version_crud.next_number(db, file.id)
                    archived_key = archive_path(
                        settings.archive_dir_name, file.directory_path, file.name, snapshot_number
                    )
                    tx.copy(file.path, archived_key)
                    version_crud.save(
                        db,
                        FileVersion(
                            file_id=file.id,
                            file_path=archived_key,
                            version_number=snapshot_number,
                            created_by=file.created_by,
                            description=file.description,
                            approved_by=file.approved_by,
                        ),
                        auto_commit=False,
                    )
                else:
                    logger.warning("version.restore current_blob_missing path=%s", file.path)

                if settings.restore_transfers_ownership:
                    file.created_by = current_user.id
                file.description = target.description
                apply_upload_status(db, file, current_user)
                file_crud.save(db, file, auto_commit=False)

                tx.commit(staged, file.path, restore_from=archived_key)
                db.commit()
                tx.finish()
            except IntegrityError as exc:
                db.rollback()
                tx.rollback()
                raise ConflictError("版本写入冲突，请重试") from exc
            except Exception:
                db.rollback()
                tx.rollback()
                raise
            db.refresh(file)

        logger.info(
            "version.restore file_id=%s restored=%s snapshot=%s user_id=%s",
            file.id,
            number,
            snapshot_number,
            current_user.id,
        )
        data = {
            "file": serialize_file(file),
            "restored_version": number,
            "snapshot_version": snapshot_number,
        }
        return create_response("版本恢复成功", data, HTTP_STATUS_OK)

    def delete_version(
        self, db: Session, *, current_user: User, file_id: int, version_number: str | int
    ) -> dict:
        file = self._load_file(db, file_id)
        number = parse_version_number(version_number)
        if not is_admin(current_user) and file.created_by != current_user.id:
            raise ForbiddenError("只有管理员或文件创建者可以删除版本")
        version = self._load_version(db, file, number)

        with tree_lock(file.directory_path), file_lock(file.path):
            blob_key = version.file_path
            version_crud.hard_delete(db, version)
            # 版本行已提交删除，归档文件删除失败只记录日志
            try:
                get_blob_store().remove(blob_key)
            except OSError as exc:
                logger.warning("version.delete blob_remove_failed path=%s error=%s", blob_key, exc)

        logger.info("version.delete file_id=%s version=%s user_id=%s", file.id, number, current_user.id)
        return create_response("版本删除成功", {"file_id": file.id, "version_number": number}, HTTP_STATUS_OK)


version_service = VersionService()
