"""审批状态机：PENDING → APPROVED / REJECTED。

上传与恢复都按同一规则重置状态：管理员直接通过并记录审批事件，其余角色回到待审批。
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.documents.core.constants import HTTP_STATUS_OK
from app.packages.documents.core.enums import (
    ApprovalDecisionEnum,
    ApprovalStatusEnum,
    UserRoleEnum,
)
from app.packages.documents.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.packages.documents.core.guards import forbid_unless_admin, forbid_unless_roles, is_admin
from app.packages.documents.core.locks import file_lock, tree_lock
from app.packages.documents.core.logger import logger
from app.packages.documents.core.responses import create_response
from app.packages.documents.core.timezone import format_datetime, now as tz_now
from app.packages.documents.crud.approvals import approval_crud
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.permissions import permission_crud
from app.packages.documents.crud.users import user_crud
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.user import User
from app.packages.documents.services.directory_service import serialize_file


def apply_upload_status(db: Session, file: FileRecord, actor: User) -> None:
    """按上传规则重置文件状态；文件需已 ``flush`` 拿到主键。"""
    if is_admin(actor):
        file.approval_status = ApprovalStatusEnum.APPROVED.value
        file.approved_by = actor.id
        approval_crud.upsert(
            db,
            file_id=file.id,
            decision=ApprovalDecisionEnum.APPROVED.value,
            decided_by=actor.id,
            decided_at=tz_now(),
            auto_commit=False,
        )
    else:
        file.approval_status = ApprovalStatusEnum.PENDING.value
        file.approved_by = None


class ApprovalService:
    """审批相关的业务能力。"""

    def approve(self, db: Session, *, current_user: User, file_id: int) -> dict:
        file = self._decide(db, current_user=current_user, file_id=file_id, decision=ApprovalDecisionEnum.APPROVED)
        return create_response("文件审批通过", serialize_file(file), HTTP_STATUS_OK)

    def reject(self, db: Session, *, current_user: User, file_id: int) -> dict:
        file = self._decide(db, current_user=current_user, file_id=file_id, decision=ApprovalDecisionEnum.REJECTED)
        return create_response("文件已驳回", serialize_file(file), HTTP_STATUS_OK)

    def _decide(
        self, db: Session, *, current_user: User, file_id: int, decision: ApprovalDecisionEnum
    ) -> FileRecord:
        forbid_unless_admin(current_user, message="只有管理员可以审批文件")
        file = file_crud.get(db, file_id)
        if file is None:
            raise NotFoundError("文件不存在")

        with tree_lock(file.directory_path), file_lock(file.path):
            file = file_crud.get_by_path(db, file.path, for_update=True)
            if file is None:
                raise NotFoundError("文件不存在")
            if file.approval_status != ApprovalStatusEnum.PENDING.value:
                action = "审批" if decision is ApprovalDecisionEnum.APPROVED else "驳回"
                raise ConflictError(f"文件无法{action}，当前状态为 {file.approval_status}")

            try:
                if decision is ApprovalDecisionEnum.APPROVED:
                    file.approval_status = ApprovalStatusEnum.APPROVED.value
                    file.approved_by = current_user.id
                else:
                    file.approval_status = ApprovalStatusEnum.REJECTED.value
                approval_crud.upsert(
                    db,
                    file_id=file.id,
                    decision=decision.value,
                    decided_by=current_user.id,
                    decided_at=tz_now(),
                    auto_commit=False,
                )
                db.commit()
            except Exception:
                db.rollback()
                raise
            db.refresh(file)

        logger.info("approval.%s file_id=%s user_id=%s", decision.value.lower(), file.id, current_user.id)
        return file

    def get_approval_list(self, db: Session, *, current_user: User) -> dict:
        forbid_unless_roles(
            current_user,
            (UserRoleEnum.ADMIN, UserRoleEnum.EDITOR),
            message="当前角色无权查看待审批列表",
        )
        if is_admin(current_user):
            files = file_crud.list_pending(db)
        else:
            owned = directory_crud.list_owned_by(db, current_user.id)
            granted = directory_crud.list_by_ids(db, permission_crud.list_write_directory_ids(db, current_user.id))
            directories = {item.id: item for item in [*owned, *granted]}
            files = file_crud.list_pending_under(
                db,
                directory_ids=directories.keys(),
                directory_paths=[item.path for item in directories.values()],
            )
        data = {"total": len(files), "items": [serialize_file(item) for item in files]}
        return create_response("获取待审批列表成功", data, HTTP_STATUS_OK)

    def get_decided_list(self, db: Session, *, current_user: User, user_id: Optional[int] = None) -> dict:
        target_id = user_id if user_id is not None else current_user.id
        if target_id != current_user.id and not is_admin(current_user):
            raise ForbiddenError("只能查看自己的审批记录")
        if user_crud.get(db, target_id) is None:
            raise NotFoundError("用户不存在")

        events = approval_crud.list_decided_by(db, target_id)
        files = {item.id: item for item in file_crud.list_by_ids(db, [event.file_id for event in events])}
        items = []
        for event in events:
            file = files.get(event.file_id)
            if file is None:
                continue
            entry = serialize_file(file)
            entry["decision"] = event.decision
            entry["decided_by"] = event.decided_by
            entry["decided_at"] = format_datetime(event.decided_at)
            items.append(entry)
        return create_response("获取审批记录成功", {"total": len(items), "items": items}, HTTP_STATUS_OK)


approval_service = ApprovalService()
