"""审批记录 CRUD。"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.approval import ApprovalEvent


class CRUDApproval(CRUDBase[ApprovalEvent]):
    def get_by_file(self, db: Session, file_id: int) -> Optional[ApprovalEvent]:
        return self.query(db).filter(ApprovalEvent.file_id == file_id).first()

    def upsert(
        self,
        db: Session,
        *,
        file_id: int,
        decision: str,
        decided_by: int,
        decided_at: datetime,
        auto_commit: bool = True,
    ) -> ApprovalEvent:
        """每个文件仅保留最近一次决定：存在则覆盖，否则新建。"""
        event = self.get_by_file(db, file_id)
        if event is None:
            event = ApprovalEvent(file_id=file_id)
        event.decision = decision
        event.decided_by = decided_by
        event.decided_at = decided_at
        return self.save(db, event, auto_commit=auto_commit)

    def list_decided_by(self, db: Session, user_id: int) -> list[ApprovalEvent]:
        return (
            self.query(db)
            .filter(ApprovalEvent.decided_by == user_id)
            .order_by(ApprovalEvent.decided_at.desc())
            .all()
        )

    def list_for_files(self, db: Session, file_ids: Iterable[int]) -> list[ApprovalEvent]:
        id_set = {item for item in file_ids if item is not None}
        if not id_set:
            return []
        return self.query(db).filter(ApprovalEvent.file_id.in_(id_set)).all()


approval_crud = CRUDApproval(ApprovalEvent)
