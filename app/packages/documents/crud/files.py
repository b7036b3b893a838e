"""文件记录 CRUD。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.packages.documents.core.enums import ApprovalStatusEnum
from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.file_record import FileRecord


class CRUDFileRecord(CRUDBase[FileRecord]):
    def get_by_path(self, db: Session, path: str, *, for_update: bool = False) -> Optional[FileRecord]:
        query = self.query(db).filter(FileRecord.path == path)
        if for_update:
            # SQLite 会忽略行锁，PostgreSQL 下串行化同一文件的并发覆盖
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_in_directory(self, db: Session, directory_id: Optional[int]) -> list[FileRecord]:
        query = self.query(db)
        if directory_id is None:
            query = query.filter(FileRecord.directory_id.is_(None))
        else:
            query = query.filter(FileRecord.directory_id == directory_id)
        return query.order_by(FileRecord.name.asc()).all()

    def list_in_subtree(self, db: Session, path: str) -> list[FileRecord]:
        return (
            self.query(db)
            .filter(
                or_(
                    FileRecord.directory_path == path,
                    FileRecord.directory_path.startswith(path + "/", autoescape=True),
                )
            )
            .all()
        )

    def list_pending(self, db: Session) -> list[FileRecord]:
        return (
            self.query(db)
            .filter(FileRecord.approval_status == ApprovalStatusEnum.PENDING.value)
            .order_by(FileRecord.id.asc())
            .all()
        )

    def list_pending_under(
        self,
        db: Session,
        *,
        directory_ids: Iterable[int],
        directory_paths: Iterable[str],
    ) -> list[FileRecord]:
        """按“目录 ID 命中”或“目录路径前缀命中”两种条件合并查询待审批文件，结果去重。"""
        id_set = {item for item in directory_ids if item is not None}
        path_set = {item for item in directory_paths if item}
        if not id_set and not path_set:
            return []

        conditions = []
        if id_set:
            conditions.append(FileRecord.directory_id.in_(id_set))
        for prefix in path_set:
            conditions.append(FileRecord.directory_path == prefix)
            conditions.append(FileRecord.directory_path.startswith(prefix + "/", autoescape=True))

        rows = (
            self.query(db)
            .filter(FileRecord.approval_status == ApprovalStatusEnum.PENDING.value)
            .filter(or_(*conditions))
            .distinct()
            .order_by(FileRecord.id.asc())
            .all()
        )
        unique: dict[int, FileRecord] = {}
        for row in rows:
            unique.setdefault(row.id, row)
        return list(unique.values())

    def list_by_ids(self, db: Session, ids: Iterable[int]) -> list[FileRecord]:
        id_set = {item for item in ids if item is not None}
        if not id_set:
            return []
        return self.query(db).filter(FileRecord.id.in_(id_set)).order_by(FileRecord.id.asc()).all()


file_crud = CRUDFileRecord(FileRecord)
