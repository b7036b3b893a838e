"""文件版本 CRUD。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.file_version import FileVersion


class CRUDFileVersion(CRUDBase[FileVersion]):
    def get_by_number(self, db: Session, *, file_id: int, version_number: int) -> Optional[FileVersion]:
        return (
            self.query(db)
            .filter(FileVersion.file_id == file_id)
            .filter(FileVersion.version_number == version_number)
            .first()
        )

    def next_number(self, db: Session, file_id: int) -> int:
        """返回 ``max(version_number) + 1``，尚无版本时为 1。"""
        current = (
            db.query(func.max(FileVersion.version_number))
            .filter(FileVersion.file_id == file_id)
            .scalar()
        )
        return (current or 0) + 1

    def list_for_file(self, db: Session, file_id: int) -> list[FileVersion]:
        return (
            self.query(db)
            .filter(FileVersion.file_id == file_id)
            .order_by(FileVersion.version_number.desc())
            .all()
        )

    def list_for_files(self, db: Session, file_ids: Iterable[int]) -> list[FileVersion]:
        id_set = {item for item in file_ids if item is not None}
        if not id_set:
            return []
        return (
            self.query(db)
            .filter(FileVersion.file_id.in_(id_set))
            .order_by(FileVersion.file_id.asc(), FileVersion.version_number.desc())
            .all()
        )


version_crud = CRUDFileVersion(FileVersion)
