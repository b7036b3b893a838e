"""目录 CRUD：所有查找均按规范路径或主键进行，不按目录名匹配。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.directory import Directory


class CRUDDirectory(CRUDBase[Directory]):
    def get_by_path(self, db: Session, path: str) -> Optional[Directory]:
        return self.query(db).filter(Directory.path == path).first()

    def list_by_paths(self, db: Session, paths: Iterable[str]) -> list[Directory]:
        tokens = {item for item in paths if item}
        if not tokens:
            return []
        return self.query(db).filter(Directory.path.in_(tokens)).all()

    def list_children(self, db: Session, parent_id: Optional[int]) -> list[Directory]:
        query = self.query(db)
        if parent_id is None:
            query = query.filter(Directory.parent_id.is_(None))
        else:
            query = query.filter(Directory.parent_id == parent_id)
        return query.order_by(Directory.name.asc()).all()

    def list_subtree(self, db: Session, path: str) -> list[Directory]:
        """返回以 ``path`` 为根的整棵子树（含自身），按路径深度倒序便于自底向上删除。"""
        items = (
            self.query(db)
            .filter(or_(Directory.path == path, Directory.path.startswith(path + "/", autoescape=True)))
            .all()
        )
        return sorted(items, key=lambda item: item.path.count("/"), reverse=True)

    def list_owned_by(self, db: Session, user_id: int) -> list[Directory]:
        return self.query(db).filter(Directory.created_by == user_id).all()

    def list_by_ids(self, db: Session, ids: Iterable[int]) -> list[Directory]:
        id_set = {item for item in ids if item is not None}
        if not id_set:
            return []
        return self.query(db).filter(Directory.id.in_(id_set)).all()


directory_crud = CRUDDirectory(Directory)
