"""用户 CRUD：集中管理用户相关的数据操作。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.documents.crud.base import CRUDBase
from app.packages.documents.models.user import User


class CRUDUser(CRUDBase[User]):
    """封装常用的用户查询方法，供业务层复用。"""

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """根据唯一用户名获取用户实例。"""
        return self.query(db).filter(User.username == username).first()

    def list_all(self, db: Session) -> list[User]:
        return self.query(db).order_by(User.id.asc()).all()


user_crud = CRUDUser(User)
