"""目录模型。

存储规则：
- path：以 '/' 开头，不以 '/' 结尾，无连续 '/'；根目录不入库；
- path 全局唯一，且恒等于父目录 path + '/' + name；
- parent_id 为空表示根目录下的一级目录。
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.documents.models.base import Base, CreatedByMixin, TimestampMixin


class Directory(CreatedByMixin, TimestampMixin, Base):
    __tablename__ = "directories"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    path: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
