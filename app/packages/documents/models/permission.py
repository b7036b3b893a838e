"""资源权限模型：用户对文件或目录的 READ/WRITE 授权。

同一 (user_id, resource_type, 资源 ID) 至多一条记录，授权按该三元组 upsert；
file_id 与 directory_id 恰有一个非空，并与 resource_type 对应。
"""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import expression

from app.packages.documents.core.enums import PermissionTypeEnum
from app.packages.documents.models.base import Base, TimestampMixin


class Permission(TimestampMixin, Base):
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_type", "file_id", name="uq_permissions_user_file"),
        UniqueConstraint("user_id", "resource_type", "directory_id", name="uq_permissions_user_directory"),
        CheckConstraint(
            "(resource_type = 'FILE' AND file_id IS NOT NULL AND directory_id IS NULL) OR "
            "(resource_type = 'DIRECTORY' AND directory_id IS NOT NULL AND file_id IS NULL)",
            name="single_resource",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    resource_type: Mapped[str] = mapped_column(String(20), index=True)
    file_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    directory_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    permission_type: Mapped[str] = mapped_column(String(20), default=PermissionTypeEnum.READ.value)
    granted_by: Mapped[int] = mapped_column(Integer)
    cascade_to_children: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=expression.false()
    )
