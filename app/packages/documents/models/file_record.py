"""文件记录模型：每个文件在规范路径上只有一份当前内容，历史内容归档为版本。"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.documents.core.enums import ApprovalStatusEnum
from app.packages.documents.models.base import Base, CreatedByMixin, TimestampMixin


class FileRecord(CreatedByMixin, TimestampMixin, Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    # 规范路径，例如 "/team/report.txt"；根目录下的文件为 "/report.txt"
    path: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    directory_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    # 所属目录路径的冗余副本，根目录为空串，用于审批列表的前缀匹配
    directory_path: Mapped[str] = mapped_column(String(1024), default="", index=True)
    approval_status: Mapped[str] = mapped_column(
        String(20), default=ApprovalStatusEnum.PENDING.value, index=True
    )
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
