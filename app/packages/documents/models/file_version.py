"""文件历史版本模型：归档内容的不可变快照指针。"""

from typing import Optional

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.documents.models.base import Base, CreatedByMixin, TimestampMixin


class FileVersion(CreatedByMixin, TimestampMixin, Base):
    __tablename__ = "file_versions"
    __table_args__ = (
        UniqueConstraint("file_id", "version_number", name="uq_file_versions_file_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    file_id: Mapped[int] = mapped_column(Integer, index=True)
    # 归档内容在存储中的键，例如 "/Archive/team/report_v1.txt"
    file_path: Mapped[str] = mapped_column(String(1024))
    version_number: Mapped[int] = mapped_column(Integer)
    description: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
