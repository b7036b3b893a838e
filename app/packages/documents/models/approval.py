"""审批记录模型：每个文件仅保留最近一次审批决定（通过或驳回）。"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.documents.models.base import Base


class ApprovalEvent(Base):
    __tablename__ = "approvals"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    file_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    decision: Mapped[str] = mapped_column(String(20))
    decided_by: Mapped[int] = mapped_column(Integer, index=True)
    decided_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
