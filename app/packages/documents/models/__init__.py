"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.documents.models.approval import ApprovalEvent
from app.packages.documents.models.base import Base
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.models.file_version import FileVersion
from app.packages.documents.models.permission import Permission
from app.packages.documents.models.user import User

__all__ = [
    "ApprovalEvent",
    "Base",
    "Directory",
    "FileRecord",
    "FileVersion",
    "Permission",
    "User",
]
