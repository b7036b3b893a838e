"""枚举定义：约束用户角色、资源类型、权限级别与审批状态的可选值。"""

from enum import Enum


class UserRoleEnum(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class ResourceTypeEnum(str, Enum):
    """受访问控制约束的资源类型。"""

    FILE = "FILE"
    DIRECTORY = "DIRECTORY"


class PermissionTypeEnum(str, Enum):
    """权限级别，WRITE 在判定时隐含 READ。"""

    READ = "READ"
    WRITE = "WRITE"


class ApprovalStatusEnum(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalDecisionEnum(str, Enum):
    """审批记录中的决定类型。"""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
