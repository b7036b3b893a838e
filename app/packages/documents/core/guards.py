"""统一的角色闸门封装。

集中维护“哪些角色可以执行哪类操作”的判定与拦截逻辑，避免到处散落硬编码，便于后期统一调整。
"""

from __future__ import annotations

from typing import Iterable, Optional

from app.packages.documents.core.enums import UserRoleEnum
from app.packages.documents.core.exceptions import ForbiddenError


def role_of(user: object) -> str:
    role = getattr(user, "role", None)
    return role.value if isinstance(role, UserRoleEnum) else str(role or "")


def is_admin(user: object) -> bool:
    return role_of(user) == UserRoleEnum.ADMIN.value


def forbid_unless_roles(user: object, roles: Iterable[UserRoleEnum], *, message: Optional[str] = None) -> None:
    allowed = {role.value for role in roles}
    if role_of(user) not in allowed:
        raise ForbiddenError(message or "当前角色无权执行该操作")


def forbid_unless_admin(user: object, *, message: str) -> None:
    if not is_admin(user):
        raise ForbiddenError(message)
