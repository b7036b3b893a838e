"""权限解析器：根据角色、归属、直接授权与祖先级联授权计算有效访问权限。

解析顺序（命中即返回）：
1. 管理员直接放行；
2. 资源创建者拥有全部读写权限；
3. 资源上存在满足级别的直接授权；
4. 文件资源：所属目录上存在满足级别的直接授权；
5. 祖先目录（由深到浅）上存在满足级别且 ``cascade_to_children`` 为真的授权；
6. 其余情况拒绝。

``evaluate`` 是不依赖数据库的纯函数，``has_access`` 负责加载资源与授权后调用它。
解析器从不因“无权限”抛出异常，由调用方决定如何响应。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from app.packages.documents.core.enums import PermissionTypeEnum, ResourceTypeEnum, UserRoleEnum
from app.packages.documents.core.guards import role_of
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.files import file_crud
from app.packages.documents.crud.permissions import permission_crud, satisfying_types
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.utils.path_utils import ancestor_paths


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str

    @classmethod
    def of(cls, user) -> "Principal":
        return cls(user_id=user.id, role=role_of(user))

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.ADMIN.value


@dataclass(frozen=True)
class Grant:
    resource_type: str
    resource_id: int
    permission_type: str
    cascade_to_children: bool = False


@dataclass(frozen=True)
class ResourceView:
    """已加载资源的最小视图。

    ``owning_directory_id`` 仅对文件有意义；``ancestor_directory_ids`` 由深到浅排列，
    对文件而言是其所属目录的祖先，不含所属目录本身。
    """

    resource_type: str
    resource_id: int
    created_by: int
    owning_directory_id: Optional[int] = None
    ancestor_directory_ids: tuple[int, ...] = field(default_factory=tuple)


def _satisfies(grant: Grant, required: str) -> bool:
    return grant.permission_type in satisfying_types(required)


def evaluate(principal: Principal, resource: ResourceView, action: str, grants: Sequence[Grant]) -> bool:
    """对 (主体, 资源, 动作) 给出放行/拒绝决定。"""
    if principal.is_admin:
        return True
    if resource.created_by == principal.user_id:
        return True

    def direct(resource_type: str, resource_id: Optional[int]) -> bool:
        if resource_id is None:
            return False
        return any(
            grant.resource_type == resource_type
            and grant.resource_id == resource_id
            and _satisfies(grant, action)
            for grant in grants
        )

    if direct(resource.resource_type, resource.resource_id):
        return True

    if resource.resource_type == ResourceTypeEnum.FILE.value and direct(
        ResourceTypeEnum.DIRECTORY.value, resource.owning_directory_id
    ):
        return True

    for ancestor_id in resource.ancestor_directory_ids:
        for grant in grants:
            if (
                grant.resource_type == ResourceTypeEnum.DIRECTORY.value
                and grant.resource_id == ancestor_id
                and grant.cascade_to_children
                and _satisfies(grant, action)
            ):
                return True
    return False


def _ancestor_ids(db: Session, path: str) -> tuple[int, ...]:
    chain = ancestor_paths(path)
    if not chain:
        return ()
    by_path = {item.path: item.id for item in directory_crud.list_by_paths(db, chain)}
    return tuple(by_path[item] for item in chain if item in by_path)


def view_of_directory(db: Session, directory: Directory) -> ResourceView:
    return ResourceView(
        resource_type=ResourceTypeEnum.DIRECTORY.value,
        resource_id=directory.id,
        created_by=directory.created_by,
        ancestor_directory_ids=_ancestor_ids(db, directory.path),
    )


def view_of_file(db: Session, file: FileRecord) -> ResourceView:
    owning_id = file.directory_id
    if owning_id is None and file.directory_path:
        owner_dir = directory_crud.get_by_path(db, file.directory_path)
        owning_id = owner_dir.id if owner_dir else None
    return ResourceView(
        resource_type=ResourceTypeEnum.FILE.value,
        resource_id=file.id,
        created_by=file.created_by,
        owning_directory_id=owning_id,
        ancestor_directory_ids=_ancestor_ids(db, file.directory_path),
    )


def _load_grants(db: Session, user_id: int, view: ResourceView) -> list[Grant]:
    rows = []
    if view.resource_type == ResourceTypeEnum.FILE.value:
        rows.extend(permission_crud.list_for_user_on_files(db, user_id=user_id, file_ids=[view.resource_id]))
        directory_ids: Iterable[Optional[int]] = (view.owning_directory_id, *view.ancestor_directory_ids)
    else:
        directory_ids = (view.resource_id, *view.ancestor_directory_ids)
    rows.extend(permission_crud.list_for_user_on_directories(db, user_id=user_id, directory_ids=directory_ids))
    return [
        Grant(
            resource_type=row.resource_type,
            resource_id=row.file_id if row.resource_type == ResourceTypeEnum.FILE.value else row.directory_id,
            permission_type=row.permission_type,
            cascade_to_children=bool(row.cascade_to_children),
        )
        for row in rows
    ]


def check_view(db: Session, principal: Principal, view: ResourceView, required: str) -> bool:
    if principal.is_admin or view.created_by == principal.user_id:
        return True
    return evaluate(principal, view, required, _load_grants(db, principal.user_id, view))


def has_access(
    db: Session,
    user_id: int,
    role: str,
    resource_type: str,
    resource_id: int,
    required: str = PermissionTypeEnum.READ.value,
) -> bool:
    """判定用户对指定资源是否具备 ``required`` 级别的访问权限，资源不存在时返回 ``False``。"""
    principal = Principal(user_id=user_id, role=role)
    if principal.is_admin:
        return True
    if resource_type == ResourceTypeEnum.FILE.value:
        file = file_crud.get(db, resource_id)
        if file is None:
            return False
        view = view_of_file(db, file)
    else:
        directory = directory_crud.get(db, resource_id)
        if directory is None:
            return False
        view = view_of_directory(db, directory)
    return check_view(db, principal, view, required)


def has_path_access(
    db: Session,
    user_id: int,
    role: str,
    path: str,
    required: str = PermissionTypeEnum.READ.value,
) -> bool:
    """按规范目录键判定访问权限。根目录对所有人可读，写入需要管理员或编辑角色。"""
    if not path:
        if required == PermissionTypeEnum.READ.value:
            return True
        return role in {UserRoleEnum.ADMIN.value, UserRoleEnum.EDITOR.value}
    principal = Principal(user_id=user_id, role=role)
    if principal.is_admin:
        return True
    directory = directory_crud.get_by_path(db, path)
    if directory is None:
        return False
    return check_view(db, principal, view_of_directory(db, directory), required)


def user_can(db: Session, user, resource, required: str) -> bool:
    """服务层便捷入口：``resource`` 为已加载的 ``Directory`` 或 ``FileRecord``。"""
    principal = Principal.of(user)
    if isinstance(resource, FileRecord):
        view = view_of_file(db, resource)
    else:
        view = view_of_directory(db, resource)
    return check_view(db, principal, view, required)
