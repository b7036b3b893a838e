"""权限解析器的单元测试：纯策略函数与数据库解析两部分。"""

from app.packages.documents.core.enums import PermissionTypeEnum, ResourceTypeEnum
from app.packages.documents.crud.permissions import permission_crud
from app.packages.documents.models.directory import Directory
from app.packages.documents.models.file_record import FileRecord
from app.packages.documents.services.permission_resolver import (
    Grant,
    Principal,
    ResourceView,
    evaluate,
    has_access,
    has_path_access,
)

READ = PermissionTypeEnum.READ.value
WRITE = PermissionTypeEnum.WRITE.value
FILE = ResourceTypeEnum.FILE.value
DIRECTORY = ResourceTypeEnum.DIRECTORY.value


def _directory(resource_id=10, created_by=1, ancestors=()):
    return ResourceView(
        resource_type=DIRECTORY,
        resource_id=resource_id,
        created_by=created_by,
        ancestor_directory_ids=tuple(ancestors),
    )


def test_admin_bypasses_everything():
    admin = Principal(user_id=99, role="ADMIN")
    assert evaluate(admin, _directory(), WRITE, []) is True


def test_owner_has_write_without_grants():
    owner = Principal(user_id=1, role="VIEWER")
    assert evaluate(owner, _directory(created_by=1), WRITE, []) is True


def test_write_grant_implies_read_but_not_reverse():
    user = Principal(user_id=2, role="EDITOR")
    resource = _directory()
    write_grant = [Grant(DIRECTORY, 10, WRITE)]
    read_grant = [Grant(DIRECTORY, 10, READ)]
    assert evaluate(user, resource, READ, write_grant) is True
    assert evaluate(user, resource, WRITE, read_grant) is False
    assert evaluate(user, resource, READ, read_grant) is True


def test_file_inherits_direct_grant_on_owning_directory():
    user = Principal(user_id=2, role="EDITOR")
    file = ResourceView(resource_type=FILE, resource_id=5, created_by=1, owning_directory_id=10)
    assert evaluate(user, file, READ, [Grant(DIRECTORY, 10, READ)]) is True
    # 目录与文件的 ID 空间相互独立
    assert evaluate(user, file, READ, [Grant(DIRECTORY, 5, READ)]) is False


def test_ancestor_grant_requires_cascade_flag():
    user = Principal(user_id=2, role="EDITOR")
    resource = _directory(resource_id=30, ancestors=(20, 10))
    assert evaluate(user, resource, WRITE, [Grant(DIRECTORY, 10, WRITE, cascade_to_children=False)]) is False
    assert evaluate(user, resource, WRITE, [Grant(DIRECTORY, 10, WRITE, cascade_to_children=True)]) is True


def test_no_grants_denies():
    user = Principal(user_id=2, role="EDITOR")
    assert evaluate(user, _directory(), READ, []) is False


def test_has_access_walks_ancestors_in_database(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    reader = make_user("VIEWER")
    top = unique_name("/res")
    parent = Directory(name=top[1:], path=top, parent_id=None, created_by=owner.id)
    db_session_fixture.add(parent)
    db_session_fixture.flush()
    child = Directory(name="child", path=f"{top}/child", parent_id=parent.id, created_by=owner.id)
    db_session_fixture.add(child)
    db_session_fixture.flush()
    doc = FileRecord(
        name="a.txt",
        path=f"{top}/child/a.txt",
        directory_id=child.id,
        directory_path=child.path,
        created_by=owner.id,
    )
    db_session_fixture.add(doc)
    db_session_fixture.commit()

    assert has_access(db_session_fixture, reader.id, reader.role, DIRECTORY, child.id, READ) is False
    assert has_access(db_session_fixture, owner.id, owner.role, FILE, doc.id, WRITE) is True

    permission_crud.upsert(
        db_session_fixture,
        user_id=reader.id,
        resource_type=DIRECTORY,
        resource_id=parent.id,
        permission_type=READ,
        granted_by=owner.id,
        cascade_to_children=True,
    )

    assert has_access(db_session_fixture, reader.id, reader.role, DIRECTORY, child.id, READ) is True
    assert has_access(db_session_fixture, reader.id, reader.role, DIRECTORY, child.id, WRITE) is False
    assert has_access(db_session_fixture, reader.id, reader.role, FILE, doc.id, READ) is True
    assert has_path_access(db_session_fixture, reader.id, reader.role, child.path, READ) is True


def test_has_access_missing_resource_is_false_except_admin(db_session_fixture, make_user, admin_user):
    editor = make_user("EDITOR")
    assert has_access(db_session_fixture, editor.id, editor.role, FILE, 987654, READ) is False
    assert has_access(db_session_fixture, admin_user.id, admin_user.role, FILE, 987654, WRITE) is True


def test_root_path_access_by_role(db_session_fixture, make_user):
    viewer = make_user("VIEWER")
    editor = make_user("EDITOR")
    assert has_path_access(db_session_fixture, viewer.id, viewer.role, "", READ) is True
    assert has_path_access(db_session_fixture, viewer.id, viewer.role, "", WRITE) is False
    assert has_path_access(db_session_fixture, editor.id, editor.role, "", WRITE) is True
