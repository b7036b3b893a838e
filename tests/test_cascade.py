"""级联传播引擎与目录创建快照复制的测试。"""

from app.packages.documents.core.enums import PermissionTypeEnum, ResourceTypeEnum
from app.packages.documents.crud.directories import directory_crud
from app.packages.documents.crud.permissions import permission_crud
from app.packages.documents.models.permission import Permission
from app.packages.documents.services.cascade_service import cascade_grant, cascade_revoke
from app.packages.documents.services.directory_service import directory_service
from app.packages.documents.services.file_service import file_service
from app.packages.documents.services.permission_service import permission_service

READ = PermissionTypeEnum.READ.value
WRITE = PermissionTypeEnum.WRITE.value
FILE = ResourceTypeEnum.FILE.value
DIRECTORY = ResourceTypeEnum.DIRECTORY.value


def _build_tree(db, owner, top):
    """构造 top/{a/{deep}, b} 以及 a、deep 下各一个文件。"""
    for path in (top, f"{top}/a", f"{top}/a/deep", f"{top}/b"):
        directory_service.create_directory(db, current_user=owner, folder_path=path)
    file_service.upload_file(db, current_user=owner, folder_path=f"{top}/a", file_name="one.txt", content=b"1")
    file_service.upload_file(db, current_user=owner, folder_path=f"{top}/a/deep", file_name="two.txt", content=b"2")
    return directory_crud.get_by_path(db, top)


def _snapshot(db, user_id):
    rows = db.query(Permission).filter(Permission.user_id == user_id).all()
    return sorted(
        (row.resource_type, row.file_id, row.directory_id, row.permission_type, row.cascade_to_children)
        for row in rows
    )


def test_cascade_grant_is_complete_and_idempotent(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    grantee = make_user("VIEWER")
    root = _build_tree(db_session_fixture, owner, unique_name("/cas"))

    touched = cascade_grant(db_session_fixture, root.id, grantee.id, WRITE, owner.id)
    db_session_fixture.commit()
    # a、deep、b 三个目录与两个文件
    assert touched == 5
    first = _snapshot(db_session_fixture, grantee.id)

    cascade_grant(db_session_fixture, root.id, grantee.id, WRITE, owner.id)
    db_session_fixture.commit()
    assert _snapshot(db_session_fixture, grantee.id) == first

    directories = [row for row in first if row[0] == DIRECTORY]
    files = [row for row in first if row[0] == FILE]
    assert len(directories) == 3 and all(row[3] == WRITE and row[4] for row in directories)
    assert len(files) == 2 and all(row[3] == WRITE and not row[4] for row in files)


def test_grant_then_revoke_with_cascade_clears_descendants(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    grantee = make_user("VIEWER")
    root = _build_tree(db_session_fixture, owner, unique_name("/rev"))

    result = permission_service.grant(
        db_session_fixture,
        current_user=owner,
        user_id=grantee.id,
        resource_type="DIRECTORY",
        resource_id=root.id,
        permission_type="WRITE",
        cascade_to_children=True,
    )
    assert result["data"]["cascaded"] == 5
    assert len(_snapshot(db_session_fixture, grantee.id)) == 6

    result = permission_service.revoke(
        db_session_fixture,
        current_user=owner,
        user_id=grantee.id,
        resource_type="DIRECTORY",
        resource_id=root.id,
        cascade_to_children=True,
    )
    assert result["data"]["removed"] == 1
    assert result["data"]["cascaded"] == 5
    assert _snapshot(db_session_fixture, grantee.id) == []


def test_cascade_revoke_only_touches_given_user(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    first = make_user("VIEWER")
    second = make_user("VIEWER")
    root = _build_tree(db_session_fixture, owner, unique_name("/iso"))
    cascade_grant(db_session_fixture, root.id, first.id, READ, owner.id)
    cascade_grant(db_session_fixture, root.id, second.id, READ, owner.id)
    db_session_fixture.commit()

    cascade_revoke(db_session_fixture, root.id, first.id)
    db_session_fixture.commit()
    assert _snapshot(db_session_fixture, first.id) == []
    assert len(_snapshot(db_session_fixture, second.id)) == 5


def test_new_directory_copies_parent_cascading_permissions(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    member = make_user("EDITOR")
    parent_path = unique_name("/parent")
    directory_service.create_directory(db_session_fixture, current_user=owner, folder_path=parent_path)
    parent = directory_crud.get_by_path(db_session_fixture, parent_path)
    permission_crud.upsert(
        db_session_fixture,
        user_id=member.id,
        resource_type=DIRECTORY,
        resource_id=parent.id,
        permission_type=WRITE,
        granted_by=owner.id,
        cascade_to_children=True,
    )

    directory_service.create_directory(db_session_fixture, current_user=owner, folder_path=f"{parent_path}/child")
    child = directory_crud.get_by_path(db_session_fixture, f"{parent_path}/child")
    copied = permission_crud.get_for_user(
        db_session_fixture, user_id=member.id, resource_type=DIRECTORY, resource_id=child.id
    )
    assert copied is not None
    assert copied.permission_type == WRITE
    assert copied.cascade_to_children is True
    assert copied.granted_by == owner.id
    assert child.parent_id == parent.id


def test_non_cascading_parent_grant_is_not_copied(db_session_fixture, make_user, unique_name):
    owner = make_user("EDITOR")
    member = make_user("VIEWER")
    parent_path = unique_name("/flat")
    directory_service.create_directory(db_session_fixture, current_user=owner, folder_path=parent_path)
    parent = directory_crud.get_by_path(db_session_fixture, parent_path)
    permission_crud.upsert(
        db_session_fixture,
        user_id=member.id,
        resource_type=DIRECTORY,
        resource_id=parent.id,
        permission_type=READ,
        granted_by=owner.id,
        cascade_to_children=False,
    )
    directory_service.create_directory(db_session_fixture, current_user=owner, folder_path=f"{parent_path}/sub")
    child = directory_crud.get_by_path(db_session_fixture, f"{parent_path}/sub")
    assert (
        permission_crud.get_for_user(db_session_fixture, user_id=member.id, resource_type=DIRECTORY, resource_id=child.id)
        is None
    )


def test_reconcile_materializes_late_children(db_session_fixture, make_user, admin_user, unique_name):
    owner = make_user("EDITOR")
    member = make_user("VIEWER")
    top = unique_name("/late")
    directory_service.create_directory(db_session_fixture, current_user=owner, folder_path=top)
    root = directory_crud.get_by_path(db_session_fixture, top)
    permission_crud.upsert(
        db_session_fixture,
        user_id=member.id,
        resource_type=DIRECTORY,
        resource_id=root.id,
        permission_type=READ,
        granted_by=owner.id,
        cascade_to_children=True,
    )
    # 文件在授权之后上传：首次上传会复制所属目录的级联授权
    file_service.upload_file(db_session_fixture, current_user=owner, folder_path=top, file_name="x.txt", content=b"x")
    # 手工删除一条物化记录，模拟中断的级联
    file_row = [row for row in permission_crud.list_for_user(db_session_fixture, member.id) if row.resource_type == FILE]
    assert len(file_row) == 1
    db_session_fixture.delete(file_row[0])
    db_session_fixture.commit()

    result = permission_service.reconcile(db_session_fixture, current_user=admin_user, directory_id=root.id)
    assert result["data"]["touched"] == 1
    restored = [row for row in permission_crud.list_for_user(db_session_fixture, member.id) if row.resource_type == FILE]
    assert len(restored) == 1 and restored[0].permission_type == READ
