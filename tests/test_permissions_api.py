"""权限接口的集成测试。"""

from fastapi.testclient import TestClient


def _create_dir(client, headers, path):
    response = client.post("/api/v1/files/create-directory", json={"folderPath": path}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _grant(client, headers, **body):
    return client.post("/api/v1/permissions/grant", json=body, headers=headers)


def test_grant_cascades_and_check_reflects_it(client: TestClient, make_user, login, unique_name):
    owner = make_user("EDITOR")
    member = make_user("EDITOR")
    owner_headers = login(owner.username)
    member_headers = login(member.username)
    top = unique_name("/proj")
    parent = _create_dir(client, owner_headers, top)
    child = _create_dir(client, owner_headers, f"{top}/child")

    check = client.get(
        f"/api/v1/permissions/check/DIRECTORY/{child['id']}",
        params={"requiredPermission": "WRITE"},
        headers=member_headers,
    ).json()["data"]
    assert check["has_permission"] is False

    response = _grant(
        client,
        owner_headers,
        userId=member.id,
        resourceType="DIRECTORY",
        resourceId=parent["id"],
        permissionType="WRITE",
        cascadeToChildren=True,
    )
    assert response.status_code == 200
    assert response.json()["data"]["cascaded"] == 1
    assert response.json()["data"]["cascade_to_children"] is True

    check = client.get(
        f"/api/v1/permissions/check/directory/{child['id']}",
        params={"requiredPermission": "WRITE"},
        headers=member_headers,
    ).json()["data"]
    assert check["has_permission"] is True

    # 授权后成员可以在子目录下继续创建目录
    _create_dir(client, member_headers, f"{top}/child/by-member")

    perms = client.get(f"/api/v1/permissions/user/{member.id}", headers=member_headers).json()["data"]
    directory_ids = {item["resource_id"] for item in perms["items"] if item["resource_type"] == "DIRECTORY"}
    assert {parent["id"], child["id"]} <= directory_ids


def test_grant_on_file_never_cascades(client: TestClient, make_user, login, unique_name):
    owner = make_user("EDITOR")
    reader = make_user("VIEWER")
    headers = login(owner.username)
    top = unique_name("/single")
    _create_dir(client, headers, top)
    upload = client.post(
        "/api/v1/files/upload",
        data={"folderPath": top},
        files={"file": ("f.txt", b"x", "text/plain")},
        headers=headers,
    )
    file_id = upload.json()["data"]["file"]["id"]

    response = _grant(
        client,
        headers,
        userId=reader.id,
        resourceType="FILE",
        resourceId=file_id,
        permissionType="READ",
        cascadeToChildren=True,
    )
    assert response.status_code == 200
    assert response.json()["data"]["cascade_to_children"] is False

    resource = client.get(f"/api/v1/permissions/resource/FILE/{file_id}", headers=headers).json()["data"]
    assert resource["owner_id"] == owner.id
    assert [item["user_id"] for item in resource["items"]] == [reader.id]


def test_grant_is_upsert(client: TestClient, make_user, login, unique_name):
    owner = make_user("EDITOR")
    member = make_user("VIEWER")
    headers = login(owner.username)
    directory = _create_dir(client, headers, unique_name("/ups"))
    for level in ("READ", "WRITE", "READ"):
        response = _grant(
            client,
            headers,
            userId=member.id,
            resourceType="DIRECTORY",
            resourceId=directory["id"],
            permissionType=level,
        )
        assert response.status_code == 200

    resource = client.get(f"/api/v1/permissions/resource/DIRECTORY/{directory['id']}", headers=headers).json()["data"]
    assert len(resource["items"]) == 1
    assert resource["items"][0]["permission_type"] == "READ"


def test_grant_guards(client: TestClient, admin_headers, make_user, login, unique_name):
    owner = make_user("EDITOR")
    viewer = make_user("VIEWER")
    stranger = make_user("EDITOR")
    directory = _create_dir(client, login(owner.username), unique_name("/guard"))
    body = {"userId": viewer.id, "resourceType": "DIRECTORY", "resourceId": directory["id"], "permissionType": "READ"}

    assert _grant(client, login(viewer.username), **body).status_code == 403
    assert _grant(client, login(stranger.username), **body).status_code == 403
    assert _grant(client, admin_headers, **{**body, "resourceType": "FOLDER"}).status_code == 400
    assert _grant(client, admin_headers, **{**body, "permissionType": "EXECUTE"}).status_code == 400
    assert _grant(client, admin_headers, **{**body, "userId": 999999}).status_code == 404
    assert _grant(client, admin_headers, **{**body, "resourceId": 999999}).status_code == 404
    assert _grant(client, admin_headers, **body).status_code == 200


def test_revoke_with_cascade(client: TestClient, make_user, login, unique_name):
    owner = make_user("EDITOR")
    member = make_user("EDITOR")
    headers = login(owner.username)
    top = unique_name("/revoke")
    parent = _create_dir(client, headers, top)
    _create_dir(client, headers, f"{top}/a")
    _create_dir(client, headers, f"{top}/a/b")
    _grant(
        client,
        headers,
        userId=member.id,
        resourceType="DIRECTORY",
        resourceId=parent["id"],
        permissionType="WRITE",
    )

    response = client.post(
        "/api/v1/permissions/revoke",
        json={"userId": member.id, "resourceType": "DIRECTORY", "resourceId": parent["id"], "cascadeToChildren": True},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["cascaded"] == 2

    perms = client.get(f"/api/v1/permissions/user/{member.id}", headers=login(member.username)).json()["data"]
    assert perms["items"] == []


def test_check_missing_resource_and_bad_id(client: TestClient, admin_headers):
    assert client.get("/api/v1/permissions/check/FILE/999999", headers=admin_headers).status_code == 404
    assert client.get("/api/v1/permissions/check/FILE/abc", headers=admin_headers).status_code == 400


def test_user_permissions_visibility(client: TestClient, admin_headers, make_user, login):
    first = make_user("EDITOR")
    second = make_user("EDITOR")
    response = client.get(f"/api/v1/permissions/user/{second.id}", headers=login(first.username))
    assert response.status_code == 403
    response = client.get(f"/api/v1/permissions/user/{second.id}", headers=admin_headers)
    assert response.status_code == 200


def test_user_list_and_reconcile_roles(client: TestClient, admin_headers, make_user, login, unique_name):
    viewer_headers = login(make_user("VIEWER").username)
    assert client.get("/api/v1/permissions/get-user-list", headers=viewer_headers).status_code == 403
    users = client.get("/api/v1/permissions/get-user-list", headers=admin_headers).json()["data"]["items"]
    assert "admin" in {item["username"] for item in users}
    assert all("hashed_password" not in item for item in users)

    directory = _create_dir(client, admin_headers, unique_name("/recon"))
    response = client.post(f"/api/v1/permissions/reconcile/{directory['id']}", headers=viewer_headers)
    assert response.status_code == 403
    response = client.post(f"/api/v1/permissions/reconcile/{directory['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["touched"] == 0
