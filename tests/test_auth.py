"""认证接口的集成测试用例。"""

from fastapi.testclient import TestClient


def test_register_user_success(client: TestClient, unique_name):
    """注册流程：应成功创建新用户并返回基础信息。"""
    username = unique_name("tester")
    response = client.post(
        "/api/v1/auth/register",
        json={"username": username, "password": "tester123", "role": "EDITOR"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["code"] == 201
    assert payload["msg"] == "注册成功"
    assert payload["data"]["username"] == username
    assert payload["data"]["role"] == "EDITOR"


def test_register_defaults_to_viewer(client: TestClient, unique_name):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": unique_name("viewer"), "password": "tester123"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "VIEWER"


def test_register_user_duplicate_username(client: TestClient, unique_name):
    """注册流程：重复用户名时应返回 409 冲突。"""
    username = unique_name("duplicate")
    client.post("/api/v1/auth/register", json={"username": username, "password": "tester123"})
    response = client.post("/api/v1/auth/register", json={"username": username, "password": "tester123"})

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == 409
    assert payload["msg"] == "用户名已存在"


def test_register_admin_role_is_rejected(client: TestClient, unique_name):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": unique_name("sneaky"), "password": "tester123", "role": "ADMIN"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == 400


def test_register_validation_error(client: TestClient):
    response = client.post("/api/v1/auth/register", json={"username": "ab", "password": "x"})
    assert response.status_code == 422
    assert response.json()["msg"] == "请求参数验证失败"


def test_login_success(client: TestClient):
    """登录流程：正确凭证应返回访问令牌。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "admin123"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["code"] == 200
    assert payload["data"]["token_type"] == "bearer"
    assert payload["data"]["access_token"]
    assert payload["data"]["user"]["role"] == "ADMIN"


def test_login_invalid_credentials(client: TestClient):
    """登录流程：错误密码应提示认证失败。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == 401
    assert payload["msg"] == "用户名或密码错误"


def test_profile_and_logout(client: TestClient, admin_headers):
    response = client.get("/api/v1/auth/profile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "admin"

    response = client.post("/api/v1/auth/logout", headers=admin_headers)
    assert response.status_code == 200

    # 会话已删除，旧令牌失效
    response = client.get("/api/v1/auth/profile", headers=admin_headers)
    assert response.status_code == 401


def test_missing_token_is_unauthorized(client: TestClient):
    response = client.get("/api/v1/files")
    assert response.status_code == 401
    assert response.json()["code"] == 401


def test_health_echoes_request_id(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"
    assert response.headers["x-request-id"] == "req-123"
