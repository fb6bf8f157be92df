# HTTP 레벨 테스트 (TestClient + dependency_overrides)
from bson import ObjectId
from fastapi.testclient import TestClient

from vidtube.core.security import create_access_token
from vidtube.main import app
from vidtube.repositories.user_repository import get_user_repository

BASE = "/api/v1/users"
AVATAR = ("a.png", b"avatar-bytes", "image/png")
COVER = ("c.png", b"cover-bytes", "image/png")


def _register(client, **overrides):
    data = {"fullName": "Ann Lee", "email": "ann@x.com", "username": "annlee", "password": "secret1"}
    data.update(overrides)
    return client.post(f"{BASE}/register", data=data, files={"avatar": AVATAR, "coverImage": COVER})

def _login(client, **body):
    body = body or {"username": "annlee", "password": "secret1"}
    return client.post(f"{BASE}/login", json=body)

def _auth(token):
    return {"Authorization": f"Bearer {token}"}

def _cookies(resp):
    return resp.headers.get_list("set-cookie")


def test_register_returns_sanitized_account(client, repo, uploader, temp_dir):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["statusCode"] == 201
    assert body["data"]["username"] == "annlee"
    assert body["data"]["fullName"] == "Ann Lee"
    assert body["data"]["avatar"].endswith("-a.png")
    assert "password" not in body["data"]
    assert "refreshToken" not in body["data"]
    assert sorted(uploader.contents.values()) == [b"avatar-bytes", b"cover-bytes"]
    # 임시 업로드 파일은 응답 후 남지 않는다
    assert list(temp_dir.iterdir()) == []

def test_register_without_avatar(client, repo):
    resp = client.post(f"{BASE}/register", data={
        "fullName": "Ann Lee", "email": "ann@x.com", "username": "annlee", "password": "secret1",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body == {"statusCode": 400, "data": None, "message": "Avatar is required", "success": False, "errors": []}
    assert repo.users == {}

def test_register_duplicate(client, repo):
    repo.add_user()
    resp = _register(client, email="new@x.com")
    assert resp.status_code == 409
    assert len(repo.users) == 1

def test_login_sets_http_only_secure_cookies(client, repo):
    user = repo.add_user()
    resp = _login(client)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["username"] == "annlee"
    assert data["refreshToken"] == user.refresh_token
    cookies = _cookies(resp)
    for name in ("accessToken", "refreshToken"):
        cookie = next(c for c in cookies if c.startswith(f"{name}="))
        assert "HttpOnly" in cookie
        assert "Secure" in cookie

def test_login_accepts_form_fields(client, repo):
    repo.add_user()
    resp = client.post(f"{BASE}/login", data={"email": "ann@x.com", "password": "secret1"})
    assert resp.status_code == 200

def test_login_errors(client, repo):
    repo.add_user()
    assert _login(client, username="nobody", password="secret1").status_code == 404
    assert _login(client, username="annlee", password="wrong").status_code == 401
    assert _login(client, password="secret1").status_code == 400

def test_login_with_non_string_password_is_bad_request(client, repo):
    repo.add_user()
    resp = _login(client, username="annlee", password=12345)
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Invalid request body"
    assert body["errors"][0]["loc"] == ["password"]

def test_malformed_json_is_bad_request(client):
    resp = client.post(f"{BASE}/login", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400


def test_get_user_requires_token(client):
    resp = client.post(f"{BASE}/get-user")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Unauthorized request"

def test_get_user_rejects_invalid_token(client):
    resp = client.post(f"{BASE}/get-user", headers=_auth("garbage"))
    assert resp.status_code == 401

def test_get_user_rejects_token_for_missing_account(client):
    token = create_access_token(str(ObjectId()), "x@x.com", "ghost", "Ghost")
    assert client.post(f"{BASE}/get-user", headers=_auth(token)).status_code == 401

def test_get_user_with_bearer_and_cookie(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["accessToken"]
    assert client.post(f"{BASE}/get-user", headers=_auth(token)).json()["data"]["email"] == "ann@x.com"
    resp = client.get(f"{BASE}/current-user", headers={"Cookie": f"accessToken={token}"})
    assert resp.status_code == 200


def test_refresh_rotation_over_http(client, repo):
    user = repo.add_user()
    first = _login(client).json()["data"]["refreshToken"]

    resp = client.post(f"{BASE}/refresh-token", json={"refreshToken": first})
    assert resp.status_code == 200
    second = resp.json()["data"]["refreshToken"]
    assert second == user.refresh_token
    assert any(c.startswith("refreshToken=") for c in _cookies(resp))

    stale = client.post(f"{BASE}/refresh-token", json={"refreshToken": first})
    assert stale.status_code == 401
    assert stale.json()["message"] == "Refresh token is expired or used"

def test_refresh_from_cookie(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["refreshToken"]
    resp = client.post(f"{BASE}/refresh-token", headers={"Cookie": f"refreshToken={token}"})
    assert resp.status_code == 200

def test_refresh_without_token(client):
    assert client.post(f"{BASE}/refresh-token").status_code == 401

def test_logout_clears_token_and_cookies(client, repo):
    user = repo.add_user()
    data = _login(client).json()["data"]

    resp = client.post(f"{BASE}/logout", headers=_auth(data["accessToken"]))
    assert resp.status_code == 200
    assert user.refresh_token is None
    assert all("Max-Age=0" in c for c in _cookies(resp))

    again = client.post(f"{BASE}/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert again.status_code == 401


def test_change_password_over_http(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["accessToken"]
    resp = client.post(f"{BASE}/change-password", headers=_auth(token),
                       json={"oldPassword": "secret1", "newPassword": "secret2"})
    assert resp.status_code == 200
    assert _login(client, username="annlee", password="secret2").status_code == 200

def test_update_details_over_http(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["accessToken"]
    resp = client.patch(f"{BASE}/update-details", headers=_auth(token),
                        json={"fullName": "Ann B", "email": "annb@x.com"})
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "annb@x.com"

def test_update_avatar_and_cover_image(client, repo, temp_dir):
    user = repo.add_user()
    token = _login(client).json()["data"]["accessToken"]

    resp = client.post(f"{BASE}/update-avatar", headers=_auth(token), files={"avatar": AVATAR})
    assert resp.status_code == 200
    assert user.avatar.endswith("-a.png")

    resp = client.post(f"{BASE}/update-coverImage", headers=_auth(token), files={"coverImage": COVER})
    assert resp.status_code == 200
    assert resp.json()["data"]["coverImage"].endswith("-c.png")
    assert list(temp_dir.iterdir()) == []

def test_update_avatar_without_file(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["accessToken"]
    resp = client.post(f"{BASE}/update-avatar", headers=_auth(token), files={"coverImage": COVER})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Avatar file is missing"

def test_upload_requires_authentication(client, uploader):
    resp = client.post(f"{BASE}/update-avatar", files={"avatar": AVATAR})
    assert resp.status_code == 401
    assert uploader.uploaded == []


def test_channel_profile_over_http(client, repo):
    channel = repo.add_user()
    viewer = repo.add_user(email="bob@x.com", username="bob", password="secret1")
    repo.subscriptions.append((viewer.id, channel.id))
    token = _login(client, username="bob", password="secret1").json()["data"]["accessToken"]

    resp = client.get(f"{BASE}/c/AnnLee", headers=_auth(token))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["subscribersCount"] == 1
    assert data["channelsSubscribedToCount"] == 0
    assert data["isSubscribed"] is True

    assert client.get(f"{BASE}/c/ghost", headers=_auth(token)).status_code == 404

def test_watch_history_over_http(client, repo):
    repo.add_user()
    token = _login(client).json()["data"]["accessToken"]
    resp = client.get(f"{BASE}/history", headers=_auth(token))
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_corrupt_stored_document_is_internal_error(repo):
    # 저장된 데이터가 응답 스키마와 맞지 않으면 클라이언트 잘못이 아니다
    user = repo.add_user()
    repo.history[user.id] = [{"_id": ObjectId(), "duration": None}]
    token = create_access_token(user.id, user.email, user.username, user.full_name)
    app.dependency_overrides[get_user_repository] = lambda: repo
    try:
        resp = TestClient(app, raise_server_exceptions=False).get(f"{BASE}/history", headers=_auth(token))
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json()["message"] == "Internal server error"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False

def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
