from __future__ import annotations

from datetime import datetime, timedelta, timezone

from api import create_app
from models import storage
from models.user import User
from utils.tokens import TokenManager

from tests.helpers import bearer, image_file, login, patch_json


def test_current_user(client, make_user) -> None:
    user_id = make_user()
    tokens = login(client)

    resp = client.get("/api/v1/users/current-user", headers=bearer(tokens["accessToken"]))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["id"] == user_id
    assert data["username"] == "alice"
    assert "passwordHash" not in data and "password_hash" not in data
    assert "refreshToken" not in data and "refresh_token" not in data


def test_current_user_with_expired_access_token(app, client, make_user) -> None:
    user_id = make_user()
    manager = app.extensions["token_manager"]
    past = TokenManager(
        manager.config, manager.store,
        clock=lambda: datetime.now(timezone.utc) - timedelta(hours=2),
    )
    with app.app_context():
        pair = past.issue(storage.get(User, user_id))

    resp = client.get("/api/v1/users/current-user", headers=bearer(pair.access_token))

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid access token"


def test_current_user_for_deleted_user(app, client, make_user) -> None:
    user_id = make_user()
    tokens = login(client)
    with app.app_context():
        storage.delete(storage.get(User, user_id))
        storage.save()

    resp = client.get("/api/v1/users/current-user", headers=bearer(tokens["accessToken"]))

    assert resp.status_code == 401


def test_update_account(app, client, make_user) -> None:
    user_id = make_user()
    tokens = login(client)

    resp = patch_json(
        client,
        "/api/v1/users/update-account",
        {"fullName": "Alice Liddell", "email": "Liddell@Example.com"},
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["fullName"] == "Alice Liddell"
    assert data["email"] == "liddell@example.com"
    with app.app_context():
        assert storage.get(User, user_id).email == "liddell@example.com"


def test_update_account_requires_all_fields(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = patch_json(
        client,
        "/api/v1/users/update-account",
        {"fullName": "Alice Liddell"},
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 422
    assert "email" in resp.get_json()["details"]


def test_update_account_email_taken(client, make_user) -> None:
    make_user()
    make_user(username="carol", email="carol@example.com")
    tokens = login(client)

    resp = patch_json(
        client,
        "/api/v1/users/update-account",
        {"fullName": "Alice", "email": "carol@example.com"},
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 409


def test_update_avatar(app, client, make_user) -> None:
    user_id = make_user()
    tokens = login(client)

    resp = client.patch(
        "/api/v1/users/avatar",
        data={"avatar": image_file("new.png")},
        content_type="multipart/form-data",
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 200
    avatar = resp.get_json()["data"]["avatar"]
    assert avatar.endswith("_new.png")
    with app.app_context():
        assert storage.get(User, user_id).avatar == avatar


def test_update_avatar_missing_file(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = client.patch(
        "/api/v1/users/avatar",
        data={},
        content_type="multipart/form-data",
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Avatar file is missing"


def test_update_avatar_empty_upload_fails(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = client.patch(
        "/api/v1/users/avatar",
        data={"avatar": image_file("empty.png", b"")},
        content_type="multipart/form-data",
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Avatar upload failed"


def test_update_cover_image(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = client.patch(
        "/api/v1/users/cover-image",
        data={"coverImage": image_file("cover.webp")},
        content_type="multipart/form-data",
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 200
    assert resp.get_json()["data"]["coverImage"].endswith("_cover.webp")


def test_update_cover_image_missing_file(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = client.patch(
        "/api/v1/users/cover-image",
        data={},
        content_type="multipart/form-data",
        headers=bearer(tokens["accessToken"]),
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cover image file is missing"


def test_profile_routes_require_auth(client) -> None:
    assert client.get("/api/v1/users/current-user").status_code == 401
    assert patch_json(client, "/api/v1/users/update-account", {}).status_code == 401


def test_health(client) -> None:
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": "ok"}


def test_unknown_route_uses_error_envelope(client) -> None:
    resp = client.get("/api/v1/nope")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_wildcard_cors_does_not_echo_origin_or_allow_credentials(client, make_user) -> None:
    make_user()
    tokens = login(client)

    resp = client.get(
        "/api/v1/users/current-user",
        headers={**bearer(tokens["accessToken"]), "Origin": "https://evil.example"},
    )

    assert resp.headers.get("Access-Control-Allow-Origin") == "*"
    assert "Access-Control-Allow-Credentials" not in resp.headers


def test_credentialed_cors_only_for_configured_origins(tmp_path) -> None:
    app = create_app("testing", {
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "CORS_ORIGINS": "https://app.example, https://admin.example",
    })
    client = app.test_client(use_cookies=False)

    resp = client.get("/api/v1/health", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers
    assert "Access-Control-Allow-Credentials" not in resp.headers

    resp = client.get("/api/v1/health", headers={"Origin": "https://admin.example"})
    assert resp.headers["Access-Control-Allow-Origin"] == "https://admin.example"
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"
