from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from affinity_api.models.audit_log import AuditLog
from affinity_api.models.user import User
from affinity_api.services import user_admin
from conftest import auth_header, login, register


def _user_id(client: TestClient, token: str) -> int:
    return client.get("/api/auth/me", headers=auth_header(token)).json()["user"]["id"]


def test_non_admin_gets_403_on_user_listing(client: TestClient, user_token):
    response = client.get("/api/auth/admin/users", headers=auth_header(user_token))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_anonymous_gets_401_on_user_listing(client: TestClient):
    response = client.get("/api/auth/admin/users")
    assert response.status_code == 401


def test_list_users_newest_first_without_hashes(client: TestClient, admin_token):
    register(client, "first1", "first@lab.com")
    register(client, "second2", "second@lab.com")

    response = client.get("/api/auth/admin/users", headers=auth_header(admin_token))
    assert response.status_code == 200
    users = response.json()["users"]
    assert [u["username"] for u in users] == ["second2", "first1", "root"]
    assert all("hashed_password" not in u for u in users)
    assert users[-1]["is_admin"] is True


def test_create_user_with_admin_flag(client: TestClient, admin_token):
    response = client.post(
        "/api/auth/admin/users",
        json={"username": "curator", "email": "curator@lab.com", "password": "secret1", "is_admin": True},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User created successfully"
    assert data["user"]["is_admin"] is True

    token = login(client, "curator@lab.com", "secret1")
    assert client.get("/api/auth/admin/users", headers=auth_header(token)).status_code == 200


def test_create_user_validates_like_register(client: TestClient, admin_token):
    response = client.post(
        "/api/auth/admin/users",
        json={"username": "x", "email": "bad", "password": "1", "is_admin": "yes"},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 400
    assert "is_admin" in {error["field"] for error in response.json()["errors"]}


def test_create_user_duplicate_conflicts(client: TestClient, admin_token):
    response = client.post(
        "/api/auth/admin/users",
        json={"username": "root", "email": "new@lab.com", "password": "secret1"},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_delete_self_always_fails(client: TestClient, admin_token, admin_user):
    response = client.delete(f"/api/auth/admin/users/{admin_user.id}", headers=auth_header(admin_token))
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete your own account"}


def test_delete_other_user_removes_them_from_listing(client: TestClient, admin_token, user_token):
    target_id = _user_id(client, user_token)

    response = client.delete(f"/api/auth/admin/users/{target_id}", headers=auth_header(admin_token))
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}

    users = client.get("/api/auth/admin/users", headers=auth_header(admin_token)).json()["users"]
    assert target_id not in [u["id"] for u in users]


def test_delete_user_removes_avatar_file(client: TestClient, admin_token, user_token, settings, tmp_path):
    upload = client.post(
        "/api/auth/upload-profile-image",
        files={"profile_image": ("me.png", b"\x89PNG\r\n\x1a\n" + b"0" * 64, "image/png")},
        headers=auth_header(user_token),
    )
    filename = upload.json()["profile_image"]
    avatar = tmp_path / "uploads" / "profiles" / filename
    assert avatar.exists()

    target_id = _user_id(client, user_token)
    client.delete(f"/api/auth/admin/users/{target_id}", headers=auth_header(admin_token))
    assert not avatar.exists()


def test_delete_missing_user(client: TestClient, admin_token):
    response = client.delete("/api/auth/admin/users/9999", headers=auth_header(admin_token))
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_set_admin_status(client: TestClient, admin_token, user_token, db_session):
    target_id = _user_id(client, user_token)

    response = client.patch(
        f"/api/auth/admin/users/{target_id}/admin-status",
        json={"is_admin": True},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 200
    assert response.json()["user"]["is_admin"] is True
    assert db_session.get(User, target_id).is_admin is True

    entry = db_session.query(AuditLog).filter(AuditLog.action == "admin_status_changed").one()
    assert entry.user == "root"
    assert entry.entity_id == target_id


def test_cannot_change_own_admin_status(client: TestClient, admin_token, admin_user):
    response = client.patch(
        f"/api/auth/admin/users/{admin_user.id}/admin-status",
        json={"is_admin": False},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot modify your own admin status"}


def test_set_admin_status_unknown_user(client: TestClient, admin_token):
    response = client.patch(
        "/api/auth/admin/users/9999/admin-status",
        json={"is_admin": True},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 404


def test_promoted_user_needs_a_fresh_token(client: TestClient, admin_token, user_token):
    target_id = _user_id(client, user_token)
    client.patch(
        f"/api/auth/admin/users/{target_id}/admin-status",
        json={"is_admin": True},
        headers=auth_header(admin_token),
    )

    # Claims are point-in-time: the old token still says isAdmin=false
    assert client.get("/api/auth/admin/users", headers=auth_header(user_token)).status_code == 403

    fresh = login(client, "a@lab.com", "secret1")
    assert client.get("/api/auth/admin/users", headers=auth_header(fresh)).status_code == 200


def test_demotion_applies_to_existing_tokens(client: TestClient, admin_token):
    client.post(
        "/api/auth/admin/users",
        json={"username": "curator", "email": "curator@lab.com", "password": "secret1", "is_admin": True},
        headers=auth_header(admin_token),
    )
    curator_token = login(client, "curator@lab.com", "secret1")
    curator_id = _user_id(client, curator_token)

    client.patch(
        f"/api/auth/admin/users/{curator_id}/admin-status",
        json={"is_admin": False},
        headers=auth_header(admin_token),
    )
    assert client.get("/api/auth/admin/users", headers=auth_header(curator_token)).status_code == 403


def test_audit_log_listing(client: TestClient, admin_token):
    register(client, "first1", "first@lab.com")
    response = client.get("/api/auth/admin/audit-logs", headers=auth_header(admin_token))
    assert response.status_code == 200
    actions = [entry["action"] for entry in response.json()]
    assert actions[0] == "register"
    assert "login_success" in actions

    filtered = client.get(
        "/api/auth/admin/audit-logs", params={"action": "register"}, headers=auth_header(admin_token)
    ).json()
    assert [entry["user"] for entry in filtered] == ["first1"]


def test_audit_log_listing_requires_admin(client: TestClient, user_token):
    response = client.get("/api/auth/admin/audit-logs", headers=auth_header(user_token))
    assert response.status_code == 403


def test_delete_user_keeps_avatar_when_commit_fails():
    db = MagicMock()
    db.get.return_value = User(id=7, username="bob456", profile_image="profile-1-2.png")
    db.commit.side_effect = SQLAlchemyError("database is locked")
    storage = MagicMock()

    with pytest.raises(SQLAlchemyError):
        user_admin.delete_user(db, storage, target_id=7, acting_id=1)

    storage.delete.assert_not_called()


def test_delete_user_removes_avatar_after_commit():
    db = MagicMock()
    db.get.return_value = User(id=7, username="bob456", profile_image="profile-1-2.png")
    storage = MagicMock()
    db.commit.side_effect = lambda: storage.delete.assert_not_called()

    assert user_admin.delete_user(db, storage, target_id=7, acting_id=1) == "bob456"
    storage.delete.assert_called_once_with("profile-1-2.png")
