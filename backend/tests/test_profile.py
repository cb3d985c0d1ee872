import pytest
from fastapi.testclient import TestClient

from affinity_api.models.user import User
from conftest import auth_header, register

PNG_HEADER = b"\x89PNG\r\n\x1a\n"
MiB = 1024 * 1024


def _upload(client: TestClient, token: str, content: bytes, content_type: str = "image/png", name: str = "me.png"):
    return client.post(
        "/api/auth/upload-profile-image",
        files={"profile_image": (name, content, content_type)},
        headers=auth_header(token),
    )


def test_update_profile_partial(client: TestClient, user_token):
    response = client.put("/api/auth/update-profile", json={"bio": "Kinase inhibitors"}, headers=auth_header(user_token))
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Profile updated successfully"
    assert data["user"]["bio"] == "Kinase inhibitors"
    assert data["user"]["username"] == "alice123"
    assert data["user"]["email"] == "a@lab.com"


def test_update_profile_refreshes_updated_at(client: TestClient, user_token, db_session):
    user = db_session.query(User).filter(User.username == "alice123").one()
    user.updated_at = user.updated_at.replace(year=2000)
    db_session.commit()

    client.put("/api/auth/update-profile", json={"username": "alice_new"}, headers=auth_header(user_token))

    db_session.expire_all()
    refreshed = db_session.query(User).filter(User.username == "alice_new").one()
    assert refreshed.updated_at.year > 2000


def test_update_profile_requires_a_field(client: TestClient, user_token):
    response = client.put("/api/auth/update-profile", json={}, headers=auth_header(user_token))
    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"


@pytest.mark.parametrize("body,field", [
    ({"username": "ab"}, "username"),
    ({"email": "not-an-email"}, "email"),
    ({"bio": "x" * 201}, "bio"),
])
def test_update_profile_field_rules(client: TestClient, user_token, body, field):
    response = client.put("/api/auth/update-profile", json=body, headers=auth_header(user_token))
    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == [field]


def test_update_profile_conflicts_with_other_user(client: TestClient, user_token):
    register(client, "bob456", "b@lab.com")

    taken_name = client.put("/api/auth/update-profile", json={"username": "bob456"}, headers=auth_header(user_token))
    assert taken_name.status_code == 400
    assert taken_name.json() == {"error": "Username already taken"}

    taken_email = client.put("/api/auth/update-profile", json={"email": "b@lab.com"}, headers=auth_header(user_token))
    assert taken_email.status_code == 400
    assert taken_email.json() == {"error": "Email already taken"}


def test_update_profile_keeping_own_values_is_not_a_conflict(client: TestClient, user_token):
    response = client.put(
        "/api/auth/update-profile",
        json={"username": "alice123", "email": "a@lab.com"},
        headers=auth_header(user_token),
    )
    assert response.status_code == 200


def test_update_profile_requires_token(client: TestClient):
    response = client.put("/api/auth/update-profile", json={"bio": "hi"})
    assert response.status_code == 401


def test_upload_avatar_replaces_previous_file(client: TestClient, user_token, tmp_path):
    profiles = tmp_path / "uploads" / "profiles"

    first = _upload(client, user_token, PNG_HEADER + b"a" * 128)
    assert first.status_code == 200
    first_name = first.json()["profile_image"]
    assert first_name.startswith("profile-") and first_name.endswith(".png")
    assert (profiles / first_name).exists()

    second = _upload(client, user_token, PNG_HEADER + b"0" * (4 * MiB))
    assert second.status_code == 200
    second_name = second.json()["profile_image"]

    assert second_name != first_name
    assert (profiles / second_name).exists()
    assert not (profiles / first_name).exists()

    me = client.get("/api/auth/me", headers=auth_header(user_token)).json()["user"]
    assert me["profile_image"] == second_name


def test_uploaded_avatar_is_served_statically(client: TestClient, user_token):
    content = PNG_HEADER + b"pixels"
    filename = _upload(client, user_token, content).json()["profile_image"]
    response = client.get(f"/uploads/profiles/{filename}")
    assert response.status_code == 200
    assert response.content == content


@pytest.mark.parametrize("size", [10, 6 * MiB])
def test_upload_rejects_non_images_of_any_size(client: TestClient, user_token, size):
    response = _upload(client, user_token, b"%PDF" + b"0" * size, content_type="application/pdf", name="paper.pdf")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "profile_image"


def test_upload_rejects_images_over_5_mib(client: TestClient, user_token, tmp_path):
    response = _upload(client, user_token, PNG_HEADER + b"0" * (6 * MiB))
    assert response.status_code == 400
    assert "too large" in response.json()["error"]
    profiles = tmp_path / "uploads" / "profiles"
    assert list(profiles.iterdir()) == []


def test_upload_accepts_exactly_5_mib(client: TestClient, user_token):
    response = _upload(client, user_token, b"0" * (5 * MiB))
    assert response.status_code == 200


def test_upload_without_file(client: TestClient, user_token):
    response = client.post("/api/auth/upload-profile-image", headers=auth_header(user_token))
    assert response.status_code == 400
    assert response.json()["error"] == "No file uploaded"


def test_delete_avatar(client: TestClient, user_token, tmp_path):
    filename = _upload(client, user_token, PNG_HEADER).json()["profile_image"]

    response = client.delete("/api/auth/delete-profile-image", headers=auth_header(user_token))
    assert response.status_code == 200
    assert response.json() == {"message": "Profile image deleted successfully"}
    assert not (tmp_path / "uploads" / "profiles" / filename).exists()

    me = client.get("/api/auth/me", headers=auth_header(user_token)).json()["user"]
    assert me["profile_image"] is None


def test_delete_avatar_when_none_set(client: TestClient, user_token):
    response = client.delete("/api/auth/delete-profile-image", headers=auth_header(user_token))
    assert response.status_code == 400
    assert response.json() == {"error": "No profile image to delete"}


def test_stored_suffix_follows_content_type_not_client_name(client: TestClient, user_token):
    response = _upload(client, user_token, b"<script>alert(1)</script>", content_type="image/png", name="x.html")
    assert response.status_code == 200
    filename = response.json()["profile_image"]
    assert filename.endswith(".png")

    served = client.get(f"/uploads/profiles/{filename}")
    assert served.headers["content-type"].startswith("image/png")


@pytest.mark.parametrize("content_type,suffix", [
    ("image/jpeg", ".jpg"),
    ("image/gif", ".gif"),
    ("image/webp", ".webp"),
])
def test_upload_suffix_per_image_type(client: TestClient, user_token, content_type, suffix):
    response = _upload(client, user_token, b"pixels", content_type=content_type, name="avatar")
    assert response.json()["profile_image"].endswith(suffix)


@pytest.mark.parametrize("content_type", ["image/svg+xml", "image/x-icon", "text/html"])
def test_upload_rejects_unlisted_image_types(client: TestClient, user_token, tmp_path, content_type):
    response = _upload(client, user_token, b"<svg onload=alert(1)>", content_type=content_type, name="a.svg")
    assert response.status_code == 400
    assert response.json()["error"] == "Only image files are allowed"
    assert list((tmp_path / "uploads" / "profiles").iterdir()) == []
