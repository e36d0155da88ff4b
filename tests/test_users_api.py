from datetime import timedelta

from app.core.auth import create_access_token, hash_reset_token
from app.services.mongo_service import utcnow
from tests.conftest import PASSWORD, insert_user, login

PRIVATE_FIELDS = {"password", "passwordResetToken", "passwordResetExpires"}


def test_login_returns_token_and_public_user(client, admin, db):
    response = client.post("/api/users/login", json={"email": "ADMIN@example.com", "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["token"]
    user = body["data"]["user"]
    assert user["role"] == "admin"
    assert not PRIVATE_FIELDS & set(user)
    assert db.users.find_one({"_id": admin["_id"]})["lastLogin"] is not None


def test_login_failures(client, admin, db):
    wrong = client.post("/api/users/login", json={"email": admin["email"], "password": "wrong-password"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid email or password"

    unknown = client.post("/api/users/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert unknown.status_code == 401

    insert_user(db, "inactive@example.com", is_active=False)
    inactive = client.post("/api/users/login", json={"email": "inactive@example.com", "password": PASSWORD})
    assert inactive.status_code == 401
    assert inactive.json()["message"] == "Your account has been deactivated"


def test_profile(client, reviewer_headers):
    response = client.get("/api/users/profile", headers=reviewer_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "reviewer@example.com"
    assert not PRIVATE_FIELDS & set(data)

    assert client.get("/api/users/profile").status_code == 401


def test_token_for_deleted_user_is_rejected(client, reviewer, reviewer_headers, db):
    db.users.delete_one({"_id": reviewer["_id"]})
    response = client.get("/api/users/profile", headers=reviewer_headers)
    assert response.status_code == 401
    assert response.json()["message"] == "The user belonging to this token no longer exists"


def test_expired_token_is_rejected(client, reviewer):
    token = create_access_token({"sub": str(reviewer["_id"])}, expires_delta=timedelta(minutes=-1))
    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_update_profile_ignores_role_and_password(client, reviewer, reviewer_headers, db):
    response = client.put("/api/users/profile", headers=reviewer_headers,
                          json={"name": "Renamed", "department": "Admissions", "role": "admin", "password": "x"})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"

    stored = db.users.find_one({"_id": reviewer["_id"]})
    assert stored["role"] == "reviewer"
    assert stored["department"] == "Admissions"
    assert stored["password"] == reviewer["password"]


def test_update_profile_email_clash(client, admin, reviewer_headers):
    response = client.put("/api/users/profile", headers=reviewer_headers, json={"email": admin["email"]})
    assert response.status_code == 400


def test_change_password(client, reviewer, reviewer_headers):
    wrong = client.put("/api/users/change-password", headers=reviewer_headers,
                       json={"currentPassword": "wrong-password", "newPassword": "new-password-1"})
    assert wrong.status_code == 401

    response = client.put("/api/users/change-password", headers=reviewer_headers,
                          json={"currentPassword": PASSWORD, "newPassword": "new-password-1"})
    assert response.status_code == 200
    assert response.json()["message"] == "Password changed successfully"
    assert login(client, reviewer["email"], "new-password-1")


def test_register_is_admin_only(client, admin_headers, reviewer_headers):
    payload = {"name": "Officer", "email": "Officer@Example.com", "password": "officer-pass",
               "role": "admission_officer", "department": "Admissions"}

    assert client.post("/api/users/register", json=payload).status_code == 401
    assert client.post("/api/users/register", json=payload, headers=reviewer_headers).status_code == 401

    response = client.post("/api/users/register", json=payload, headers=admin_headers)
    assert response.status_code == 201
    user = response.json()["data"]
    assert user["email"] == "officer@example.com"
    assert user["role"] == "admission_officer"
    assert not PRIVATE_FIELDS & set(user)

    duplicate = client.post("/api/users/register", json=payload, headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "User with this email already exists"


def test_register_defaults_to_reviewer(client, admin_headers):
    payload = {"name": "New", "email": "new@example.com", "password": "password-1"}
    response = client.post("/api/users/register", json=payload, headers=admin_headers)
    assert response.json()["data"]["role"] == "reviewer"


def test_list_users(client, admin_headers, reviewer):
    response = client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert all(not PRIVATE_FIELDS & set(user) for user in body["data"])


def test_forgot_and_reset_password(client, reviewer, db):
    response = client.post("/api/users/forgot-password", json={"email": reviewer["email"]})
    assert response.status_code == 200
    token = response.json()["data"]["resetToken"]

    stored = db.users.find_one({"_id": reviewer["_id"]})
    assert stored["passwordResetToken"] == hash_reset_token(token)
    assert stored["passwordResetToken"] != token

    reset = client.post(f"/api/users/reset-password/{token}", json={"password": "brand-new-pass"})
    assert reset.status_code == 200
    assert login(client, reviewer["email"], "brand-new-pass")

    stored = db.users.find_one({"_id": reviewer["_id"]})
    assert "passwordResetToken" not in stored
    assert "passwordResetExpires" not in stored

    # single use
    again = client.post(f"/api/users/reset-password/{token}", json={"password": "another-pass"})
    assert again.status_code == 400
    assert again.json()["message"] == "Token is invalid or has expired"


def test_expired_reset_token(client, reviewer, db):
    token = client.post("/api/users/forgot-password", json={"email": reviewer["email"]}).json()["data"]["resetToken"]
    db.users.update_one({"_id": reviewer["_id"]},
                        {"$set": {"passwordResetExpires": utcnow() - timedelta(minutes=1)}})
    response = client.post(f"/api/users/reset-password/{token}", json={"password": "brand-new-pass"})
    assert response.status_code == 400


def test_forgot_password_unknown_email(client):
    response = client.post("/api/users/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 404


def test_update_profile_rejects_null_name(client, reviewer, reviewer_headers, db):
    response = client.put("/api/users/profile", headers=reviewer_headers, json={"name": None})
    assert response.status_code == 400
    assert any(error.startswith("name") for error in response.json()["errors"])
    assert db.users.find_one({"_id": reviewer["_id"]})["name"] == reviewer["name"]
