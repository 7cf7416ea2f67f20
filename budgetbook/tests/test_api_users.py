from __future__ import annotations

from budgetbook import models


def test_list_users_returns_safe_users(client, make_user):
    make_user("ada@example.com", "ada")
    make_user("alan@example.com", "alan")

    response = client.get("/api/v1/users")

    assert response.status_code == 200
    users = response.json()["response"]
    assert [user["username"] for user in users] == ["ada", "alan"]
    for user in users:
        assert "password" not in user
        assert "verificationCode" not in user


def test_get_user(client, make_user):
    user_id = make_user()

    response = client.get(f"/api/v1/users/{user_id}")
    assert response.status_code == 200
    assert response.json()["response"]["email"] == "ada@example.com"
    assert response.json()["response"]["currency"] == "USD"

    missing = client.get("/api/v1/users/404")
    assert missing.status_code == 404
    assert missing.json()["error"] == "An account with that id does not exist."


def test_update_user_changes_only_given_fields(client, make_user):
    user_id = make_user()

    response = client.patch(f"/api/v1/users/{user_id}", json={"theme": "dark", "mobileNumber": "+15550100"})

    assert response.status_code == 200
    user = response.json()["response"]
    assert response.json()["body"] == "Account updated!"
    assert user["theme"] == "dark"
    assert user["mobileNumber"] == "+15550100"
    assert user["username"] == "ada"
    assert "password" not in user


def test_update_user_to_taken_email_is_reported(client, make_user):
    make_user("ada@example.com", "ada")
    other_id = make_user("alan@example.com", "alan")

    response = client.patch(f"/api/v1/users/{other_id}", json={"email": "ada@example.com"})

    assert response.status_code == 404
    assert response.json()["error"] == "Provided email not available."


def test_update_user_rejects_unknown_currency(client, make_user):
    user_id = make_user()
    response = client.patch(f"/api/v1/users/{user_id}", json={"currency": "XYZ"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("currency")


def test_update_password_then_login(client, make_user):
    user_id = make_user(password="old-password")

    missing = client.patch(f"/api/v1/users/{user_id}/password", json={})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing Data: newPassword."

    response = client.patch(f"/api/v1/users/{user_id}/password", json={"newPassword": "new-password"})
    assert response.status_code == 200
    assert response.json() == {"body": "Password updated!"}

    login = client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": "new-password"})
    assert login.status_code == 200

    unknown = client.patch("/api/v1/users/999/password", json={"newPassword": "x"})
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "Failed to update password. Please try again."


def test_delete_user(client, database, make_user):
    user_id = make_user()

    response = client.delete(f"/api/v1/users/{user_id}")
    assert response.status_code == 200
    assert response.json()["response"] == user_id
    with database.session_scope() as session:
        assert session.get(models.User, user_id) is None


def test_delete_missing_user(client):
    response = client.delete("/api/v1/users/12345")
    assert response.status_code == 404
    assert response.json()["error"] == "An account with that id does not exist."
    assert "caption" in response.json()
