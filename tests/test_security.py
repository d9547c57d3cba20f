"""认证、用户与角色"""

from conftest import API, acting_as, auth_headers, create_user

from erp.models import Role


def test_login_returns_bearer_token(client, db):
    create_user(db, email="jane@example.com")

    response = client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "password123"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "Bearer"
    assert data["user"]["email"] == "jane@example.com"

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "jane@example.com"


def test_login_with_wrong_password_fails(client, db):
    create_user(db, email="jane@example.com")

    response = client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "wrong-password"})

    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["These credentials do not match our records."]


def test_requests_without_token_are_unauthenticated(client):
    response = client.get(f"{API}/security/users")

    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}


def test_missing_permission_is_forbidden(client, db):
    headers = acting_as(db, "view_any_security_role")

    response = client.get(f"{API}/security/users", headers=headers)

    assert response.status_code == 403
    assert response.json()["message"] == "This action is unauthorized."


def test_me_lists_effective_permissions(client, db):
    headers = acting_as(db, "view_any_product_product", "create_product_product")

    response = client.get(f"{API}/auth/me", headers=headers)

    assert sorted(response.json()["data"]["permissions"]) == ["create_product_product", "view_any_product_product"]


def test_super_admin_has_every_permission(client, db):
    user = create_user(db)
    user.roles.append(Role(name="Super Admin", code="super_admin", permissions=[], is_system=True))
    db.commit()

    response = client.get(f"{API}/security/users", headers=auth_headers(user))

    assert response.status_code == 200


def test_create_user_and_list_with_pagination(client, db):
    headers = acting_as(db, "create_security_user", "view_any_security_user")

    response = client.post(f"{API}/security/users", headers=headers, json={
        "name": "Bob", "email": "bob@example.com", "password": "secret-pass",
    })

    assert response.status_code == 201
    assert response.json()["message"] == "User created successfully."
    assert "password" not in response.json()["data"]

    listing = client.get(f"{API}/security/users", headers=headers, params={"filter[email]": "bob"})
    body = listing.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["name"] == "Bob"
    assert body["links"]["prev"] is None


def test_create_user_rejects_duplicate_email(client, db):
    headers = acting_as(db, "create_security_user", email="admin@example.com")

    response = client.post(f"{API}/security/users", headers=headers, json={
        "name": "Copy", "email": "admin@example.com", "password": "secret-pass",
    })

    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["The email has already been taken."]


def test_create_user_validates_input(client, db):
    headers = acting_as(db, "create_security_user")

    response = client.post(f"{API}/security/users", headers=headers, json={"email": "not-an-email"})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["name"] == ["The name field is required."]
    assert errors["email"] == ["The email field must be a valid email address."]


def test_cannot_delete_own_account(client, db):
    user = create_user(db, ["delete_security_user"])

    response = client.delete(f"{API}/security/users/{user.id}", headers=auth_headers(user))

    assert response.status_code == 422
    assert response.json()["message"] == "You cannot delete your own account."


def test_system_roles_cannot_be_deleted(client, db):
    headers = acting_as(db, "delete_security_role")
    role = Role(name="Locked", code="locked", permissions=[], is_system=True)
    db.add(role)
    db.commit()

    response = client.delete(f"{API}/security/roles/{role.id}", headers=headers)

    assert response.status_code == 422
    assert response.json()["message"] == "System roles cannot be deleted."


def test_login_is_recorded_in_audit_log(client, db):
    user = create_user(db, ["view_any_support_audit_log"], email="jane@example.com")
    client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "password123"})

    response = client.get(f"{API}/support/audit-logs", headers=auth_headers(user),
                          params={"filter[action]": "login"})

    logs = response.json()["data"]
    assert len(logs) == 1
    assert logs[0]["user_id"] == user.id
    assert logs[0]["user_name"] == "jane"


def test_audit_log_rejects_invalid_dates(client, db):
    headers = acting_as(db, "view_any_support_audit_log")

    response = client.get(f"{API}/support/audit-logs", headers=headers, params={"filter[date_from]": "yesterday"})

    assert response.status_code == 422
    assert response.json()["errors"]["date_from"] == ["The date from field must be a valid date."]
