"""人事：部门层级与员工"""

import pytest

from conftest import API, acting_as

ABILITIES = ("view_any", "view", "create", "update", "delete", "restore", "force_delete")
PERMISSIONS = tuple(
    f"{ability}_{resource}"
    for resource in ("employee_department", "employee_employee")
    for ability in ABILITIES
)


@pytest.fixture
def headers(db):
    return acting_as(db, *PERMISSIONS)


def create_department(client, headers, name, parent_id=None):
    response = client.post(f"{API}/employees/departments", headers=headers,
                           json={"name": name, "parent_id": parent_id})
    assert response.status_code == 201
    return response.json()["data"]


def create_employee(client, headers, name, **fields):
    response = client.post(f"{API}/employees/employees", headers=headers, json={"name": name, **fields})
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_department_complete_name_follows_parent(client, headers):
    sales = create_department(client, headers, "Sales")
    europe = create_department(client, headers, "Europe", sales["id"])

    assert europe["complete_name"] == "Sales / Europe"

    client.patch(f"{API}/employees/departments/{sales['id']}", headers=headers, json={"name": "Commercial"})
    response = client.get(f"{API}/employees/departments/{europe['id']}", headers=headers)

    assert response.json()["data"]["complete_name"] == "Commercial / Europe"


def test_department_cannot_become_its_own_ancestor(client, headers):
    sales = create_department(client, headers, "Sales")
    europe = create_department(client, headers, "Europe", sales["id"])

    response = client.patch(f"{API}/employees/departments/{sales['id']}", headers=headers,
                            json={"parent_id": europe["id"]})

    assert response.status_code == 422
    assert "parent_id" in response.json()["errors"]


def test_department_soft_delete_and_restore(client, headers):
    sales = create_department(client, headers, "Sales")

    assert client.delete(f"{API}/employees/departments/{sales['id']}", headers=headers).status_code == 200
    assert client.get(f"{API}/employees/departments", headers=headers).json()["meta"]["total"] == 0
    trashed = client.get(f"{API}/employees/departments", headers=headers, params={"filter[trashed]": "only"})
    assert trashed.json()["meta"]["total"] == 1

    restored = client.post(f"{API}/employees/departments/{sales['id']}/restore", headers=headers)
    assert restored.json()["data"]["deleted_at"] is None


def test_employee_work_email_is_unique(client, headers):
    create_employee(client, headers, "Alice", work_email="alice@example.com")

    response = client.post(f"{API}/employees/employees", headers=headers,
                           json={"name": "Alice 2", "work_email": "alice@example.com"})

    assert response.status_code == 422
    assert response.json()["errors"]["work_email"] == ["The work email has already been taken."]


def test_employee_cannot_manage_themselves(client, headers):
    alice = create_employee(client, headers, "Alice")

    response = client.patch(f"{API}/employees/employees/{alice['id']}", headers=headers,
                            json={"parent_id": alice["id"], "coach_id": alice["id"]})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["parent_id"] == ["An employee cannot be their own manager."]
    assert errors["coach_id"] == ["An employee cannot be their own coach."]


def test_force_delete_detaches_reports(client, headers):
    boss = create_employee(client, headers, "Boss")
    report = create_employee(client, headers, "Report", parent_id=boss["id"], coach_id=boss["id"])

    response = client.delete(f"{API}/employees/employees/{boss['id']}/force", headers=headers)

    assert response.status_code == 200
    data = client.get(f"{API}/employees/employees/{report['id']}", headers=headers).json()["data"]
    assert data["parent_id"] is None
    assert data["coach_id"] is None


def test_employee_filters(client, headers):
    create_employee(client, headers, "Alice", employee_type="employee")
    create_employee(client, headers, "Bob", employee_type="contractor")

    response = client.get(f"{API}/employees/employees", headers=headers,
                          params={"filter[employee_type]": "contractor"})

    assert [e["name"] for e in response.json()["data"]] == ["Bob"]
