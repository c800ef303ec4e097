# tests/v1/test_employees.py
"""Tests for employee approval and role management."""

from fastapi import status

from tests.conftest import bearer, make_employee


def _patch(client, headers, employee_pk, **changes):
    return client.patch(f"/api/v1/employees/{employee_pk}", json=changes, headers=headers)


def test_list_supports_search_status_and_paging(client, db_session, admin_headers) -> None:
    make_employee(db_session, "E101", name="Park Jiwoo")
    make_employee(db_session, "E102", name="Choi Minseo", status="pending")
    make_employee(db_session, "E103", name="Jiwon Han")

    by_name = client.get("/api/v1/employees/", params={"search": "jiw"}, headers=admin_headers)
    assert [row["employee_id"] for row in by_name.json()] == ["E101", "E103"]

    by_id = client.get("/api/v1/employees/", params={"search": "e102"}, headers=admin_headers)
    assert [row["name"] for row in by_id.json()] == ["Choi Minseo"]

    pending = client.get("/api/v1/employees/", params={"status": "pending"}, headers=admin_headers)
    assert [row["employee_id"] for row in pending.json()] == ["E102"]

    page = client.get("/api/v1/employees/", params={"skip": 1, "limit": 2}, headers=admin_headers)
    assert [row["employee_id"] for row in page.json()] == ["E101", "E102"]


def test_admin_approves_pending_employee(client, db_session, admin_headers) -> None:
    pending = make_employee(db_session, "P001", status="pending")
    login = {"employee_id": "P001", "password": "password123"}
    assert client.post("/api/v1/auth/login", json=login).status_code == status.HTTP_401_UNAUTHORIZED

    response = _patch(client, admin_headers, pending.id, status="approved", department_id=4)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "approved"
    assert response.json()["department_id"] == 4
    assert client.post("/api/v1/auth/login", json=login).status_code == status.HTTP_200_OK


def test_admin_changes_role(client, admin_headers, employee) -> None:
    response = _patch(client, admin_headers, employee.id, role="moderator")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "moderator"


def test_update_is_admin_only(client, auth_headers, other_employee) -> None:
    response = _patch(client, auth_headers, other_employee.id, role="admin")

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_unknown_employee_is_404(client, admin_headers) -> None:
    assert _patch(client, admin_headers, 9999, role="user").status_code == status.HTTP_404_NOT_FOUND


def test_admin_cannot_lock_themselves_out(client, admin, admin_headers) -> None:
    for changes in ({"role": "user"}, {"is_active": False}, {"status": "rejected"}):
        response = _patch(client, admin_headers, admin.id, **changes)
        assert response.status_code == status.HTTP_400_BAD_REQUEST, changes

    me = client.get("/api/v1/auth/me", headers=admin_headers)
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["role"] == "admin"


def test_super_admin_cannot_demote_themselves(client, db_session) -> None:
    root = make_employee(db_session, "S001", role="super_admin")

    response = _patch(client, bearer(root), root.id, role="admin")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "super administrator" in response.json()["detail"]


def test_only_super_admin_manages_super_admins(client, db_session, admin_headers, employee) -> None:
    root = make_employee(db_session, "S001", role="super_admin")

    assert _patch(client, admin_headers, employee.id, role="super_admin").status_code == 400
    assert _patch(client, admin_headers, root.id, is_active=False).status_code == 400

    granted = _patch(client, bearer(root), employee.id, role="super_admin")
    assert granted.status_code == status.HTTP_200_OK
    assert granted.json()["role"] == "super_admin"
