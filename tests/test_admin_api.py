import pytest
from fastapi import status


def test_admin_creates_and_lists_profiles(client, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    response = client.post(
        "/api/admin/profiles",
        headers=headers,
        json={"email": "New.Hire@Example.com", "full_name": "Nia Hire", "department": "Platform"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    created = response.json()
    assert created["email"] == "new.hire@example.com"
    assert created["role"] == "employee"

    emails = [p["email"] for p in client.get("/api/admin/profiles", headers=headers).json()]
    assert "new.hire@example.com" in emails

def test_duplicate_email_is_rejected(client, admin_user, employee, auth_headers):
    response = client.post(
        "/api/admin/profiles",
        headers=auth_headers(admin_user),
        json={"email": employee.email, "full_name": "Someone Else"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_promote_to_tech_lead(client, admin_user, employee, auth_headers):
    response = client.patch(
        f"/api/admin/profiles/{employee.id}",
        headers=auth_headers(admin_user),
        json={"role": "tech_lead"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "tech_lead"

    queue = client.get("/api/approvals/pending", headers=auth_headers(employee))
    assert queue.status_code == status.HTTP_200_OK

def test_non_admin_is_forbidden(client, approver, auth_headers):
    response = client.get("/api/admin/profiles", headers=auth_headers(approver))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_assign_and_clear_tech_lead(client, admin_user, employee, approver, auth_headers):
    headers = auth_headers(admin_user)
    response = client.put(
        f"/api/admin/profiles/{employee.id}/tech-lead",
        headers=headers,
        json={"tech_lead_id": approver.id}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["tech_lead_id"] == approver.id
    assert response.json()["tech_lead_name"] == "Lee Lead"

    team = client.get(f"/api/admin/profiles/{approver.id}/team", headers=headers).json()
    assert [p["email"] for p in team] == [employee.email]

    cleared = client.put(f"/api/admin/profiles/{employee.id}/tech-lead", headers=headers, json={"tech_lead_id": None})
    assert cleared.json()["tech_lead_id"] is None
    assert client.get(f"/api/admin/profiles/{approver.id}/team", headers=headers).json() == []

@pytest.mark.parametrize("lead", ["self", "employee", "unknown"])
def test_invalid_tech_lead_assignment(client, db_session, admin_user, employee, auth_headers, lead):
    from app.models.profile import Profile, ProfileRole

    other = Profile(email="peer@example.com", full_name="Pat Peer", role=ProfileRole.EMPLOYEE, is_active=True)
    db_session.add(other)
    db_session.commit()
    lead_id = {"self": employee.id, "employee": other.id, "unknown": 9999}[lead]

    response = client.put(
        f"/api/admin/profiles/{employee.id}/tech-lead",
        headers=auth_headers(admin_user),
        json={"tech_lead_id": lead_id}
    )
    expected = status.HTTP_404_NOT_FOUND if lead == "unknown" else status.HTTP_400_BAD_REQUEST
    assert response.status_code == expected

def test_create_profile_with_tech_lead(client, admin_user, approver, auth_headers):
    response = client.post(
        "/api/admin/profiles",
        headers=auth_headers(admin_user),
        json={"email": "junior@example.com", "full_name": "Jo Junior", "tech_lead_id": approver.id}
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["tech_lead_id"] == approver.id
