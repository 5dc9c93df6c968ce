import pytest
from fastapi import status


def _approve(client, employee_headers, approver_headers, skill_id, level, subskill_id=None):
    rating_id = client.post(
        "/api/ratings",
        headers=employee_headers,
        json={"skill_id": skill_id, "subskill_id": subskill_id, "rating_level": level}
    ).json()["id"]
    client.post(f"/api/ratings/{rating_id}/submit", headers=employee_headers, json={"comment": "evidence"})
    client.post(f"/api/ratings/{rating_id}/approve", headers=approver_headers, json={"comment": "ok"})
    return rating_id

@pytest.fixture
def rated_employee(client, db_session, employee, approver, catalog, auth_headers):
    employee.department = "Platform"
    db_session.commit()
    employee_headers, approver_headers = auth_headers(employee), auth_headers(approver)
    _approve(client, employee_headers, approver_headers, catalog["python"].id, "medium")
    _approve(client, employee_headers, approver_headers, catalog["databases"].id, "high", catalog["sql"].id)
    return employee


def test_skills_gap_against_high(client, approver, rated_employee, auth_headers):
    response = client.get("/api/reports/skills-gap", headers=auth_headers(approver))
    assert response.status_code == status.HTTP_200_OK
    report = response.json()
    assert report["required_rating"] == "high"
    assert [(r["skill"], r["subskill"], r["current_rating"], r["gap"]) for r in report["rows"]] == [
        ("Databases", "SQL", "high", 0),
        ("Python", None, "medium", 1),
    ]
    assert report["by_category"] == [{"category": "Backend", "gap_count": 1}]

def test_skills_gap_filters(client, approver, rated_employee, auth_headers):
    headers = auth_headers(approver)
    report = client.get("/api/reports/skills-gap?required_level=medium", headers=headers).json()
    assert report["by_category"] == []
    assert all(r["gap"] == 0 for r in report["rows"])

    assert client.get("/api/reports/skills-gap?department=Sales", headers=headers).json()["rows"] == []
    assert len(client.get("/api/reports/skills-gap?department=Platform", headers=headers).json()["rows"]) == 2
    assert client.get(f"/api/reports/skills-gap?employee_id={approver.id}", headers=headers).json()["rows"] == []
    assert client.get("/api/reports/skills-gap?end_date=2000-01-01", headers=headers).json()["rows"] == []

def test_skills_gap_as_csv(client, approver, rated_employee, auth_headers):
    response = client.get("/api/reports/skills-gap?format=csv", headers=auth_headers(approver))
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0] == "employee,department,category,skill,subskill,current_rating,required_rating,gap"
    assert lines[1] == "Dana Developer,Platform,Backend,Databases,SQL,high,high,0"
    assert lines[2] == "Dana Developer,Platform,Backend,Python,,medium,high,1"

def test_proficiency_trends(client, employee, approver, catalog, auth_headers):
    employee_headers, approver_headers = auth_headers(employee), auth_headers(approver)
    _approve(client, employee_headers, approver_headers, catalog["python"].id, "low")
    _approve(client, employee_headers, approver_headers, catalog["python"].id, "high")
    _approve(client, employee_headers, approver_headers, catalog["databases"].id, "medium", catalog["sql"].id)
    client.post("/api/ratings", headers=employee_headers, json={"skill_id": catalog["python"].id, "rating_level": "medium"})

    response = client.get("/api/reports/proficiency-trends", headers=approver_headers)
    assert response.status_code == status.HTTP_200_OK
    rows = {r["skill"]: r for r in response.json()["rows"]}
    assert rows["Python"]["approved_rating"] == "high"
    assert rows["Python"]["self_rating"] == "medium"
    assert rows["Python"]["improvement"] == 2
    assert rows["Databases - SQL"]["improvement"] is None
    assert rows["Databases - SQL"]["self_rating"] is None
    assert response.json()["by_skill"] == [
        {"skill": "Databases - SQL", "avg_rating": 2.0},
        {"skill": "Python", "avg_rating": 3.0},
    ]

def test_reports_need_approver_role(client, employee, auth_headers):
    response = client.get("/api/reports/skills-gap", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN
