import pytest
from fastapi import status

from app.models.goal import PersonalGoal
from app.models.rating import EmployeeRating
from app.models.skill import Skill, Subskill


def test_catalog_listing(client, employee, catalog, auth_headers):
    headers = auth_headers(employee)
    categories = client.get("/api/skills/categories", headers=headers).json()
    assert [c["name"] for c in categories] == ["Backend"]

    skills = client.get(f"/api/skills?category_id={catalog['category'].id}", headers=headers).json()
    assert [s["name"] for s in skills] == ["Databases", "Python"]

    subskills = client.get(f"/api/skills/subskills?skill_id={catalog['databases'].id}", headers=headers).json()
    assert [s["name"] for s in subskills] == ["Data Modeling", "SQL"]

def test_catalog_writes_require_editor_role(client, employee, approver, auth_headers):
    for profile in (employee, approver):
        response = client.post("/api/skills/categories", headers=auth_headers(profile), json={"name": "Frontend"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

def test_admin_builds_catalog(client, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    category = client.post("/api/skills/categories", headers=headers, json={"name": "Frontend", "color": "#10B981"})
    assert category.status_code == status.HTTP_201_CREATED

    skill = client.post("/api/skills", headers=headers, json={"category_id": category.json()["id"], "name": "React"})
    assert skill.status_code == status.HTTP_201_CREATED

    subskill = client.post("/api/skills/subskills", headers=headers, json={"skill_id": skill.json()["id"], "name": "Hooks"})
    assert subskill.status_code == status.HTTP_201_CREATED
    assert subskill.json()["skill_id"] == skill.json()["id"]

def test_create_skill_in_unknown_category(client, admin_user, auth_headers):
    response = client.post("/api/skills", headers=auth_headers(admin_user), json={"category_id": 999, "name": "Go"})
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_category_progress(client, employee, approver, catalog, auth_headers):
    rating_id = client.post(
        "/api/ratings",
        headers=auth_headers(employee),
        json={"skill_id": catalog["python"].id, "rating_level": "high"}
    ).json()["id"]
    client.post(f"/api/ratings/{rating_id}/submit", headers=auth_headers(employee), json={"comment": "done"})
    client.post(f"/api/ratings/{rating_id}/approve", headers=auth_headers(approver), json={"comment": "ok"})

    response = client.get(f"/api/skills/categories/{catalog['category'].id}/progress", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_200_OK
    summary = response.json()
    assert summary["total_items"] == 3
    assert summary["rated_items"] == 1
    assert summary["progress_percentage"] == 33
    assert summary["rating_counts"] == {"high": 1, "medium": 0, "low": 0}

def test_delete_category_cascades(client, db_session, employee, admin_user, catalog, auth_headers):
    client.post(
        "/api/ratings",
        headers=auth_headers(employee),
        json={"skill_id": catalog["databases"].id, "subskill_id": catalog["sql"].id, "rating_level": "low"}
    )
    client.post(
        "/api/goals",
        headers=auth_headers(employee),
        json={"skill_id": catalog["python"].id, "target_date": "2099-01-01"}
    )

    response = client.delete(f"/api/skills/categories/{catalog['category'].id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db_session.query(Skill).count() == 0
    assert db_session.query(Subskill).count() == 0
    assert db_session.query(EmployeeRating).count() == 0
    assert db_session.query(PersonalGoal).count() == 0

def test_delete_subskill_keeps_skill(client, db_session, admin_user, catalog, auth_headers):
    response = client.delete(f"/api/skills/subskills/{catalog['sql'].id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db_session.get(Skill, catalog["databases"].id) is not None
    assert db_session.query(Subskill).count() == 1

def test_delete_unknown_skill(client, admin_user, auth_headers):
    response = client.delete("/api/skills/777", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_deleting_skill_drops_its_goals_from_listing(client, employee, admin_user, catalog, auth_headers):
    headers = auth_headers(employee)
    created = client.post("/api/goals", headers=headers, json={"skill_id": catalog["python"].id, "target_date": "2099-01-01"})
    assert created.status_code == status.HTTP_201_CREATED
    assert len(client.get("/api/goals", headers=headers).json()) == 1

    response = client.delete(f"/api/skills/{catalog['python'].id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/goals", headers=headers).json() == []

def test_deleting_category_drops_cached_goals(client, employee, admin_user, catalog, auth_headers):
    headers = auth_headers(employee)
    for skill in ("python", "databases"):
        client.post("/api/goals", headers=headers, json={"skill_id": catalog[skill].id, "target_date": "2099-01-01"})
    assert len(client.get("/api/goals", headers=headers).json()) == 2

    client.delete(f"/api/skills/categories/{catalog['category'].id}", headers=auth_headers(admin_user))
    assert client.get("/api/goals", headers=headers).json() == []


# --- CSV import / export ---

def test_export_catalog_csv(client, admin_user, catalog, auth_headers):
    response = client.get("/api/skills/export", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines() == [
        '"Category","Skill","Subskill","Description"',
        '"Backend","Databases","Data Modeling",""',
        '"Backend","Databases","SQL",""',
        '"Backend","Python","",""',
    ]

def test_import_catalog_csv_reuses_existing_names(client, admin_user, catalog, auth_headers):
    headers = auth_headers(admin_user)
    content = (
        "Category,Skill,Subskill,Description\n"
        "backend,python,Typing,Type hints\n"
        "Frontend,React,,Component library\n"
        "Frontend,,,\n"
        ",Orphan,,\n"
        "Cloud,,Lambda,\n"
    )
    response = client.post(
        "/api/skills/import",
        headers=headers,
        files={"file": ("catalog.csv", content.encode("utf-8"), "text/csv")}
    )
    assert response.status_code == status.HTTP_200_OK
    result = response.json()
    assert result["rows"] == 5
    assert result["success"] == 3
    assert result["errors"] == 2
    assert [f["line"] for f in result["failures"]] == [5, 6]
    assert result["categories_created"] == 1
    assert result["skills_created"] == 1
    assert result["subskills_created"] == 1

    categories = [c["name"] for c in client.get("/api/skills/categories", headers=headers).json()]
    assert categories == ["Backend", "Frontend"]
    subskills = client.get(f"/api/skills/subskills?skill_id={catalog['python'].id}", headers=headers).json()
    assert [(s["name"], s["description"]) for s in subskills] == [("Typing", "Type hints")]

def test_import_rejects_files_without_category_column(client, admin_user, auth_headers):
    response = client.post(
        "/api/skills/import",
        headers=auth_headers(admin_user),
        files={"file": ("catalog.csv", b"Name,Description\nPython,\n", "text/csv")}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_import_requires_csv_file_and_editor_role(client, employee, admin_user, auth_headers):
    upload = {"file": ("catalog.txt", b"Category\nBackend\n", "text/plain")}
    assert client.post("/api/skills/import", headers=auth_headers(admin_user), files=upload).status_code == status.HTTP_400_BAD_REQUEST
    upload = {"file": ("catalog.csv", b"Category\nBackend\n", "text/csv")}
    assert client.post("/api/skills/import", headers=auth_headers(employee), files=upload).status_code == status.HTTP_403_FORBIDDEN


# --- Dashboard preferences ---

def test_category_preferences(client, employee, catalog, auth_headers):
    headers = auth_headers(employee)
    category_id = catalog["category"].id
    assert client.get("/api/skills/preferences", headers=headers).json() == {"visible_category_ids": []}

    response = client.put("/api/skills/preferences", headers=headers, json={"visible_category_ids": [category_id, category_id]})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["visible_category_ids"] == [category_id]
    assert client.get("/api/skills/preferences", headers=headers).json()["visible_category_ids"] == [category_id]

    response = client.delete(f"/api/skills/preferences/{category_id}", headers=headers)
    assert response.json()["visible_category_ids"] == []

def test_unknown_category_cannot_be_shown(client, employee, auth_headers):
    response = client.put("/api/skills/preferences", headers=auth_headers(employee), json={"visible_category_ids": [999]})
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_deleted_category_leaves_preferences(client, employee, admin_user, catalog, auth_headers):
    headers = auth_headers(employee)
    client.put("/api/skills/preferences", headers=headers, json={"visible_category_ids": [catalog["category"].id]})
    client.delete(f"/api/skills/categories/{catalog['category'].id}", headers=auth_headers(admin_user))
    assert client.get("/api/skills/preferences", headers=headers).json()["visible_category_ids"] == []
