from datetime import date

import pytest

from class_management.permissions import Role
from class_management.schemas import LessonPlanUpdate
from class_management.services import lesson_plans as lesson_plan_service


PLAN = {"title": "Fractions", "date": "2026-03-02", "subject": "Math", "objectives": "Add fractions"}


@pytest.fixture
def owner(make_user, make_teacher_profile):
    user = make_user(Role.TEACHER)
    make_teacher_profile(user, name="Owner")
    return user


@pytest.fixture
def other_teacher(make_user, make_teacher_profile):
    user = make_user(Role.TEACHER)
    make_teacher_profile(user, name="Other")
    return user


@pytest.fixture
def plan(client, owner, auth_header):
    response = client.post("/api/lesson-plans", json=PLAN, headers=auth_header(owner))
    assert response.status_code == 201
    return response.json()


def test_teacher_creates_plan_for_own_profile(plan, owner):
    assert plan["title"] == "Fractions"
    assert plan["status"] == "draft"
    assert plan["teacher"]["name"] == "Owner"


def test_owner_can_update(client, plan, owner, auth_header):
    changes = {"status": "published", "notes": "Bring rulers"}
    response = client.put(f"/api/lesson-plans/{plan['id']}", json=changes, headers=auth_header(owner))
    assert response.status_code == 200
    assert response.json()["status"] == "published"
    assert response.json()["notes"] == "Bring rulers"


def test_partial_update_clears_nullable_fields(client, plan, owner, auth_header):
    response = client.put(f"/api/lesson-plans/{plan['id']}", json={"objectives": ""}, headers=auth_header(owner))
    assert response.status_code == 200
    assert response.json()["objectives"] is None
    assert response.json()["title"] == "Fractions"


def test_other_teacher_cannot_view_update_or_delete(client, plan, other_teacher, auth_header):
    headers = auth_header(other_teacher)
    assert client.get(f"/api/lesson-plans/{plan['id']}", headers=headers).status_code == 403
    response = client.put(f"/api/lesson-plans/{plan['id']}", json={"title": "Mine now"}, headers=headers)
    assert response.status_code == 403
    assert response.json()["message"] == "You can only manage your own lesson plans"
    assert client.delete(f"/api/lesson-plans/{plan['id']}", headers=headers).status_code == 403


def test_owner_can_delete(client, plan, owner, auth_header):
    headers = auth_header(owner)
    assert client.delete(f"/api/lesson-plans/{plan['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/lesson-plans/{plan['id']}", headers=headers).status_code == 404


def test_admin_bypasses_ownership(client, plan, admin, auth_header):
    response = client.put(f"/api/lesson-plans/{plan['id']}", json={"title": "Reviewed"}, headers=auth_header(admin))
    assert response.status_code == 200


def test_listing_is_scoped_to_own_plans(client, plan, owner, other_teacher, auth_header):
    client.post("/api/lesson-plans", json={**PLAN, "title": "Decimals"}, headers=auth_header(other_teacher))

    own = client.get("/api/lesson-plans", headers=auth_header(owner)).json()
    assert [p["title"] for p in own] == ["Fractions"]


def test_admin_lists_all_and_filters(client, plan, other_teacher, admin, auth_header):
    client.post("/api/lesson-plans", json={**PLAN, "title": "Decimals"}, headers=auth_header(other_teacher))
    headers = auth_header(admin)

    assert len(client.get("/api/lesson-plans", headers=headers).json()) == 2
    filtered = client.get("/api/lesson-plans", params={"teacher_id": plan["teacher_id"]}, headers=headers).json()
    assert [p["title"] for p in filtered] == ["Fractions"]
    assert client.get("/api/lesson-plans", params={"status": "completed"}, headers=headers).json() == []


def test_teacher_without_profile_cannot_create(client, teacher, auth_header):
    response = client.post("/api/lesson-plans", json=PLAN, headers=auth_header(teacher))
    assert response.status_code == 400
    assert response.json()["error"] == "Teacher profile not found"


def test_teacher_without_profile_owns_nothing(client, plan, teacher, auth_header):
    assert client.get("/api/lesson-plans", headers=auth_header(teacher)).json() == []
    assert client.get(f"/api/lesson-plans/{plan['id']}", headers=auth_header(teacher)).status_code == 403


def test_admin_must_name_the_teacher(client, admin, make_teacher_profile, auth_header):
    headers = auth_header(admin)
    response = client.post("/api/lesson-plans", json=PLAN, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "teacher_id is required"

    profile = make_teacher_profile()
    response = client.post("/api/lesson-plans", json={**PLAN, "teacher_id": profile.id}, headers=headers)
    assert response.status_code == 201
    assert response.json()["teacher_id"] == profile.id


def test_title_and_date_are_required(client, owner, auth_header):
    response = client.post("/api/lesson-plans", json={"title": "No date"}, headers=auth_header(owner))
    assert response.status_code == 422


def test_students_have_no_access(client, student, auth_header):
    response = client.get("/api/lesson-plans", headers=auth_header(student))
    assert response.status_code == 403
    assert response.json()["currentRole"] == "student"


def test_update_schema_parses_dates():
    assert LessonPlanUpdate(date="2026-04-01").date == date(2026, 4, 1)
    assert LessonPlanUpdate().date is None


def test_owner_can_reschedule(client, plan, owner, auth_header):
    response = client.put(f"/api/lesson-plans/{plan['id']}", json={"date": "2026-04-01"}, headers=auth_header(owner))
    assert response.status_code == 200
    assert response.json()["date"] == "2026-04-01"


def test_create_survives_dropped_connection(client, owner, auth_header, drop_first_commit):
    commits = drop_first_commit(lesson_plan_service)
    response = client.post("/api/lesson-plans", json=PLAN, headers=auth_header(owner))
    assert response.status_code == 201
    assert response.json()["title"] == "Fractions"
    assert len(commits) == 2
    assert len(client.get("/api/lesson-plans", headers=auth_header(owner)).json()) == 1


def test_admin_create_keeps_teacher_after_dropped_connection(
    client, admin, make_teacher_profile, auth_header, drop_first_commit
):
    profile = make_teacher_profile()
    commits = drop_first_commit(lesson_plan_service)
    response = client.post("/api/lesson-plans", json={**PLAN, "teacher_id": profile.id}, headers=auth_header(admin))
    assert response.status_code == 201
    assert response.json()["teacher_id"] == profile.id
    assert len(commits) == 2
