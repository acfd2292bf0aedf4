import pytest
from sqlalchemy.exc import OperationalError

from class_management import db_retry
from class_management.errors import DatabaseUnavailable
from class_management.permissions import Role
from class_management.services import superadmin as superadmin_service


class TestSelfProtection:
    def test_cannot_change_own_role(self, client, superadmin, auth_header):
        response = client.put(
            f"/api/superadmin/users/{superadmin.id}/role", json={"role": "student"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot change your own role"

    def test_cannot_delete_self(self, client, superadmin, auth_header):
        response = client.delete(f"/api/superadmin/users/{superadmin.id}", headers=auth_header(superadmin))
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Cannot delete yourself"
        assert body["message"] == "Super admins cannot delete their own account"

    def test_cannot_demote_self(self, client, superadmin, auth_header):
        response = client.post(f"/api/superadmin/users/{superadmin.id}/demote", headers=auth_header(superadmin))
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot demote yourself"

    def test_cannot_promote_self(self, client, superadmin, auth_header):
        response = client.post(
            f"/api/superadmin/users/{superadmin.id}/promote-admin", headers=auth_header(superadmin)
        )
        assert response.status_code == 400

    def test_role_check_runs_before_self_check(self, client, admin, auth_header):
        response = client.delete(f"/api/superadmin/users/{admin.id}", headers=auth_header(admin))
        assert response.status_code == 403
        assert response.json()["requiredRoles"] == ["superadmin"]


class TestRoleManagement:
    def test_change_role(self, client, superadmin, student, auth_header):
        response = client.put(
            f"/api/superadmin/users/{student.id}/role", json={"role": "teacher"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Role updated successfully"
        assert body["user"]["role"] == "teacher"

    def test_change_role_rejects_unknown_role(self, client, superadmin, student, auth_header):
        response = client.put(
            f"/api/superadmin/users/{student.id}/role", json={"role": "principal"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid role"
        assert body["validRoles"] == ["superadmin", "admin", "teacher", "student"]

    def test_change_role_of_missing_user(self, client, superadmin, auth_header):
        response = client.put(
        "/api/superadmin/users/9999/role", json={"role": "admin"}, headers=auth_header(superadmin)
    )
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_other_superadmins_can_be_managed(self, client, superadmin, make_user, auth_header):
        other = make_user(Role.SUPERADMIN)
        response = client.put(
            f"/api/superadmin/users/{other.id}/role", json={"role": "admin"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 200

    def test_promote_admin(self, client, superadmin, teacher, auth_header):
        response = client.post(f"/api/superadmin/users/{teacher.id}/promote-admin", headers=auth_header(superadmin))
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    def test_demote_defaults_to_student(self, client, superadmin, admin, auth_header):
        response = client.post(f"/api/superadmin/users/{admin.id}/demote", headers=auth_header(superadmin))
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "student"
        assert body["message"] == "User demoted to student successfully"

    def test_demote_to_teacher(self, client, superadmin, admin, auth_header):
        response = client.post(
            f"/api/superadmin/users/{admin.id}/demote", json={"role": "teacher"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "teacher"

    def test_demote_rejects_admin_roles(self, client, superadmin, admin, auth_header):
        response = client.post(
            f"/api/superadmin/users/{admin.id}/demote", json={"role": "admin"}, headers=auth_header(superadmin)
        )
        assert response.status_code == 400
        assert response.json()["validRoles"] == ["teacher", "student"]

    def test_delete_user(self, client, superadmin, student, auth_header):
        headers = auth_header(superadmin)
        student_id = student.id
        assert client.delete(f"/api/superadmin/users/{student_id}", headers=headers).status_code == 200
        assert client.delete(f"/api/superadmin/users/{student_id}", headers=headers).status_code == 404


class TestListings:
    @pytest.fixture
    def population(self, superadmin, admin, teacher, student):
        return {"superadmin": superadmin, "admin": admin, "teacher": teacher, "student": student}

    @pytest.mark.parametrize(
        "viewer, expected",
        [
            ("superadmin", {"superadmin", "admin", "teacher", "student"}),
            ("admin", {"teacher", "student"}),
            ("teacher", {"student"}),
        ],
    )
    def test_all_users_is_scoped_by_role(self, client, population, auth_header, viewer, expected):
        response = client.get("/api/superadmin/users/all", headers=auth_header(population[viewer]))
        assert response.status_code == 200
        assert {user["role"] for user in response.json()} == expected

    def test_students_cannot_list_users(self, client, population, auth_header):
        response = client.get("/api/superadmin/users/all", headers=auth_header(population["student"]))
        assert response.status_code == 403

    def test_admins_listing(self, client, population, auth_header):
        response = client.get("/api/superadmin/admins", headers=auth_header(population["superadmin"]))
        assert response.status_code == 200
        assert {user["role"] for user in response.json()} == {"superadmin", "admin"}

    def test_admins_listing_is_superadmin_only(self, client, population, auth_header):
        assert client.get("/api/superadmin/admins", headers=auth_header(population["admin"])).status_code == 403

    def test_system_stats(self, client, population, auth_header):
        response = client.get("/api/superadmin/system/stats", headers=auth_header(population["superadmin"]))
        assert response.status_code == 200
        stats = response.json()
        assert stats["total_users"] == 4
        assert stats["superadmins"] == stats["admins"] == stats["teachers"] == stats["students"] == 1
        assert stats["total_classes"] == 0
        assert "timestamp" in stats


class TestRoleChangeRetry:
    @pytest.fixture
    def failing_commits(self, db_session, monkeypatch):
        """Fail the first ``n`` commits of the session with a dropped connection."""
        monkeypatch.setattr(db_retry, "_reconnect", lambda db: db.rollback())
        real_commit = db_session.commit
        attempts = []

        def _install(n):
            def commit():
                attempts.append(1)
                if len(attempts) <= n:
                    raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))
                real_commit()

            monkeypatch.setattr(db_session, "commit", commit)
            return attempts

        return _install

    @pytest.mark.parametrize(
        "operation, expected",
        [
            (lambda db, user_id: superadmin_service.change_role(db, user_id, "admin"), Role.ADMIN),
            (lambda db, user_id: superadmin_service.promote_to_admin(db, user_id), Role.ADMIN),
            (lambda db, user_id: superadmin_service.demote_user(db, user_id, "teacher"), Role.TEACHER),
        ],
    )
    def test_dropped_connection_is_retried(self, db_session, student, failing_commits, operation, expected):
        attempts = failing_commits(1)
        assert operation(db_session, student.id).role == expected
        assert len(attempts) == 2

    def test_retries_are_not_nested(self, db_session, student, failing_commits):
        attempts = failing_commits(100)
        with pytest.raises(DatabaseUnavailable):
            superadmin_service.promote_to_admin(db_session, student.id)
        assert len(attempts) == 3
