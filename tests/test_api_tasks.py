"""
Tests — Task API (list, create, status/notes, photos, CSV import).
"""

import io

import pytest

from megamounds.models import db
from megamounds.models.task import Task


def _create_task(project, **overrides):
    data = {
        "title": "Plaster lift shaft",
        "week": "WEEK 1",
        "section": "Roofing & Rooftop",
        "status": "Not Started",
        **overrides,
    }
    task = Task(project_id=project.id, **data)
    db.session.add(task)
    db.session.commit()
    return task


# ═════════════════════════════════════════════════════════════════════════════
# Auth guard
# ═════════════════════════════════════════════════════════════════════════════

class TestAuthGuard:
    def test_list_requires_token(self, client, project):
        res = client.get(f"/api/v1/projects/{project.id}/tasks")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_AUTH"

    def test_bad_token_is_anonymous(self, client, project):
        res = client.get(
            f"/api/v1/projects/{project.id}/tasks",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert res.status_code == 401


# ═════════════════════════════════════════════════════════════════════════════
# Task CRUD
# ═════════════════════════════════════════════════════════════════════════════

class TestTaskList:
    def test_list_filtered_by_week(self, client, project, supervisor_headers):
        _create_task(project, title="A", week="WEEK 1")
        _create_task(project, title="B", week="WEEK 2")
        res = client.get(
            f"/api/v1/projects/{project.id}/tasks", query_string={"week": "WEEK 2"}, headers=supervisor_headers,
        )
        assert res.status_code == 200
        data = res.get_json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "B"

    def test_unknown_project(self, client, supervisor_headers):
        res = client.get("/api/v1/projects/999/tasks", headers=supervisor_headers)
        assert res.status_code == 404

    def test_critical_list(self, client, project, engineer_headers):
        _create_task(project, title="Crit", is_critical=True)
        _create_task(project, title="Normal")
        res = client.get(f"/api/v1/projects/{project.id}/tasks/critical", headers=engineer_headers)
        assert [t["title"] for t in res.get_json()["items"]] == ["Crit"]


class TestTaskCreate:
    def test_manager_creates(self, client, project, pm_headers):
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks",
            json={"title": "Cast slab", "week": "3", "section": "Structure", "priority": "High"},
            headers=pm_headers,
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["week"] == "WEEK 3"
        assert data["priority"] == "High"
        assert data["status"] == "Not Started"

    def test_week_defaults_to_week_one(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/tasks", json={"title": "Survey"}, headers=pm_headers)
        assert res.get_json()["week"] == "WEEK 1"

    @pytest.mark.parametrize("flag,expected", [
        ("false", False), ("true", True), ("Yes", True), (True, True), (False, False), (None, False),
    ])
    def test_critical_flag_coerced(self, client, project, pm_headers, flag, expected):
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks",
            json={"title": "Pour columns", "is_critical": flag},
            headers=pm_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["is_critical"] is expected

    def test_title_required(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/tasks", json={"week": "WEEK 1"}, headers=pm_headers)
        assert res.status_code == 422
        assert res.get_json()["details"] == {"title": "required"}

    def test_supervisor_cannot_create(self, client, project, supervisor_headers):
        res = client.post(f"/api/v1/projects/{project.id}/tasks", json={"title": "X"}, headers=supervisor_headers)
        assert res.status_code == 403
        assert Task.query.count() == 0


class TestTaskStatus:
    def test_editor_updates_status(self, client, project, engineer_headers):
        task = _create_task(project)
        res = client.patch(f"/api/v1/tasks/{task.id}/status", json={"status": "Complete"}, headers=engineer_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "Complete"
        assert db.session.get(Task, task.id).status == "Complete"

    def test_invalid_status_rejected(self, client, project, engineer_headers):
        task = _create_task(project)
        res = client.patch(f"/api/v1/tasks/{task.id}/status", json={"status": "Done"}, headers=engineer_headers)
        assert res.status_code == 422

    def test_missing_status(self, client, project, engineer_headers):
        task = _create_task(project)
        res = client.patch(f"/api/v1/tasks/{task.id}/status", json={}, headers=engineer_headers)
        assert res.status_code == 400

    def test_subcontractor_read_only(self, client, project, subcontractor_headers):
        task = _create_task(project)
        res = client.patch(
            f"/api/v1/tasks/{task.id}/status", json={"status": "Complete"}, headers=subcontractor_headers,
        )
        assert res.status_code == 403
        assert db.session.get(Task, task.id).status == "Not Started"

    @pytest.mark.parametrize("start,expected", [
        ("Not Started", "In Progress"),
        ("In Progress", "Complete"),
        ("Complete", "Blocked"),
        ("Blocked", "Not Started"),
    ])
    def test_cycle(self, client, project, supervisor_headers, start, expected):
        task = _create_task(project, status=start)
        res = client.post(f"/api/v1/tasks/{task.id}/status/next", headers=supervisor_headers)
        assert res.get_json()["status"] == expected

    def test_notes(self, client, project, supervisor_headers):
        task = _create_task(project)
        res = client.patch(
            f"/api/v1/tasks/{task.id}/notes", json={"notes": "Waiting on scaffold"}, headers=supervisor_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["notes"] == "Waiting on scaffold"


# ═════════════════════════════════════════════════════════════════════════════
# Photos
# ═════════════════════════════════════════════════════════════════════════════

class TestPhotos:
    @pytest.fixture(autouse=True)
    def _storage(self, app, tmp_path, monkeypatch):
        monkeypatch.setitem(app.config, "STORAGE_ROOT", str(tmp_path))
        self.root = tmp_path

    def test_upload_and_list(self, client, project, supervisor_headers):
        task = _create_task(project)
        res = client.post(
            f"/api/v1/tasks/{task.id}/photos",
            data={"file": (io.BytesIO(b"\xff\xd8jpegdata"), "lift shaft.jpg")},
            content_type="multipart/form-data",
            headers=supervisor_headers,
        )
        assert res.status_code == 201
        photo = res.get_json()
        assert photo["filename"] == "lift shaft.jpg"
        assert photo["url"].startswith(f"/uploads/tasks/{task.id}/")
        assert list((self.root / "tasks" / str(task.id)).iterdir())

        res = client.get(f"/api/v1/tasks/{task.id}/photos", headers=supervisor_headers)
        assert res.get_json()["total"] == 1

    def test_rejects_non_image(self, client, project, supervisor_headers):
        task = _create_task(project)
        res = client.post(
            f"/api/v1/tasks/{task.id}/photos",
            data={"file": (io.BytesIO(b"MZ"), "setup.exe")},
            content_type="multipart/form-data",
            headers=supervisor_headers,
        )
        assert res.status_code == 422

    def test_missing_file(self, client, project, supervisor_headers):
        task = _create_task(project)
        res = client.post(f"/api/v1/tasks/{task.id}/photos", headers=supervisor_headers)
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# CSV import
# ═════════════════════════════════════════════════════════════════════════════

class TestTaskImport:
    def test_template_download(self, client):
        res = client.get("/api/v1/tasks/import/template")
        assert res.status_code == 200
        assert res.mimetype == "text/csv"
        assert res.get_data(as_text=True).startswith("title,week,section")

    def test_validate_dry_run(self, client, project, pm_headers):
        csv_text = "title,week,section\nA,WEEK 1,Roofing\nB,WEEK 1,\n"
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks/import/validate",
            json={"csv_content": csv_text},
            headers=pm_headers,
        )
        assert res.status_code == 200
        data = res.get_json()
        assert data["valid_count"] == 1
        assert data["errors"] == ["Row 3: Missing required fields: section"]
        assert Task.query.count() == 0

    def test_import_file_upload(self, client, project, pm_headers):
        csv_bytes = "title,week,section\nA,WEEK 1,Roofing\nB,2,Facade\n".encode("utf-8")
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks/import",
            data={"file": (io.BytesIO(csv_bytes), "tasks.csv")},
            content_type="multipart/form-data",
            headers=pm_headers,
        )
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "completed"
        assert data["inserted"] == 2
        weeks = [t.week for t in Task.query.order_by(Task.id)]
        assert weeks == ["WEEK 1", "WEEK 2"]

    def test_partial_import_is_207(self, client, project, pm_headers):
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks/import",
            json={"csv_content": "title,week,section\nA,WEEK 1,Roofing\n,WEEK 1,Roofing\n"},
            headers=pm_headers,
        )
        assert res.status_code == 207
        assert res.get_json()["error_count"] == 1

    def test_empty_csv(self, client, project, pm_headers):
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks/import",
            json={"csv_content": "title,week,section\n"},
            headers=pm_headers,
        )
        assert res.status_code == 400

    def test_no_content(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/tasks/import", headers=pm_headers)
        assert res.status_code == 400

    def test_engineer_cannot_import(self, client, project, engineer_headers):
        res = client.post(
            f"/api/v1/projects/{project.id}/tasks/import",
            json={"csv_content": "title,week,section\nA,WEEK 1,Roofing\n"},
            headers=engineer_headers,
        )
        assert res.status_code == 403
