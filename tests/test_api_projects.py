"""
Tests — Project API (dashboard list, create/update, snapshot, forecast).
"""

from datetime import date, datetime, timedelta, timezone

from megamounds.models import db
from megamounds.models.project import Project
from megamounds.models.resource import Resource
from megamounds.models.risk import Risk
from megamounds.models.task import Task
from megamounds.services import view_service


def _add_tasks(project, specs):
    for title, week, section, status in specs:
        db.session.add(Task(
            project_id=project.id, title=title, week=week, section=section, status=status,
            is_critical=title.startswith("!"),
        ))
    db.session.commit()


# ═════════════════════════════════════════════════════════════════════════════
# Dashboard list
# ═════════════════════════════════════════════════════════════════════════════

class TestProjectList:
    def test_progress_and_stats(self, client, project, other_project, supervisor_headers):
        project.rag_status = "On Track"
        other_project.rag_status = "Delayed"
        db.session.commit()
        _add_tasks(project, [
            ("A", "WEEK 1", "Roofing", "Complete"),
            ("B", "WEEK 1", "Roofing", "In Progress"),
            ("C", "WEEK 2", "Facade", "Not Started"),
        ])

        res = client.get("/api/v1/projects", headers=supervisor_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert data["stats"] == {"total": 2, "on_track": 1, "at_risk": 0, "delayed": 1}
        item = next(i for i in data["items"] if i["id"] == project.id)
        assert item["total_tasks"] == 3
        assert item["done_tasks"] == 1
        assert item["progress"] == 33
        other = next(i for i in data["items"] if i["id"] == other_project.id)
        assert other["progress"] == 0

    def test_search_and_filter_keep_stats(self, client, project, other_project, supervisor_headers):
        res = client.get("/api/v1/projects?search=ikoyi", headers=supervisor_headers)
        data = res.get_json()
        assert [i["name"] for i in data["items"]] == ["Ikoyi Mall Fit-out"]
        assert data["stats"]["total"] == 2

        res = client.get("/api/v1/projects", query_string={"rag_status": "At Risk"}, headers=supervisor_headers)
        assert res.get_json()["items"] == []


class TestProjectWrite:
    def test_create(self, client, pm_headers):
        res = client.post(
            "/api/v1/projects",
            json={"name": "Victoria Island Annex", "target_date": "2026-12-01", "location": "VI"},
            headers=pm_headers,
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["rag_status"] == "Not Started"
        assert data["target_date"] == "2026-12-01"

    def test_create_requires_name_and_date(self, client, pm_headers):
        res = client.post("/api/v1/projects", json={"location": "VI"}, headers=pm_headers)
        assert res.status_code == 422
        assert set(res.get_json()["details"]) == {"name", "target_date"}

    def test_engineer_cannot_create(self, client, engineer_headers):
        res = client.post(
            "/api/v1/projects", json={"name": "X", "target_date": "2026-12-01"}, headers=engineer_headers,
        )
        assert res.status_code == 403
        assert Project.query.count() == 0

    def test_update_rag(self, client, project, pm_headers):
        res = client.patch(f"/api/v1/projects/{project.id}", json={"rag_status": "At Risk"}, headers=pm_headers)
        assert res.status_code == 200
        assert res.get_json()["rag_status"] == "At Risk"

    def test_update_rag_invalid(self, client, project, pm_headers):
        res = client.patch(f"/api/v1/projects/{project.id}", json={"rag_status": "Amber"}, headers=pm_headers)
        assert res.status_code == 422

    def test_get_unknown(self, client, supervisor_headers):
        assert client.get("/api/v1/projects/12345", headers=supervisor_headers).status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# Snapshot & forecast
# ═════════════════════════════════════════════════════════════════════════════

class TestSnapshot:
    def _populate(self, project):
        _add_tasks(project, [
            ("!Plaster lift shaft", "WEEK 1", "Roofing", "Complete"),
            ("Duct casting", "WEEK 1", "Roofing", "In Progress"),
            ("Lift frame", "WEEK 1", "Lift Shaft", "Complete"),
            ("Facade panels", "WEEK 2", "Facade", "Blocked"),
        ])
        db.session.add_all([
            Resource(project_id=project.id, name="Cement", milestone="WEEK 1", quantity=10,
                     cost_per_unit=100, status="On Site", milestone_date=date(2026, 2, 17)),
            Resource(project_id=project.id, name="Crane", milestone="", quantity=1,
                     cost_per_unit=1000, type="Equipment"),
            Risk(project_id=project.id, title="Rain"),
        ])
        db.session.commit()

    def test_snapshot_for_manager(self, client, project, pm_headers):
        self._populate(project)
        res = client.get(f"/api/v1/projects/{project.id}/snapshot", headers=pm_headers)
        assert res.status_code == 200
        data = res.get_json()

        tasks = data["tasks"]
        assert tasks["total"] == 4
        assert tasks["done"] == 2
        assert tasks["percent_complete"] == 50
        assert tasks["weeks"] == ["WEEK 1", "WEEK 2"]
        assert tasks["selected_week"] == "WEEK 1"
        # tasks are read ordered by week then section
        assert [s["section"] for s in tasks["sections"]] == ["Lift Shaft", "Roofing"]
        assert tasks["sections"][1]["percent_complete"] == 50
        assert [t["title"] for t in tasks["sections"][1]["tasks"]] == ["!Plaster lift shaft", "Duct casting"]
        assert [t["title"] for t in tasks["critical"]] == ["!Plaster lift shaft"]
        assert tasks["chart"][1]["week"] == "W2"

        assert data["resources"]["cost"]["total_cost"] == 2000
        assert [g["milestone"] for g in data["resources"]["milestones"]] == ["WEEK 1", "Unscheduled"]
        assert data["risks"]["active"] == 1
        assert data["permissions"]["can_manage"] is True
        assert 5 <= data["forecast"]["probability"] <= 99

    def test_snapshot_selected_week(self, client, project, supervisor_headers):
        self._populate(project)
        data = client.get(
            f"/api/v1/projects/{project.id}/snapshot", query_string={"week": "WEEK 2"}, headers=supervisor_headers,
        ).get_json()
        assert data["tasks"]["selected_week"] == "WEEK 2"
        assert data["tasks"]["sections"][0]["section"] == "Facade"

    def test_snapshot_for_subcontractor_hides_costs(self, client, project, subcontractor_headers):
        self._populate(project)
        data = client.get(f"/api/v1/projects/{project.id}/snapshot", headers=subcontractor_headers).get_json()
        assert "cost" not in data["resources"]
        assert data["permissions"]["can_edit"] is False

    def test_empty_project(self, client, project, supervisor_headers):
        data = client.get(f"/api/v1/projects/{project.id}/snapshot", headers=supervisor_headers).get_json()
        assert data["tasks"]["total"] == 0
        assert data["tasks"]["selected_week"] is None
        assert data["tasks"]["sections"] == []
        assert data["forecast"]["probability"] == 0
        assert data["forecast"]["band"] == "no_data"

    def test_unknown_project(self, client, supervisor_headers):
        assert client.get("/api/v1/projects/999/snapshot", headers=supervisor_headers).status_code == 404


class TestForecastEndpoint:
    def test_forecast_values(self, client, project, supervisor_headers):
        _add_tasks(project, [(f"T{i}", "WEEK 1", "Roofing", "Complete" if i < 5 else "Not Started")
                             for i in range(10)])
        res = client.get(f"/api/v1/projects/{project.id}/forecast", headers=supervisor_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert data["project_id"] == project.id
        assert data["total_tasks"] == 10
        assert data["completed_tasks"] == 5
        assert 90 <= data["probability"] <= 99
        assert data["band"] == "on_track"

    def test_pinned_clock(self, project):
        now = datetime.now(timezone.utc)
        project.created_at = now - timedelta(days=10)
        project.target_date = (now + timedelta(days=2)).date()
        _add_tasks(project, [(f"T{i}", "WEEK 1", "Roofing", "Not Started") for i in range(4)])

        result = view_service.project_forecast(project.id, "Site Engineer", now=now)
        assert result["probability"] == 5
        assert result["band"] == "high_risk"
