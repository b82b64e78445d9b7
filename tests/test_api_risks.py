"""
Tests — Risk register API.
"""

import pytest

from megamounds.models import db
from megamounds.models.risk import Risk


@pytest.fixture()
def risk(project):
    r = Risk(project_id=project.id, title="Late lift delivery", mitigation="Chase supplier")
    db.session.add(r)
    db.session.commit()
    return r


class TestRiskCreate:
    def test_defaults(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/risks", json={"title": "Rain delays"}, headers=pm_headers)
        assert res.status_code == 201
        data = res.get_json()
        assert data["likelihood"] == "High"
        assert data["impact"] == "High"
        assert data["status"] == "Active"

    def test_title_required(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/risks", json={"title": "  "}, headers=pm_headers)
        assert res.status_code == 422

    def test_supervisor_cannot_create(self, client, project, supervisor_headers):
        res = client.post(f"/api/v1/projects/{project.id}/risks", json={"title": "X"}, headers=supervisor_headers)
        assert res.status_code == 403


class TestRiskList:
    def test_list_and_filter(self, client, project, risk, subcontractor_headers):
        db.session.add(Risk(project_id=project.id, title="Old issue", status="Resolved"))
        db.session.commit()

        res = client.get(f"/api/v1/projects/{project.id}/risks", headers=subcontractor_headers)
        assert res.get_json()["total"] == 2

        res = client.get(f"/api/v1/projects/{project.id}/risks?status=Active", headers=subcontractor_headers)
        assert [r["title"] for r in res.get_json()["items"]] == ["Late lift delivery"]


class TestRiskUpdate:
    def test_update_enum_field(self, client, risk, pm_headers):
        res = client.patch(f"/api/v1/risks/{risk.id}", json={"field": "status", "value": "Mitigated"}, headers=pm_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "Mitigated"

    def test_invalid_enum_value(self, client, risk, pm_headers):
        res = client.patch(f"/api/v1/risks/{risk.id}", json={"field": "impact", "value": "Huge"}, headers=pm_headers)
        assert res.status_code == 422
        assert db.session.get(Risk, risk.id).impact == "High"

    def test_free_text_field(self, client, risk, pm_headers):
        res = client.patch(
            f"/api/v1/risks/{risk.id}", json={"field": "mitigation", "value": "Second supplier"}, headers=pm_headers,
        )
        assert res.get_json()["mitigation"] == "Second supplier"

    def test_field_not_editable(self, client, risk, pm_headers):
        res = client.patch(f"/api/v1/risks/{risk.id}", json={"field": "project_id", "value": 9}, headers=pm_headers)
        assert res.status_code == 422

    def test_field_required(self, client, risk, pm_headers):
        res = client.patch(f"/api/v1/risks/{risk.id}", json={"value": "x"}, headers=pm_headers)
        assert res.status_code == 400

    def test_unknown_risk(self, client, pm_headers):
        res = client.patch("/api/v1/risks/404", json={"field": "status", "value": "Resolved"}, headers=pm_headers)
        assert res.status_code == 404
