"""
Tests — Project team API.
"""

from megamounds.models.enums import Role
from megamounds.models.project import ProjectMember


class TestTeam:
    def test_add_by_email_and_list(self, client, project, pm_headers, make_profile):
        make_profile(Role.SITE_ENGINEER, email="eng@example.com", full_name="Bola Engineer")
        res = client.post(
            f"/api/v1/projects/{project.id}/team", json={"email": "ENG@example.com"}, headers=pm_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["profile"]["full_name"] == "Bola Engineer"

        res = client.get(f"/api/v1/projects/{project.id}/team", headers=pm_headers)
        data = res.get_json()
        assert data["total"] == 1
        assert data["items"][0]["profile"]["email"] == "eng@example.com"

    def test_add_by_profile_id(self, client, project, pm_headers, make_profile):
        profile = make_profile(Role.SUBCONTRACTOR, email="trade@example.com")
        res = client.post(
            f"/api/v1/projects/{project.id}/team", json={"profile_id": profile.id}, headers=pm_headers,
        )
        assert res.status_code == 201
        assert ProjectMember.query.filter_by(project_id=project.id).count() == 1

    def test_duplicate_member(self, client, project, pm_headers, make_profile):
        profile = make_profile(Role.SITE_ENGINEER, email="eng@example.com")
        url = f"/api/v1/projects/{project.id}/team"
        client.post(url, json={"profile_id": profile.id}, headers=pm_headers)
        res = client.post(url, json={"profile_id": profile.id}, headers=pm_headers)
        assert res.status_code == 422

    def test_unknown_profile(self, client, project, pm_headers):
        res = client.post(
            f"/api/v1/projects/{project.id}/team", json={"email": "nobody@example.com"}, headers=pm_headers,
        )
        assert res.status_code == 404

    def test_missing_identifier(self, client, project, pm_headers):
        res = client.post(f"/api/v1/projects/{project.id}/team", json={}, headers=pm_headers)
        assert res.status_code == 422

    def test_supervisor_cannot_add(self, client, project, supervisor_headers, make_profile):
        profile = make_profile(Role.SITE_ENGINEER, email="eng@example.com")
        res = client.post(
            f"/api/v1/projects/{project.id}/team", json={"profile_id": profile.id}, headers=supervisor_headers,
        )
        assert res.status_code == 403

    def test_team_shows_in_snapshot(self, client, project, pm_headers, make_profile):
        profile = make_profile(Role.SITE_ENGINEER, email="eng@example.com")
        client.post(f"/api/v1/projects/{project.id}/team", json={"profile_id": profile.id}, headers=pm_headers)
        data = client.get(f"/api/v1/projects/{project.id}/snapshot", headers=pm_headers).get_json()
        assert [m["profile_id"] for m in data["team"]] == [profile.id]
