from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from logistics.models import Artwork, LogisticsFlow, Project, ProjectConstraints

pytestmark = pytest.mark.django_db


@pytest.fixture
def api_client():
    user = get_user_model().objects.create_user(username="regie", email="regie@example.com", password="pass")
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def project():
    project = Project.objects.create(name="Expo Paris", organizing_city="Paris", organizing_country="France")
    Artwork.objects.create(
        project=project, title="Nymphéas",
        height_cm=Decimal("100"), width_cm=Decimal("80"), depth_cm=Decimal("5"),
        weight_kg=Decimal("10"), fragility=2, lender_city="Lyon", lender_country="France",
    )
    return project


def test_requires_authentication(project):
    res = APIClient().post(f"/api/logistics/projects/{project.pk}/flows/generate", {}, format="json")
    assert res.status_code in (401, 403)


class TestPackingEstimate:
    def test_reference_painting(self, api_client):
        payload = {"height_cm": "180", "width_cm": "120", "depth_cm": "10", "weight_kg": "25", "fragility": 2}
        res = api_client.post("/api/logistics/packing/estimate", payload, format="json")

        assert res.status_code == 200
        body = res.json()
        assert body["recommended_crate"] == "Caisse Galerie (T1)"
        assert body["crate_specification"]["crate_type"] == "T1_GALLERY"
        assert body["selling_price"] == "1375.40"

    def test_rejects_bad_fragility(self, api_client):
        payload = {"height_cm": "10", "width_cm": "10", "depth_cm": "1", "weight_kg": "1", "fragility": 9}
        res = api_client.post("/api/logistics/packing/estimate", payload, format="json")
        assert res.status_code == 400
        assert "fragility" in res.json()

    def test_rejects_negative_dimensions(self, api_client):
        payload = {"height_cm": "-10", "width_cm": "10", "depth_cm": "1", "weight_kg": "1"}
        assert api_client.post("/api/logistics/packing/estimate", payload, format="json").status_code == 400


class TestFlowGenerate:
    def url(self, project_id):
        return f"/api/logistics/projects/{project_id}/flows/generate"

    def test_offline_generation(self, api_client, project):
        res = api_client.post(self.url(project.pk), {"offline": True}, format="json")

        assert res.status_code == 201
        body = res.json()
        assert len(body["flows"]) == 2
        assert {f["leg"] for f in body["flows"]} == {"OUTBOUND", "RETURN"}
        assert len(body["quote_lines"]) == 4
        total = sum(Decimal(l["total_price"]) for l in body["quote_lines"])
        assert Decimal(body["total_price"]) == total
        assert body["alerts"] == []
        outbound = next(f for f in body["flows"] if f["leg"] == "OUTBOUND")
        assert body["artworks"][0]["flow"] == outbound["id"]
        assert body["artworks"][0]["recommended_crate"] == "Caisse Galerie (T1)"

    def test_alerts_from_stored_constraints(self, api_client, project):
        ProjectConstraints.objects.create(project=project, access={"tail_lift_required": True})
        body = api_client.post(self.url(project.pk), {"offline": True}, format="json").json()
        assert [a["severity"] for a in body["alerts"]] == ["INFO"]

    def test_unknown_project(self, api_client):
        assert api_client.post(self.url(9999), {"offline": True}, format="json").status_code == 404

    def test_invalid_artwork(self, api_client, project):
        Artwork.objects.create(project=project, title="Cassée", weight_kg=Decimal("-1"))
        res = api_client.post(self.url(project.pk), {"offline": True}, format="json")
        assert res.status_code == 400
        assert "weight_kg" in res.json()["detail"]

    def test_routing_failure_is_bad_gateway(self, api_client, project, monkeypatch):
        class Broken:
            def resolve(self, origin, destination):
                raise RuntimeError("quota exceeded")

        monkeypatch.setattr("logistics.views.get_route_resolver", lambda offline=False: Broken())
        res = api_client.post(self.url(project.pk), {}, format="json")

        assert res.status_code == 502
        assert res.json()["segment"] == ["Lyon", "Paris"]
        assert not LogisticsFlow.objects.filter(project=project).exists()


class TestConstraintsApply:
    def test_deadline_updates_project(self, api_client, project):
        ProjectConstraints.objects.create(project=project, schedule={"hard_deadline": "2026-06-01"})
        res = api_client.post(f"/api/logistics/projects/{project.pk}/constraints/apply", {}, format="json")

        assert res.status_code == 200
        body = res.json()
        assert body["end_date"] == "2026-06-01"
        assert body["alerts"][0]["severity"] == "CRITICAL"

    def test_without_constraints(self, api_client, project):
        res = api_client.post(f"/api/logistics/projects/{project.pk}/constraints/apply", {}, format="json")
        assert res.status_code == 200
        assert res.json()["alerts"] == []
