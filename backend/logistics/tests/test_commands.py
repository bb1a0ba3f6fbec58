from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from logistics.models import Artwork, LogisticsFlow, Project, ProjectConstraints

pytestmark = pytest.mark.django_db


@pytest.fixture
def project():
    project = Project.objects.create(name="Expo Paris", organizing_city="Paris", organizing_country="France")
    Artwork.objects.create(
        project=project, title="Nymphéas",
        height_cm=Decimal("100"), width_cm=Decimal("80"), depth_cm=Decimal("5"),
        weight_kg=Decimal("10"), lender_city="Lyon", lender_country="France",
    )
    return project


def test_generate_flows_offline(project):
    out = StringIO()
    call_command("generate_flows", str(project.pk), "--offline", stdout=out)

    assert "Lyon -> Paris [DOMESTIC_ROAD/OUTBOUND]" in out.getvalue()
    assert "Generated 2 flows and 4 quote lines" in out.getvalue()
    assert LogisticsFlow.objects.filter(project=project).count() == 2


def test_generate_flows_unknown_project():
    with pytest.raises(CommandError, match="does not exist"):
        call_command("generate_flows", "4242", "--offline")


def test_apply_constraints(project):
    ProjectConstraints.objects.create(project=project, schedule={"night_work": True})
    out = StringIO()
    call_command("apply_constraints", str(project.pk), stdout=out)

    assert "WARNING: Majoration main d'œuvre x1.5" in out.getvalue()
    assert "(1 alerts)" in out.getvalue()
