from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from logistics.models import Project
from logistics.services.state import propagate_project_constraints


class Command(BaseCommand):
    help = "Apply the project's CCTP constraints matrix to its flows and quote lines."

    def add_arguments(self, parser):
        parser.add_argument("project_id", type=int)

    def handle(self, *args, **options):
        try:
            project = Project.objects.get(pk=options["project_id"])
        except Project.DoesNotExist:
            raise CommandError(f"Project {options['project_id']} does not exist")

        alerts = propagate_project_constraints(project)
        for alert in alerts:
            style = self.style.ERROR if alert["severity"] == "CRITICAL" else self.style.WARNING
            self.stdout.write(style(f"{alert['severity']}: {alert['message']}"))

        self.stdout.write(self.style.SUCCESS(f"Applied constraints to project {project.pk} ({len(alerts)} alerts)"))
