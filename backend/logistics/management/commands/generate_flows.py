from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from logistics.models import Project
from logistics.services.flow_generator import FlowGenerationError
from logistics.services.packing_engine import InvalidArtworkError
from logistics.services.routing import get_route_resolver
from logistics.services.state import generate_project_flows
from logistics.services.utils import money


class Command(BaseCommand):
    help = "Cluster a project's artworks into priced logistics flows and store them (replaces earlier estimates)."

    def add_arguments(self, parser):
        parser.add_argument("project_id", type=int)
        parser.add_argument("--offline", action="store_true", help="Use estimated distances instead of the routing API")

    def handle(self, *args, **options):
        try:
            project = Project.objects.get(pk=options["project_id"])
        except Project.DoesNotExist:
            raise CommandError(f"Project {options['project_id']} does not exist")

        try:
            result, alerts = generate_project_flows(project, route_resolver=get_route_resolver(offline=options["offline"]))
        except (InvalidArtworkError, FlowGenerationError) as exc:
            raise CommandError(str(exc))

        for flow in result.flows:
            self.stdout.write(
                f"{flow.origin_city} -> {flow.destination_city} [{flow.flow_type}/{flow.leg}] "
                f"{len(flow.artwork_ids)} artwork(s), transport {flow.transport_cost_total} {project.currency}"
            )
        for alert in alerts:
            self.stdout.write(self.style.WARNING(f"{alert['severity']}: {alert['message']}"))

        self.stdout.write(self.style.SUCCESS(
            f"Generated {len(result.flows)} flows and {len(result.quote_lines)} quote lines "
            f"(total {money(result.total_price)} {project.currency})"
        ))
