# logistics/views.py
import logging

from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from .dataclasses import ArtworkInput
from .models import Project
from .serializers import (
    ArtworkSerializer,
    FlowGenerationRequestSerializer,
    LogisticsFlowSerializer,
    PackingEstimateSerializer,
    QuoteLineSerializer,
)
from .services.cost_calculator import calculate_cost
from .services.flow_generator import FlowGenerationError
from .services.packing_engine import InvalidArtworkError, calculate_packing, crate_type_label
from .services.routing import get_route_resolver
from .services.state import generate_project_flows, propagate_project_constraints
from .services.utils import money

logger = logging.getLogger(__name__)


class PackingEstimateView(APIView):
    """Crate specification and price for a single artwork, without storing anything."""

    def post(self, request):
        ser = PackingEstimateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        artwork = ArtworkInput(id="estimate", **ser.validated_data)

        spec = calculate_packing(artwork)
        cost = calculate_cost(spec)
        return Response({
            "recommended_crate": crate_type_label(spec.crate_type, spec.needs_travel_frame),
            "crate_specification": spec.as_dict(),
            "cost_breakdown": cost.as_dict(),
            "selling_price": str(money(cost.selling_price)),
        }, status=status.HTTP_200_OK)


class FlowGenerateView(APIView):
    def post(self, request, project_id):
        project = get_object_or_404(Project, pk=project_id)
        ser = FlowGenerationRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        resolver = get_route_resolver(offline=ser.validated_data["offline"])
        try:
            result, alerts = generate_project_flows(project, route_resolver=resolver)
        except InvalidArtworkError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except FlowGenerationError as exc:
            logger.error(f"Flow generation failed for project {project.pk}: {exc}")
            return Response(
                {"detail": str(exc), "segment": list(exc.segment_key)},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response({
            "artworks": ArtworkSerializer(project.artworks.all(), many=True).data,
            "flows": LogisticsFlowSerializer(project.flows.all(), many=True).data,
            "quote_lines": QuoteLineSerializer(project.quote_lines.all(), many=True).data,
            "total_price": str(money(result.total_price)),
            "alerts": alerts,
        }, status=status.HTTP_201_CREATED)


class ConstraintsApplyView(APIView):
    def post(self, request, project_id):
        project = get_object_or_404(Project, pk=project_id)
        alerts = propagate_project_constraints(project)
        project.refresh_from_db()
        return Response({
            "alerts": alerts,
            "end_date": project.end_date,
            "quote_lines": QuoteLineSerializer(project.quote_lines.all(), many=True).data,
        }, status=status.HTTP_200_OK)
