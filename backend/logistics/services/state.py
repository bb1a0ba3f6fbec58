"""
State-management layer: the only place where engine records meet the ORM.

Engines return new records or action lists; this module converts between
models and records and applies results inside a single transaction.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db import transaction

from ..dataclasses import (
    ACTION_ADD_QUOTE_LINE,
    ACTION_ALERT,
    ACTION_UPDATE_FLOW,
    ACTION_UPDATE_PROJECT,
    ACTION_UPDATE_QUOTE_LINE,
    QUOTE_RECEIVED,
    SOURCE_CALCULATION,
    SOURCE_ESTIMATION,
    VALIDATED,
    AccessConstraints,
    ArtworkInput,
    BusinessRuleAction,
    ConstraintsMatrix,
    CrateSpecification,
    Dimensions,
    ElevatorDimensions,
    FlowGenerationResult,
    FlowRecord,
    LogisticsStep,
    PackingConstraints,
    ProjectRecord,
    QuoteLineRecord,
    ScheduleConstraints,
    SecurityConstraints,
    TeamMember,
    TransportCost,
)
from ..models import Artwork, LogisticsFlow, Project, ProjectConstraints, QuoteLine
from .business_rules import apply_cctp_business_rules
from .flow_generator import FlowGenerator
from .packing_engine import validate_artwork_input
from .pricing_config import PricingConfig, get_pricing_config
from .utils import d

logger = logging.getLogger(__name__)

ENGINE_SOURCES = (SOURCE_CALCULATION, SOURCE_ESTIMATION)
KEPT_FLOW_STATUSES = (QUOTE_RECEIVED, VALIDATED)


# Model -> record

def project_to_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        id=project.pk,
        name=project.name,
        organizing_city=project.organizing_city,
        organizing_country=project.organizing_country,
        currency=project.currency,
        end_date=project.end_date,
    )


def crate_spec_from_dict(data: Optional[Dict[str, Any]]) -> Optional[CrateSpecification]:
    if not data:
        return None

    def dims(raw):
        return Dimensions(h=d(raw["h"]), w=d(raw["w"]), d=d(raw["d"]))

    return CrateSpecification(
        crate_type=data["crate_type"],
        internal=dims(data["internal_dimensions"]),
        external=dims(data["external_dimensions"]),
        foam_thickness_mm=d(data.get("foam_thickness_mm")),
        wall_thickness_mm=d(data.get("wall_thickness_mm")),
        frame_thickness_mm=d(data.get("frame_thickness_mm")),
        needs_travel_frame=bool(data.get("needs_travel_frame", False)),
    )


def artwork_to_record(artwork: Artwork) -> ArtworkInput:
    return ArtworkInput(
        id=str(artwork.pk),
        title=artwork.title,
        height_cm=d(artwork.height_cm),
        width_cm=d(artwork.width_cm),
        depth_cm=d(artwork.depth_cm),
        weight_kg=d(artwork.weight_kg),
        typology=artwork.typology,
        fragility=artwork.fragility,
        has_fragile_frame=artwork.has_fragile_frame,
        insurance_value=d(artwork.insurance_value),
        lender_city=artwork.lender_city,
        lender_country=artwork.lender_country,
        destination_city=artwork.destination_city,
        destination_city_2=artwork.destination_city_2,
        imposed_carrier=artwork.imposed_carrier,
        customs_required=artwork.customs_required,
        courier_required=artwork.courier_required,
        crate_specification=crate_spec_from_dict(artwork.crate_specification),
        recommended_crate=artwork.recommended_crate or None,
        crate_cost=artwork.crate_cost,
        crate_factory_cost=artwork.crate_factory_cost,
        flow_id=str(artwork.flow_id) if artwork.flow_id else None,
    )


def flow_to_record(flow: LogisticsFlow) -> FlowRecord:
    breakdown = flow.transport_breakdown
    return FlowRecord(
        id=str(flow.pk),
        project_id=flow.project_id,
        origin_city=flow.origin_city,
        origin_country=flow.origin_country,
        destination_city=flow.destination_city,
        destination_country=flow.destination_country,
        flow_type=flow.flow_type,
        origin_country_code=flow.origin_country_code,
        destination_country_code=flow.destination_country_code,
        status=flow.status,
        leg=flow.leg,
        artwork_ids=[str(pk) for pk in flow.artworks.values_list("pk", flat=True)],
        assigned_carrier=flow.assigned_carrier,
        validated_carrier=flow.validated_carrier,
        distance_km=flow.distance_km,
        team_members=[
            TeamMember(
                role_id=m["role_id"],
                role_name=m.get("role_name", m["role_id"]),
                count=int(m.get("count", 1)),
                daily_rate=d(m.get("daily_rate")),
                hotel_category=m.get("hotel_category", "STANDARD"),
                rationale=m.get("rationale", ""),
            )
            for m in flow.team_members or []
        ],
        mission_duration_days=flow.mission_duration_days,
        per_diem_total=d(flow.per_diem_total),
        hotel_total=d(flow.hotel_total),
        team_cost_total=d(flow.team_cost_total),
        transport_cost_total=d(flow.transport_cost_total),
        transport_breakdown=TransportCost(
            total_volume_m3=d(breakdown["total_volume_m3"]),
            vehicle_type=breakdown["vehicle_type"],
            base_cost=d(breakdown["base_cost"]),
            distance_cost=d(breakdown["distance_cost"]),
            total_cost=d(breakdown["total_cost"]),
            distance_km=d(breakdown["distance_km"]) if breakdown.get("distance_km") is not None else None,
            rate_per_km=d(breakdown.get("rate_per_km")),
        ) if breakdown else None,
        steps=[
            LogisticsStep(
                id=s["id"],
                flow_id=s.get("flow_id", str(flow.pk)),
                label=s.get("label", ""),
                duration_days=int(s.get("duration_days", 0)),
                start_day=int(s.get("start_day", 0)),
                team_composition=s.get("team_composition", []),
            )
            for s in flow.steps or []
        ],
        notes=flow.notes,
    )


def quote_line_to_record(line: QuoteLine) -> QuoteLineRecord:
    return QuoteLineRecord(
        id=str(line.pk),
        project_id=line.project_id,
        category=line.category,
        description=line.description,
        quantity=d(line.quantity),
        unit_price=d(line.unit_price),
        total_price=d(line.total_price),
        currency=line.currency,
        source=line.source,
        flow_id=str(line.flow_id) if line.flow_id else None,
        agent_name=line.agent_name,
        applied_constraints=list(line.applied_constraints or []),
    )


def _parse_date(value) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def constraints_to_matrix(constraints: ProjectConstraints) -> ConstraintsMatrix:
    access = constraints.access or {}
    security = constraints.security or {}
    packing = constraints.packing or {}
    schedule = constraints.schedule or {}

    elevator = access.get("elevator_dimensions")
    max_height = access.get("max_height_meters")
    return ConstraintsMatrix(
        access=AccessConstraints(
            max_height_meters=d(max_height) if max_height is not None else None,
            tail_lift_required=bool(access.get("tail_lift_required", False)),
            elevator_dimensions=ElevatorDimensions(
                h=d(elevator["h"]), w=d(elevator["w"]), d=d(elevator["d"]),
            ) if elevator else None,
            rationale=access.get("rationale", ""),
        ),
        security=SecurityConstraints(
            armored_truck_required=bool(security.get("armored_truck_required", False)),
            police_escort_required=bool(security.get("police_escort_required", False)),
            courier_supervision=bool(security.get("courier_supervision", False)),
            tarmac_access=bool(security.get("tarmac_access", False)),
            rationale=security.get("rationale", ""),
        ),
        packing=PackingConstraints(
            nimp15_mandatory=bool(packing.get("nimp15_mandatory", False)),
            acclimatization_hours=packing.get("acclimatization_hours"),
            forbidden_materials=list(packing.get("forbidden_materials") or []),
            rationale=packing.get("rationale", ""),
        ),
        schedule=ScheduleConstraints(
            night_work=bool(schedule.get("night_work", False)),
            sunday_work=bool(schedule.get("sunday_work", False)),
            hard_deadline=_parse_date(schedule.get("hard_deadline")),
            rationale=schedule.get("rationale", ""),
        ),
    )


# Record -> model

def _flow_model(project: Project, flow: FlowRecord) -> LogisticsFlow:
    return LogisticsFlow(
        id=uuid.UUID(flow.id),
        project=project,
        origin_city=flow.origin_city,
        origin_country=flow.origin_country,
        origin_country_code=flow.origin_country_code,
        destination_city=flow.destination_city,
        destination_country=flow.destination_country,
        destination_country_code=flow.destination_country_code,
        flow_type=flow.flow_type,
        status=flow.status,
        leg=flow.leg,
        assigned_carrier=flow.assigned_carrier,
        validated_carrier=flow.validated_carrier,
        distance_km=d(flow.distance_km).quantize(Decimal("0.1")) if flow.distance_km is not None else None,
        team_members=[m.as_dict() for m in flow.team_members],
        mission_duration_days=flow.mission_duration_days,
        per_diem_total=flow.per_diem_total,
        hotel_total=flow.hotel_total,
        team_cost_total=flow.team_cost_total,
        transport_cost_total=flow.transport_cost_total,
        transport_breakdown=flow.transport_breakdown.as_dict() if flow.transport_breakdown else None,
        steps=[s.as_dict() for s in flow.steps],
        notes=flow.notes,
    )


def _quote_line_model(project: Project, payload: Dict[str, Any]) -> QuoteLine:
    flow_id = payload.get("flow_id")
    return QuoteLine(
        id=uuid.UUID(str(payload["id"])),
        project=project,
        flow_id=uuid.UUID(str(flow_id)) if flow_id else None,
        category=payload["category"],
        description=payload["description"][:512],
        quantity=payload["quantity"],
        unit_price=payload["unit_price"],
        total_price=payload["total_price"],
        currency=payload.get("currency") or project.currency,
        source=payload["source"],
        agent_name=payload.get("agent_name"),
        applied_constraints=list(payload.get("applied_constraints") or []),
    )


def _match_kept_flows(project: Project, flows: List[FlowRecord]) -> Tuple[List[FlowRecord], List[FlowRecord], Dict[str, str]]:
    """
    Split generated flows into new ones and ones that take over a kept flow on the same route.

    Returns:
        Tuple: (new records, records carrying a kept flow's id, generated id -> kept id)
    """
    kept = {(f.origin_city, f.destination_city): f for f in project.flows.all()}
    new, reused, remap = [], [], {}
    for record in flows:
        existing = kept.get(record.route_key)
        if existing is None:
            new.append(record)
            continue
        kept_id = str(existing.pk)
        remap[record.id] = kept_id
        reused.append(replace(
            record,
            id=kept_id,
            status=existing.status if existing.status in KEPT_FLOW_STATUSES else record.status,
            validated_carrier=record.validated_carrier or existing.validated_carrier,
            steps=[replace(s, flow_id=kept_id) for s in record.steps],
        ))
    return new, reused, remap


@transaction.atomic
def persist_flow_generation(project: Project, result: FlowGenerationResult) -> List[LogisticsFlow]:
    """
    Replace the project's engine-produced flows and quote lines with a new generation.

    AGENT and MANUAL quote lines are kept, and so are the flows they reference.
    A generated flow on the route of a kept flow updates that flow in place, so
    a project never holds two flows for one origin/destination pair.
    """
    project.artworks.update(flow=None)
    removed_lines, _ = project.quote_lines.filter(source__in=ENGINE_SOURCES).delete()
    removed_flows, _ = project.flows.filter(quote_lines__isnull=True).delete()
    logger.debug(f"Project {project.pk}: cleared {removed_lines} lines and {removed_flows} flow rows")

    new, reused, remap = _match_kept_flows(project, result.flows)
    fields = [
        f.name for f in LogisticsFlow._meta.concrete_fields
        if f.name not in ("id", "project", "created_at")
    ]
    flows = []
    for record in reused:
        model = _flow_model(project, record)
        LogisticsFlow.objects.filter(pk=model.pk).update(**{name: getattr(model, name) for name in fields})
        flows.append(model)
        logger.debug(f"Project {project.pk}: updated kept flow {record.id} ({record.origin_city} -> {record.destination_city})")
    flows += LogisticsFlow.objects.bulk_create([_flow_model(project, f) for f in new])

    for record in result.artworks:
        flow_id = remap.get(record.flow_id, record.flow_id)
        Artwork.objects.filter(pk=record.id, project=project).update(
            crate_specification=record.crate_specification.as_dict() if record.crate_specification else None,
            recommended_crate=record.recommended_crate or "",
            crate_cost=record.crate_cost,
            crate_factory_cost=record.crate_factory_cost,
            flow_id=uuid.UUID(flow_id) if flow_id else None,
        )

    lines = []
    for line in result.quote_lines:
        payload = line.as_dict()
        payload["flow_id"] = remap.get(payload.get("flow_id"), payload.get("flow_id"))
        lines.append(_quote_line_model(project, payload))
    QuoteLine.objects.bulk_create(lines)

    logger.info(f"Project {project.pk}: stored {len(flows)} flows and {len(result.quote_lines)} quote lines")
    return flows


@transaction.atomic
def apply_business_rule_actions(project: Project, actions: List[BusinessRuleAction]) -> List[Dict[str, Any]]:
    """
    Apply rule-engine actions to the stored project

    Returns:
        List[Dict]: Alert payloads, in rule order, for display
    """
    alerts = []
    for action in actions:
        payload = action.payload
        if action.type == ACTION_ALERT:
            alerts.append(dict(payload, description=action.description))
        elif action.type == ACTION_ADD_QUOTE_LINE:
            _quote_line_model(project, payload).save(force_insert=True)
        elif action.type == ACTION_UPDATE_QUOTE_LINE:
            project.quote_lines.filter(pk=payload["id"]).update(
                unit_price=payload["unit_price"],
                total_price=payload["total_price"],
                description=payload["description"][:512],
                applied_constraints=payload["applied_constraints"],
            )
        elif action.type == ACTION_UPDATE_FLOW:
            project.flows.filter(pk=payload["id"]).update(
                flow_type=payload["flow_type"],
                notes=payload.get("notes", ""),
            )
        elif action.type == ACTION_UPDATE_PROJECT:
            project.end_date = payload["end_date"]
            project.save(update_fields=["end_date", "updated_at"])
        else:
            raise ValueError(f"Unknown business rule action: {action.type}")
        logger.debug(f"Applied {action.type}: {action.description}")

    logger.info(f"Project {project.pk}: applied {len(actions)} business rule actions")
    return alerts


def load_artworks(project: Project) -> List[ArtworkInput]:
    return [artwork_to_record(a) for a in project.artworks.all()]


def generate_project_flows(
    project: Project,
    route_resolver=None,
    config: Optional[PricingConfig] = None,
) -> Tuple[FlowGenerationResult, List[Dict[str, Any]]]:
    """
    Validate, cluster and price the project's artworks, store the result and
    re-apply any stored constraints on top of it.

    Raises:
        InvalidArtworkError: An artwork has negative measures or bad fragility
        FlowGenerationError: A collaborator failed for one route segment; nothing is stored
    """
    config = config or get_pricing_config()
    artworks = load_artworks(project)
    for artwork in artworks:
        validate_artwork_input(artwork)

    generator = FlowGenerator(route_resolver=route_resolver, config=config)
    result = generator.generate(project_to_record(project), artworks)

    with transaction.atomic():
        persist_flow_generation(project, result)
        alerts = propagate_project_constraints(project, config=config)
    return result, alerts


def propagate_project_constraints(project: Project, config: Optional[PricingConfig] = None) -> List[Dict[str, Any]]:
    try:
        constraints = project.constraints
    except ProjectConstraints.DoesNotExist:
        logger.debug(f"Project {project.pk} has no constraints matrix")
        return []

    actions = apply_cctp_business_rules(
        project_to_record(project),
        constraints_to_matrix(constraints),
        load_artworks(project),
        [flow_to_record(f) for f in project.flows.all()],
        [quote_line_to_record(q) for q in project.quote_lines.all()],
        config=config,
    )
    return apply_business_rule_actions(project, actions)
