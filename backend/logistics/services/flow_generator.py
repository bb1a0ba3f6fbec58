"""
Geo-clustering of artworks into priced logistics flows.

Each artwork contributes up to four route segments (outbound, tour, direct
alternative, return). Segments are keyed by the exact (origin city,
destination city) pair, so artworks sharing a route share one flow. Every
flow is then priced: full flows get a routed transport cost, a staffing
estimate and a one-step timeline, return-only flows get a flat estimate.

Nothing passed in is mutated; the result carries new artwork records.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..dataclasses import (
    AIR_FREIGHT,
    AWAITING_QUOTE,
    CUSTOMS,
    DOMESTIC_ROAD,
    EU_ROAD,
    HANDLING,
    LEG_DIRECT,
    LEG_OUTBOUND,
    LEG_RETURN,
    LEG_TOUR,
    PACKING,
    SOURCE_CALCULATION,
    SOURCE_ESTIMATION,
    TRANSPORT,
    ArtworkInput,
    FlowGenerationResult,
    FlowRecord,
    GeoInfo,
    LogisticsStep,
    ProjectRecord,
    QuoteLineRecord,
)
from .cost_calculator import calculate_cost
from .geo import GeoResolver
from .packing_engine import calculate_packing, crate_type_label
from .pricing_config import PricingConfig, get_pricing_config
from .routing import get_route_resolver
from .staffing import compute_staffing_cost, estimate_mission_duration, recommend_staffing
from .transport import calculate_transport
from .utils import d, money, new_id

logger = logging.getLogger(__name__)

DEFAULT_DESTINATIONS = {
    "US": "New York",
    "GB": "London",
}
FALLBACK_DESTINATION = "Paris"


class FlowGenerationError(Exception):
    """Raised when a collaborator fails while pricing one route segment"""

    def __init__(self, segment_key: Tuple[str, str], message: str):
        self.segment_key = segment_key
        super().__init__(f"{segment_key[0]} -> {segment_key[1]}: {message}")


def determine_flow_type(origin: GeoInfo, destination: GeoInfo) -> str:
    if origin.country_code == destination.country_code:
        return DOMESTIC_ROAD
    if origin.is_eu and destination.is_eu:
        return EU_ROAD
    return AIR_FREIGHT


def default_destination_city(organizer_country_code: str) -> str:
    return DEFAULT_DESTINATIONS.get(organizer_country_code, FALLBACK_DESTINATION)


class FlowGenerator:
    def __init__(
        self,
        route_resolver=None,
        config: Optional[PricingConfig] = None,
        geo_resolver: Optional[GeoResolver] = None,
        recommend_staffing: Callable = recommend_staffing,
        compute_staffing_cost: Callable = compute_staffing_cost,
        packing_engine: Callable = calculate_packing,
        cost_calculator: Callable = calculate_cost,
    ):
        self.route_resolver = route_resolver if route_resolver is not None else get_route_resolver()
        self.config = config or get_pricing_config()
        self.geo_resolver = geo_resolver
        self.recommend_staffing = recommend_staffing
        self.compute_staffing_cost = compute_staffing_cost
        self.packing_engine = packing_engine
        self.cost_calculator = cost_calculator

    def generate(self, project: ProjectRecord, artworks: Sequence[ArtworkInput]) -> FlowGenerationResult:
        geo = self.geo_resolver or GeoResolver(self.config.default_country_code)
        organizer = geo.resolve(project.organizing_city, project.organizing_country)
        local_geo = GeoResolver(organizer.country_code) if self.geo_resolver is None else geo

        crated = [self._with_crate(a) for a in artworks]
        flows: "OrderedDict[Tuple[str, str], FlowRecord]" = OrderedDict()
        outbound_flow: Dict[str, str] = {}

        for artwork in crated:
            segments = self._segments(artwork, organizer, local_geo)
            for leg, (origin_city, origin_geo), (dest_city, dest_geo) in segments:
                key = (origin_city, dest_city)
                flow = flows.get(key)
                if flow is None:
                    flow = FlowRecord(
                        id=new_id(),
                        project_id=project.id,
                        origin_city=origin_city,
                        origin_country=origin_geo.country_name,
                        destination_city=dest_city,
                        destination_country=dest_geo.country_name,
                        flow_type=determine_flow_type(origin_geo, dest_geo),
                        origin_country_code=origin_geo.country_code,
                        destination_country_code=dest_geo.country_code,
                        leg=leg,
                    )
                    flows[key] = flow
                    logger.debug(f"New {flow.flow_type} flow {origin_city} -> {dest_city} ({leg})")
                elif flow.leg == LEG_RETURN and leg != LEG_RETURN:
                    # a real shipment on this route makes it a fully priced flow
                    flow.leg = leg

                if artwork.id not in flow.artwork_ids:
                    flow.artwork_ids.append(artwork.id)
                self._escalate(flow, artwork)
                if leg == LEG_OUTBOUND:
                    outbound_flow[artwork.id] = flow.id

        by_id = {a.id: a for a in crated}
        quote_lines: List[QuoteLineRecord] = []
        for key, flow in flows.items():
            members = [by_id[i] for i in flow.artwork_ids]
            quote_lines.extend(self._price_flow(project, flow, members, key))

        result_artworks = []
        for artwork in crated:
            artwork = replace(artwork, flow_id=outbound_flow.get(artwork.id))
            result_artworks.append(artwork)
            quote_lines.append(self._line(
                project, PACKING, f"{artwork.recommended_crate} - {artwork.title or artwork.id}",
                artwork.crate_cost, SOURCE_CALCULATION, artwork.flow_id,
            ))

        logger.info(f"Generated {len(flows)} flows and {len(quote_lines)} quote lines for project {project.id}")
        return FlowGenerationResult(flows=list(flows.values()), artworks=result_artworks, quote_lines=quote_lines)

    def _with_crate(self, artwork: ArtworkInput) -> ArtworkInput:
        # stored crates are never reused; measures may have changed since
        spec = self.packing_engine(artwork, self.config)
        breakdown = self.cost_calculator(spec, self.config)
        return replace(
            artwork,
            crate_specification=spec,
            recommended_crate=crate_type_label(spec.crate_type, spec.needs_travel_frame),
            crate_cost=money(breakdown.selling_price),
            crate_factory_cost=money(breakdown.factory_cost),
        )

    def _segments(self, artwork: ArtworkInput, organizer: GeoInfo, geo: GeoResolver):
        pickup = ((artwork.lender_city or "").strip(), geo.resolve(artwork.lender_city, artwork.lender_country))
        first_city = (artwork.destination_city or "").strip() or default_destination_city(organizer.country_code)
        first = (first_city, geo.resolve(first_city, None))

        segments = [(LEG_OUTBOUND, pickup, first)]
        second_city = (artwork.destination_city_2 or "").strip()
        last = first
        if second_city and second_city != first_city:
            second = (second_city, geo.resolve(second_city, None))
            segments.append((LEG_TOUR, first, second))
            segments.append((LEG_DIRECT, pickup, second))
            last = second
        segments.append((LEG_RETURN, last, pickup))
        return segments

    @staticmethod
    def _escalate(flow: FlowRecord, artwork: ArtworkInput):
        if artwork.imposed_carrier:
            flow.assigned_carrier = flow.assigned_carrier or artwork.imposed_carrier
            flow.status = AWAITING_QUOTE
        if artwork.customs_required or artwork.courier_required:
            flow.status = AWAITING_QUOTE

    def _price_flow(self, project, flow: FlowRecord, artworks: List[ArtworkInput], key) -> List[QuoteLineRecord]:
        route_label = f"{flow.origin_city} → {flow.destination_city}"

        if flow.leg == LEG_RETURN:
            flow.transport_cost_total = money(self.config.return_leg_flat)
            return [self._line(
                project, TRANSPORT, f"Transport retour {route_label} (estimation forfaitaire)",
                self.config.return_leg_flat, SOURCE_ESTIMATION, flow.id,
            )]

        try:
            route = self.route_resolver.resolve(flow.origin_city, flow.destination_city)
            transport = calculate_transport(artworks, route.distance_km, self.config)
            recommendation = self.recommend_staffing(artworks, route.distance_km, self.config.team_roles)
            days = estimate_mission_duration(route.duration_hours, flow.flow_type)
            team_cost = self.compute_staffing_cost(
                recommendation.members, days, flow.destination_country_code, self.config,
                destination_city=flow.destination_city,
            )
        except Exception as exc:
            logger.error(f"Pricing failed for segment {key}: {exc}")
            raise FlowGenerationError(key, str(exc)) from exc

        flow.distance_km = d(route.distance_km)
        flow.transport_breakdown = transport
        flow.transport_cost_total = money(transport.total_cost)
        flow.team_members = list(recommendation.members)
        flow.mission_duration_days = days
        flow.per_diem_total = money(team_cost.per_diem_total)
        flow.hotel_total = money(team_cost.hotel_total)
        flow.team_cost_total = money(team_cost.team_total)
        flow.steps = [LogisticsStep(
            id=new_id(),
            flow_id=flow.id,
            label=f"Mission {route_label}",
            duration_days=days,
            team_composition=[{"role_id": m.role_id, "count": m.count} for m in recommendation.members],
        )]

        lines = [self._line(
            project, TRANSPORT, f"Transport {route_label} ({transport.vehicle_type}, {flow.distance_km} km)",
            transport.total_cost, SOURCE_CALCULATION, flow.id,
        )]
        if team_cost.team_total > 0:
            lines.append(self._line(
                project, HANDLING, f"Équipe de convoiement {route_label} ({days} j)",
                team_cost.team_total, SOURCE_ESTIMATION, flow.id,
            ))
        if flow.flow_type == AIR_FREIGHT and any(a.customs_required for a in artworks):
            lines.append(self._line(
                project, CUSTOMS, f"Formalités douanières {route_label}",
                self.config.customs_flat_fee, SOURCE_ESTIMATION, flow.id,
            ))
        return lines

    def _line(self, project, category, description, unit_price, source, flow_id) -> QuoteLineRecord:
        unit = money(unit_price)
        return QuoteLineRecord(
            id=new_id(),
            project_id=project.id,
            category=category,
            description=description,
            quantity=d(1),
            unit_price=unit,
            total_price=unit,
            currency=project.currency or self.config.currency,
            source=source,
            flow_id=flow_id,
        )


def generate_flows(project: ProjectRecord, artworks: Sequence[ArtworkInput], route_resolver, config=None, **collaborators):
    return FlowGenerator(route_resolver=route_resolver, config=config, **collaborators).generate(project, artworks)
