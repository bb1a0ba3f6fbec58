"""
Team recommendation and mission cost (per-diem, hotel nights, day rates).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from ..dataclasses import (
    AIR_FREIGHT,
    ArtworkInput,
    StaffingCost,
    StaffingRecommendation,
    TeamMember,
    TeamRole,
)
from .pricing_config import CostZone, PricingConfig, get_pricing_config
from .routing import AVERAGE_SPEED_KMH
from .utils import ZERO, ceil_int, d

logger = logging.getLogger(__name__)

REGISTRAR = "registrar"
TECHNICIAN = "technician"
COURIER_ROLE = "courier"

ARTWORKS_PER_TECHNICIAN = 5
MAX_TECHNICIANS = 4
COURIER_VALUE_THRESHOLD = Decimal("500000")
COURIER_DISTANCE_THRESHOLD_KM = Decimal("1000")
COURIER_FRAGILITY_THRESHOLD = Decimal("4")
DRIVING_HOURS_PER_DAY = Decimal("8")
AIR_MISSION_DAYS = 3
# pickup day + delivery day
ROAD_HANDLING_DAYS = 2

STANDARD_ZONE = "STANDARD"


def estimate_mission_duration(duration_hours, flow_type: str) -> int:
    if flow_type == AIR_FREIGHT:
        return AIR_MISSION_DAYS
    return ceil_int(d(duration_hours) / DRIVING_HOURS_PER_DAY) + ROAD_HANDLING_DAYS


def _member(role: TeamRole, count: int, rationale: str) -> TeamMember:
    return TeamMember(
        role_id=role.id,
        role_name=role.name,
        count=count,
        daily_rate=role.daily_rate,
        hotel_category=role.default_hotel_category,
        rationale=rationale,
    )


def recommend_staffing(
    artworks: Sequence[ArtworkInput],
    distance_km,
    roles: Iterable[TeamRole],
    duration_hours=None,
    flow_type: Optional[str] = None,
) -> StaffingRecommendation:
    """
    Recommend a team for moving a group of artworks.

    One registrar always, one technician per five artworks (between 1 and 4),
    and a courier when the group is valuable, far away or fragile.
    """
    roles_by_id = {role.id: role for role in roles}
    distance = d(distance_km)
    count = len(artworks)
    total_value = sum((d(a.insurance_value) for a in artworks), ZERO)
    avg_fragility = (
        sum((Decimal(a.fragility or 3) for a in artworks), ZERO) / count if count else ZERO
    )

    members: List[TeamMember] = []

    registrar = roles_by_id.get(REGISTRAR)
    if registrar:
        members.append(_member(registrar, 1, "Supervision générale obligatoire"))

    technicians = min(MAX_TECHNICIANS, max(1, ceil_int(Decimal(count) / ARTWORKS_PER_TECHNICIAN)))
    technician = roles_by_id.get(TECHNICIAN)
    if technician:
        members.append(_member(
            technician, technicians, f"{technicians} technicien(s) pour {count} œuvre(s) (1 par 5)"
        ))

    reasons = []
    if total_value > COURIER_VALUE_THRESHOLD:
        reasons.append(f"valeur élevée ({round(total_value / 1000)}k€)")
    if distance > COURIER_DISTANCE_THRESHOLD_KM:
        reasons.append(f"longue distance ({distance}km)")
    if avg_fragility >= COURIER_FRAGILITY_THRESHOLD:
        reasons.append(f"fragilité élevée ({avg_fragility:.1f}/5)")
    courier = roles_by_id.get(COURIER_ROLE)
    if reasons and courier:
        members.append(_member(courier, 1, "Recommandé car " + ", ".join(reasons)))

    if duration_hours is None:
        duration_hours = distance / AVERAGE_SPEED_KMH
    days = estimate_mission_duration(duration_hours, flow_type or "")

    return StaffingRecommendation(
        members=members,
        mission_duration_days=days,
        rationale=f"Équipe pour {count} œuvre(s) d'une valeur de {round(total_value / 1000)}k€ sur {distance}km",
        total_value=total_value,
        artwork_count=count,
        distance_km=distance,
    )


def zone_for_city(city: Optional[str], country: Optional[str], config: Optional[PricingConfig] = None) -> CostZone:
    config = config or get_pricing_config()
    city_clean = (city or "").strip().upper()
    country_clean = (country or "").strip().upper()

    for code, zone in config.cost_zones.items():
        if code == STANDARD_ZONE:
            continue
        if city_clean and any(c in city_clean for c in zone.cities):
            return zone
        if country_clean and country_clean in zone.countries:
            return zone
    return config.cost_zones[STANDARD_ZONE]


def compute_staffing_cost(
    members: Iterable[TeamMember],
    days: int,
    destination_country: Optional[str],
    config: Optional[PricingConfig] = None,
    destination_city: Optional[str] = None,
) -> StaffingCost:
    """Per-diem for every day, hotel for every night (days - 1) and day rates, per head."""
    config = config or get_pricing_config()
    zone = zone_for_city(destination_city, destination_country, config)
    nights = max(0, days - 1)

    per_diem_total = ZERO
    hotel_total = ZERO
    salary_total = ZERO
    for member in members:
        per_diem_total += member.count * zone.per_diem * days
        hotel_total += member.count * zone.hotel * nights
        salary_total += member.count * d(member.daily_rate) * days

    return StaffingCost(
        per_diem_total=per_diem_total,
        hotel_total=hotel_total,
        salary_total=salary_total,
        team_total=per_diem_total + hotel_total + salary_total,
    )
