"""
On-site packing labor and group transport pricing.

Vehicle class is chosen on the aggregated billable volume of a flow: strictly
below the light-truck threshold uses the flat-rate truck, otherwise the heavy
truck is charged a flat rate plus a per-km rate.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from ..dataclasses import (
    INSTALLATION,
    OBJECT,
    PAINTING,
    SCULPTURE,
    ArtworkInput,
    PackingServiceCost,
    TransportCost,
)
from .pricing_config import PricingConfig, get_pricing_config
from .utils import CM3_PER_M3, ZERO, d, money

logger = logging.getLogger(__name__)

LIGHT_TRUCK = "LIGHT_TRUCK"
HEAVY_TRUCK = "HEAVY_TRUCK"
VEHICLE_LABELS = {
    LIGHT_TRUCK: "Camion 20m³",
    HEAVY_TRUCK: "Poids Lourd",
}

DEFAULT_WORKERS = 2
HEAVY_SCULPTURE_KG = Decimal("50")
FRAGILE_TIME_FACTOR = Decimal("1.5")


def calculate_packing_service(artwork: ArtworkInput, config: Optional[PricingConfig] = None) -> PackingServiceCost:
    """Estimate on-site wrapping time and cost for one artwork."""
    config = config or get_pricing_config()
    workers = DEFAULT_WORKERS

    if artwork.typology == PAINTING:
        surface = artwork.surface_m2
        if surface < 1:
            hours = Decimal("0.25")
        elif surface < 4:
            hours = Decimal("0.5")
        else:
            hours = Decimal("1")
    elif artwork.typology == SCULPTURE:
        hours = Decimal("1.5")
        if d(artwork.weight_kg) > HEAVY_SCULPTURE_KG:
            workers = 3
    elif artwork.typology == OBJECT:
        hours = Decimal("0.25")
    else:
        # INSTALLATION and anything unrecognised
        hours = Decimal("2")
        workers = 3

    if artwork.fragility and artwork.fragility >= 4:
        hours *= FRAGILE_TIME_FACTOR

    cost = hours * workers * config.packer_hourly_rate
    return PackingServiceCost(
        hours=hours,
        workers=workers,
        cost=cost,
        description=f"Tamponnage sur site ({workers} personnes × {hours.normalize()}h)",
    )


def artwork_billable_volume(artwork: ArtworkInput, config: PricingConfig) -> Decimal:
    if artwork.crate_specification is not None:
        return artwork.crate_specification.external_volume_m3
    raw = d(artwork.height_cm) * d(artwork.width_cm) * d(artwork.depth_cm) / CM3_PER_M3
    return raw * config.raw_volume_safety_factor


def calculate_transport(
    artworks: Iterable[ArtworkInput],
    distance_km=ZERO,
    config: Optional[PricingConfig] = None,
) -> TransportCost:
    config = config or get_pricing_config()
    distance = d(distance_km)
    total_volume = sum((artwork_billable_volume(a, config) for a in artworks), ZERO)

    if total_volume < config.light_truck_max_volume_m3:
        vehicle = LIGHT_TRUCK
        base_cost = config.light_truck_flat
        distance_cost = ZERO
        rate = ZERO
    else:
        vehicle = HEAVY_TRUCK
        base_cost = config.heavy_truck_flat
        rate = config.heavy_truck_per_km
        distance_cost = distance * rate

    logger.debug(f"Transport: {total_volume} m3 -> {vehicle} over {distance} km")
    return TransportCost(
        total_volume_m3=total_volume,
        vehicle_type=vehicle,
        base_cost=base_cost,
        distance_cost=distance_cost,
        total_cost=base_cost + distance_cost,
        distance_km=distance if distance > 0 else None,
        rate_per_km=rate,
    )


def calculate_flow_total_cost(
    artworks: Iterable[ArtworkInput],
    distance_km=ZERO,
    config: Optional[PricingConfig] = None,
) -> Dict[str, Decimal]:
    """Crates + on-site packing + transport for one group of artworks."""
    config = config or get_pricing_config()
    artworks = list(artworks)

    crate_costs = sum((d(a.crate_cost) for a in artworks), ZERO)
    packing_costs = sum((calculate_packing_service(a, config).cost for a in artworks), ZERO)
    transport = calculate_transport(artworks, distance_km, config)

    return {
        "crate_costs": crate_costs,
        "packing_costs": packing_costs,
        "transport_cost": transport.total_cost,
        "total_cost": crate_costs + packing_costs + transport.total_cost,
    }


def format_transport_summary(transport: TransportCost) -> str:
    lines = [
        f"Volume Total: {transport.total_volume_m3:.2f} m³",
        f"Véhicule: {VEHICLE_LABELS.get(transport.vehicle_type, transport.vehicle_type)}",
        f"Forfait de base: {money(transport.base_cost)}€",
    ]
    if transport.distance_cost > 0:
        lines.append(f"Kilométrage ({transport.distance_km}km): {money(transport.distance_cost)}€")
    lines += ["", f"Coût Transport Total: {money(transport.total_cost)}€"]
    return "\n".join(lines)
