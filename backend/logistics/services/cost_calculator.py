"""
Crate manufacturing cost: materials, workshop labor, overhead and margin.

Every intermediate value is kept on the CostBreakdown for reporting; nothing
is rounded here.
"""

from __future__ import annotations

from typing import Optional

from ..dataclasses import MUSEUM_GRADE, CostBreakdown, CrateSpecification, Dimensions
from .pricing_config import PricingConfig, get_pricing_config
from .utils import MM_PER_M, ZERO, money


def _surface_m2(dims: Dimensions):
    h, w, depth = dims.h / MM_PER_M, dims.w / MM_PER_M, dims.d / MM_PER_M
    return 2 * (h * w + h * depth + w * depth)


def calculate_cost(spec: CrateSpecification, config: Optional[PricingConfig] = None) -> CostBreakdown:
    config = config or get_pricing_config()

    wood_surface = _surface_m2(spec.external)
    wood_cost = wood_surface * config.wood_price_m2

    foam_surface = _surface_m2(spec.internal)
    foam_cost = foam_surface * config.foam_price_m2

    hardware_cost = config.hardware_flat

    frame_cost = ZERO
    if spec.needs_travel_frame:
        perimeter_m = 2 * (spec.internal.h + spec.internal.w) / MM_PER_M
        frame_cost = perimeter_m * config.frame_price_ml

    material_cost = wood_cost + foam_cost + hardware_cost + frame_cost

    labor_hours = config.hours_for(spec.crate_type, spec.external_volume_m3)
    labor_cost = labor_hours * config.workshop_hourly_rate

    direct_cost = material_cost + labor_cost
    factory_cost = direct_cost * config.overhead_coefficient

    if spec.crate_type == MUSEUM_GRADE or spec.needs_travel_frame:
        margin = config.margin_museum
    else:
        margin = config.margin_standard

    return CostBreakdown(
        wood_surface_m2=wood_surface,
        wood_cost=wood_cost,
        foam_surface_m2=foam_surface,
        foam_cost=foam_cost,
        hardware_cost=hardware_cost,
        frame_cost=frame_cost,
        material_cost=material_cost,
        labor_hours=labor_hours,
        labor_cost=labor_cost,
        direct_cost=direct_cost,
        overhead_coefficient=config.overhead_coefficient,
        factory_cost=factory_cost,
        margin=margin,
        selling_price=factory_cost * margin,
    )


def format_cost_breakdown(cost: CostBreakdown, config: Optional[PricingConfig] = None) -> str:
    config = config or get_pricing_config()
    lines = [
        "Matériaux:",
        f"- Bois: {cost.wood_surface_m2:.2f} m² × {config.wood_price_m2}€ = {money(cost.wood_cost)}€",
        f"- Mousse: {cost.foam_surface_m2:.2f} m² × {config.foam_price_m2}€ = {money(cost.foam_cost)}€",
        f"- Quincaillerie: {money(cost.hardware_cost)}€",
    ]
    if cost.frame_cost > 0:
        lines.append(f"- Cadre de voyage: {money(cost.frame_cost)}€")
    lines += [
        "",
        "Main d'œuvre:",
        f"- Temps: {cost.labor_hours:.1f}h",
        f"- Coût: {money(cost.labor_cost)}€",
        "",
        f"Coût direct: {money(cost.direct_cost)}€",
        f"Prix de revient (×{cost.overhead_coefficient}): {money(cost.factory_cost)}€",
        f"Marge: ×{cost.margin}",
        f"Prix de vente: {money(cost.selling_price)}€",
    ]
    return "\n".join(lines)
