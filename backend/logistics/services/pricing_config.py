"""
Pricing configuration for the packing, costing, transport and constraint engines.

Rates are loaded from a JSON file (``logistics/config/pricing.json`` by default),
validated, flattened into an immutable ``PricingConfig`` and cached. Django
settings may point to another file (``ARTLOG_PRICING_CONFIG_PATH``) and override
individual keys (``ARTLOG_PRICING_OVERRIDES``), e.g. the light-truck volume
threshold.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..dataclasses import CRATE_TYPES, TeamRole
from .utils import d

logger = logging.getLogger(__name__)

FLAT_SECTIONS = ("materials", "labor", "costing", "packing", "transport", "constraints")
REQUIRED_SECTIONS = FLAT_SECTIONS + ("staffing",)
LABOR_SIZES = ("small", "large")


class LogisticsConfigError(Exception):
    """Base exception for pricing configuration errors"""
    pass


class ConfigurationError(LogisticsConfigError):
    """Raised when the configuration file cannot be loaded or parsed"""
    pass


class ValidationError(LogisticsConfigError):
    """Raised when configuration validation fails"""
    pass


@dataclass(frozen=True)
class CostZone:
    code: str
    per_diem: Decimal
    hotel: Decimal
    cities: tuple = ()
    countries: tuple = ()


@dataclass(frozen=True)
class PricingConfig:
    # Materials
    wood_price_m2: Decimal
    foam_price_m2: Decimal
    frame_price_ml: Decimal
    hardware_flat: Decimal
    # Labor
    workshop_hourly_rate: Decimal
    packer_hourly_rate: Decimal
    volume_threshold_m3: Decimal
    labor_hours: Dict[str, Dict[str, Decimal]]
    # Costing
    overhead_coefficient: Decimal
    margin_standard: Decimal
    margin_museum: Decimal
    # Packing decision tree and thicknesses (mm)
    museum_weight_threshold_kg: Decimal
    museum_max_dimension_cm: Decimal
    museum_fragility_threshold: int
    foam_standard_mm: Decimal
    foam_fragile_mm: Decimal
    wall_t1_mm: Decimal
    wall_t2_mm: Decimal
    frame_thickness_mm: Decimal
    pallet_height_mm: Decimal
    # Transport
    light_truck_max_volume_m3: Decimal
    light_truck_flat: Decimal
    heavy_truck_flat: Decimal
    heavy_truck_per_km: Decimal
    raw_volume_safety_factor: Decimal
    return_leg_flat: Decimal
    customs_flat_fee: Decimal
    # Constraint surcharges
    max_height_limit_m: Decimal
    tail_lift_fee: Decimal
    crane_fee: Decimal
    police_escort_fee: Decimal
    courier_travel_fee: Decimal
    tarmac_supervision_fee: Decimal
    nimp15_fee_per_crate: Decimal
    climate_storage_per_day: Decimal
    neutral_materials_per_crate: Decimal
    armored_truck_multiplier: Decimal
    night_work_multiplier: Decimal
    sunday_work_multiplier: Decimal
    # Staffing
    cost_zones: Dict[str, CostZone] = field(default_factory=dict)
    team_roles: List[TeamRole] = field(default_factory=list)
    currency: str = "EUR"
    default_country_code: str = "FR"

    def hours_for(self, crate_type: str, volume_m3: Decimal) -> Decimal:
        size = "small" if volume_m3 < self.volume_threshold_m3 else "large"
        return self.labor_hours[crate_type][size]


_SPECIAL_FIELDS = {"labor_hours", "cost_zones", "team_roles", "currency", "default_country_code", "museum_fragility_threshold"}
SCALAR_FIELDS = tuple(f.name for f in fields(PricingConfig) if f.name not in _SPECIAL_FIELDS)


def default_config_path() -> Path:
    return Path(__file__).resolve().parent.parent / "config" / "pricing.json"


def load_pricing_config(config_path: Optional[str] = None) -> dict:
    """
    Load raw pricing configuration from a JSON file

    Args:
        config_path: Path to the pricing JSON file. If None, uses the bundled default.

    Returns:
        dict: Parsed configuration

    Raises:
        ConfigurationError: If the file cannot be loaded or parsed
    """
    path = Path(config_path) if config_path else default_config_path()
    if not path.exists():
        raise ConfigurationError(f"Pricing configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in pricing configuration: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading pricing configuration: {e}")

    logger.info(f"Loaded pricing configuration from {path}")
    return raw


def validate_pricing_config(raw: dict) -> List[str]:
    """
    Validate that a raw configuration is complete and numerically sane

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    for section in REQUIRED_SECTIONS:
        if section not in raw:
            errors.append(f"Missing required section: {section}")
    if errors:
        return errors

    flat = _flatten(raw)
    for name in SCALAR_FIELDS:
        if name not in flat:
            errors.append(f"Missing required key: {name}")
            continue
        try:
            value = d(flat[name])
        except (InvalidOperation, ValueError, TypeError):
            errors.append(f"Key '{name}' is not numeric: {flat[name]!r}")
            continue
        if value < 0:
            errors.append(f"Key '{name}' must not be negative")

    if "museum_fragility_threshold" not in flat:
        errors.append("Missing required key: museum_fragility_threshold")

    hours = raw.get("labor", {}).get("hours", {})
    for crate_type in CRATE_TYPES:
        table = hours.get(crate_type)
        if not isinstance(table, dict):
            errors.append(f"Missing labor hours for crate type: {crate_type}")
            continue
        for size in LABOR_SIZES:
            if size not in table:
                errors.append(f"Missing labor hours '{size}' for crate type: {crate_type}")

    zones = raw["staffing"].get("cost_zones", {})
    if "STANDARD" not in zones:
        errors.append("Staffing cost zones must define a STANDARD zone")
    for code, zone in zones.items():
        for key in ("per_diem", "hotel"):
            if key not in zone:
                errors.append(f"Cost zone '{code}' is missing '{key}'")

    for role in raw["staffing"].get("team_roles", []):
        if "id" not in role or "daily_rate" not in role:
            errors.append(f"Team role is missing id or daily_rate: {role}")

    if errors:
        logger.warning(f"Pricing configuration validation found {len(errors)} errors")
    return errors


def build_pricing_config(raw: dict, overrides: Optional[Dict[str, Any]] = None) -> PricingConfig:
    """Turn a validated raw configuration (plus flat key overrides) into a PricingConfig."""
    flat = _flatten(raw)
    for key, value in (overrides or {}).items():
        if key not in SCALAR_FIELDS and key not in ("currency", "default_country_code", "museum_fragility_threshold"):
            raise ValidationError(f"Unknown pricing override: {key}")
        flat[key] = value

    labor_hours = {
        crate_type: {size: d(value) for size, value in table.items()}
        for crate_type, table in raw["labor"]["hours"].items()
    }
    cost_zones = {
        code: CostZone(
            code=code,
            per_diem=d(zone["per_diem"]),
            hotel=d(zone["hotel"]),
            cities=tuple(c.upper() for c in zone.get("cities", [])),
            countries=tuple(c.upper() for c in zone.get("countries", [])),
        )
        for code, zone in raw["staffing"]["cost_zones"].items()
    }
    team_roles = [
        TeamRole(
            id=role["id"],
            name=role.get("name", role["id"]),
            daily_rate=d(role["daily_rate"]),
            requires_hotel=role.get("requires_hotel", True),
            default_hotel_category=role.get("default_hotel_category", "STANDARD"),
        )
        for role in raw["staffing"].get("team_roles", [])
    ]

    return PricingConfig(
        labor_hours=labor_hours,
        cost_zones=cost_zones,
        team_roles=team_roles,
        currency=flat.get("currency", "EUR"),
        default_country_code=str(flat.get("default_country_code", "FR")).upper(),
        museum_fragility_threshold=int(flat["museum_fragility_threshold"]),
        **{name: d(flat[name]) for name in SCALAR_FIELDS},
    )


def _flatten(raw: dict) -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for section in FLAT_SECTIONS:
        for key, value in raw.get(section, {}).items():
            if isinstance(value, dict):
                continue  # nested tables (labor hours) are handled separately
            flat[key] = value
    for key in ("currency", "default_country_code"):
        if key in raw:
            flat[key] = raw[key]
    return flat


# Cached instance

def get_pricing_config() -> PricingConfig:
    """Get a cached PricingConfig built from Django settings (singleton pattern)"""
    if not hasattr(get_pricing_config, "_cached_config"):
        from django.conf import settings

        raw = load_pricing_config(getattr(settings, "ARTLOG_PRICING_CONFIG_PATH", None))
        validation_errors = validate_pricing_config(raw)
        if validation_errors:
            logger.error(f"Pricing configuration validation failed: {validation_errors}")
            raise ValidationError(f"Pricing configuration validation failed: {validation_errors}")

        overrides = getattr(settings, "ARTLOG_PRICING_OVERRIDES", None) or {}
        get_pricing_config._cached_config = build_pricing_config(raw, overrides)

    return get_pricing_config._cached_config


def clear_pricing_config_cache():
    """Clear the cached configuration (useful for testing or config updates)"""
    if hasattr(get_pricing_config, "_cached_config"):
        delattr(get_pricing_config, "_cached_config")
