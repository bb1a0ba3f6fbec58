from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .services.utils import ZERO, MM3_PER_M3

# Typologies
PAINTING = "PAINTING"
SCULPTURE = "SCULPTURE"
OBJECT = "OBJECT"
INSTALLATION = "INSTALLATION"
TYPOLOGIES = (PAINTING, SCULPTURE, OBJECT, INSTALLATION)

# Crate types
GALLERY_GRADE = "T1_GALLERY"
MUSEUM_GRADE = "T2_MUSEUM"
CRATE_TYPES = (GALLERY_GRADE, MUSEUM_GRADE)

# Flow types
DOMESTIC_ROAD = "DOMESTIC_ROAD"
EU_ROAD = "EU_ROAD"
AIR_FREIGHT = "AIR_FREIGHT"
DEDICATED_TRUCK = "DEDICATED_TRUCK"
ART_SHUTTLE = "ART_SHUTTLE"
FLOW_TYPES = (DOMESTIC_ROAD, EU_ROAD, AIR_FREIGHT, DEDICATED_TRUCK, ART_SHUTTLE)

# Flow statuses
PENDING_QUOTE = "PENDING_QUOTE"
AWAITING_QUOTE = "AWAITING_QUOTE"
QUOTE_RECEIVED = "QUOTE_RECEIVED"
VALIDATED = "VALIDATED"
FLOW_STATUSES = (PENDING_QUOTE, AWAITING_QUOTE, QUOTE_RECEIVED, VALIDATED)

# Route segment kinds
LEG_OUTBOUND = "OUTBOUND"
LEG_TOUR = "TOUR"
LEG_DIRECT = "DIRECT"
LEG_RETURN = "RETURN"
LEG_KINDS = (LEG_OUTBOUND, LEG_TOUR, LEG_DIRECT, LEG_RETURN)

# Quote line categories and sources
PACKING = "PACKING"
TRANSPORT = "TRANSPORT"
HANDLING = "HANDLING"
COURIER = "COURIER"
CUSTOMS = "CUSTOMS"
INSURANCE = "INSURANCE"
SECURITY = "SECURITY"
QUOTE_CATEGORIES = (PACKING, TRANSPORT, HANDLING, COURIER, CUSTOMS, INSURANCE, SECURITY)

SOURCE_CALCULATION = "CALCULATION"
SOURCE_ESTIMATION = "ESTIMATION"
SOURCE_AGENT = "AGENT"
SOURCE_MANUAL = "MANUAL"
QUOTE_SOURCES = (SOURCE_CALCULATION, SOURCE_ESTIMATION, SOURCE_AGENT, SOURCE_MANUAL)

# Business rule actions
ACTION_ALERT = "ALERT"
ACTION_ADD_QUOTE_LINE = "ADD_QUOTE_LINE"
ACTION_UPDATE_QUOTE_LINE = "UPDATE_QUOTE_LINE"
ACTION_UPDATE_FLOW = "UPDATE_FLOW"
ACTION_UPDATE_PROJECT = "UPDATE_PROJECT"
ACTION_TYPES = (ACTION_ALERT, ACTION_ADD_QUOTE_LINE, ACTION_UPDATE_QUOTE_LINE, ACTION_UPDATE_FLOW, ACTION_UPDATE_PROJECT)

SEVERITY_INFO = "INFO"
SEVERITY_WARNING = "WARNING"
SEVERITY_CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Dimensions:
    """Box dimensions in millimetres."""
    h: Decimal
    w: Decimal
    d: Decimal

    def volume_m3(self) -> Decimal:
        return (self.h * self.w * self.d) / MM3_PER_M3

    def as_dict(self) -> Dict[str, str]:
        return {"h": str(self.h), "w": str(self.w), "d": str(self.d)}


@dataclass(frozen=True)
class CrateSpecification:
    crate_type: str
    internal: Dimensions
    external: Dimensions
    foam_thickness_mm: Decimal
    wall_thickness_mm: Decimal
    frame_thickness_mm: Decimal = ZERO
    needs_travel_frame: bool = False

    @property
    def external_volume_m3(self) -> Decimal:
        return self.external.volume_m3()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "crate_type": self.crate_type,
            "internal_dimensions": self.internal.as_dict(),
            "external_dimensions": self.external.as_dict(),
            "foam_thickness_mm": str(self.foam_thickness_mm),
            "wall_thickness_mm": str(self.wall_thickness_mm),
            "frame_thickness_mm": str(self.frame_thickness_mm),
            "needs_travel_frame": self.needs_travel_frame,
            "external_volume_m3": str(self.external_volume_m3),
        }


@dataclass(frozen=True)
class CostBreakdown:
    wood_surface_m2: Decimal
    wood_cost: Decimal
    foam_surface_m2: Decimal
    foam_cost: Decimal
    hardware_cost: Decimal
    frame_cost: Decimal
    material_cost: Decimal
    labor_hours: Decimal
    labor_cost: Decimal
    direct_cost: Decimal
    overhead_coefficient: Decimal
    factory_cost: Decimal
    margin: Decimal
    selling_price: Decimal

    def as_dict(self) -> Dict[str, str]:
        return {name: str(getattr(self, name)) for name in self.__dataclass_fields__}


@dataclass
class ArtworkInput:
    id: str
    title: str = ""
    height_cm: Decimal = ZERO
    width_cm: Decimal = ZERO
    depth_cm: Decimal = ZERO
    weight_kg: Decimal = ZERO
    typology: str = PAINTING
    fragility: int = 1
    has_fragile_frame: bool = False
    insurance_value: Decimal = ZERO
    lender_city: str = ""
    lender_country: str = ""
    destination_city: Optional[str] = None
    destination_city_2: Optional[str] = None
    imposed_carrier: Optional[str] = None
    customs_required: bool = False
    courier_required: bool = False
    crate_specification: Optional[CrateSpecification] = None
    recommended_crate: Optional[str] = None
    crate_cost: Optional[Decimal] = None
    crate_factory_cost: Optional[Decimal] = None
    flow_id: Optional[str] = None

    @property
    def surface_m2(self) -> Decimal:
        return (self.height_cm * self.width_cm) / Decimal(10000)

    @property
    def max_dimension_cm(self) -> Decimal:
        return max(self.height_cm, self.width_cm, self.depth_cm)


@dataclass(frozen=True)
class GeoInfo:
    country_code: str
    country_name: str
    is_eu: bool
    sub_region: Optional[str] = None


@dataclass(frozen=True)
class PackingServiceCost:
    hours: Decimal
    workers: int
    cost: Decimal
    description: str


@dataclass(frozen=True)
class TransportCost:
    total_volume_m3: Decimal
    vehicle_type: str
    base_cost: Decimal
    distance_cost: Decimal
    total_cost: Decimal
    distance_km: Optional[Decimal] = None
    rate_per_km: Decimal = ZERO

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_volume_m3": str(self.total_volume_m3),
            "vehicle_type": self.vehicle_type,
            "base_cost": str(self.base_cost),
            "distance_cost": str(self.distance_cost),
            "total_cost": str(self.total_cost),
            "distance_km": str(self.distance_km) if self.distance_km is not None else None,
            "rate_per_km": str(self.rate_per_km),
        }


@dataclass(frozen=True)
class RouteResult:
    distance_km: Decimal
    duration_hours: Decimal
    origin_address: str = ""
    destination_address: str = ""


@dataclass(frozen=True)
class TeamRole:
    id: str
    name: str
    daily_rate: Decimal
    requires_hotel: bool = True
    default_hotel_category: str = "STANDARD"


@dataclass
class TeamMember:
    role_id: str
    role_name: str
    count: int
    daily_rate: Decimal
    hotel_category: str = "STANDARD"
    rationale: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "role_id": self.role_id,
            "role_name": self.role_name,
            "count": self.count,
            "daily_rate": str(self.daily_rate),
            "hotel_category": self.hotel_category,
            "rationale": self.rationale,
        }


@dataclass
class StaffingRecommendation:
    members: List[TeamMember]
    mission_duration_days: int
    rationale: str
    total_value: Decimal = ZERO
    artwork_count: int = 0
    distance_km: Decimal = ZERO


@dataclass(frozen=True)
class StaffingCost:
    per_diem_total: Decimal
    hotel_total: Decimal
    salary_total: Decimal
    team_total: Decimal


@dataclass
class LogisticsStep:
    id: str
    flow_id: str
    label: str
    duration_days: int
    start_day: int = 0
    team_composition: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "flow_id": self.flow_id,
            "label": self.label,
            "duration_days": self.duration_days,
            "start_day": self.start_day,
            "team_composition": list(self.team_composition),
        }


@dataclass
class FlowRecord:
    id: str
    project_id: Any
    origin_city: str
    origin_country: str
    destination_city: str
    destination_country: str
    flow_type: str
    origin_country_code: str = ""
    destination_country_code: str = ""
    status: str = PENDING_QUOTE
    leg: str = LEG_OUTBOUND
    artwork_ids: List[str] = field(default_factory=list)
    assigned_carrier: Optional[str] = None
    validated_carrier: Optional[str] = None
    distance_km: Optional[Decimal] = None
    team_members: List[TeamMember] = field(default_factory=list)
    mission_duration_days: Optional[int] = None
    per_diem_total: Decimal = ZERO
    hotel_total: Decimal = ZERO
    team_cost_total: Decimal = ZERO
    transport_cost_total: Decimal = ZERO
    transport_breakdown: Optional[TransportCost] = None
    steps: List[LogisticsStep] = field(default_factory=list)
    notes: str = ""

    @property
    def route_key(self) -> tuple:
        return (self.origin_city, self.destination_city)


@dataclass
class QuoteLineRecord:
    id: str
    project_id: Any
    category: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    currency: str = "EUR"
    source: str = SOURCE_CALCULATION
    flow_id: Optional[str] = None
    agent_name: Optional[str] = None
    applied_constraints: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "flow_id": self.flow_id,
            "category": self.category,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "currency": self.currency,
            "source": self.source,
            "agent_name": self.agent_name,
            "applied_constraints": list(self.applied_constraints),
        }


@dataclass
class ProjectRecord:
    id: Any
    name: str = ""
    organizing_city: str = ""
    organizing_country: str = ""
    currency: str = "EUR"
    end_date: Optional[date] = None


@dataclass(frozen=True)
class ElevatorDimensions:
    """Elevator opening in metres."""
    h: Decimal
    w: Decimal
    d: Decimal


@dataclass
class AccessConstraints:
    max_height_meters: Optional[Decimal] = None
    tail_lift_required: bool = False
    elevator_dimensions: Optional[ElevatorDimensions] = None
    rationale: str = ""


@dataclass
class SecurityConstraints:
    armored_truck_required: bool = False
    police_escort_required: bool = False
    courier_supervision: bool = False
    tarmac_access: bool = False
    rationale: str = ""


@dataclass
class PackingConstraints:
    nimp15_mandatory: bool = False
    acclimatization_hours: Optional[int] = None
    forbidden_materials: List[str] = field(default_factory=list)
    rationale: str = ""


@dataclass
class ScheduleConstraints:
    night_work: bool = False
    sunday_work: bool = False
    hard_deadline: Optional[date] = None
    rationale: str = ""


@dataclass
class ConstraintsMatrix:
    access: AccessConstraints = field(default_factory=AccessConstraints)
    security: SecurityConstraints = field(default_factory=SecurityConstraints)
    packing: PackingConstraints = field(default_factory=PackingConstraints)
    schedule: ScheduleConstraints = field(default_factory=ScheduleConstraints)


@dataclass
class BusinessRuleAction:
    type: str
    payload: Dict[str, Any]
    description: str


@dataclass
class FlowGenerationResult:
    flows: List[FlowRecord]
    artworks: List[ArtworkInput]
    quote_lines: List[QuoteLineRecord]

    @property
    def total_price(self) -> Decimal:
        return sum((line.total_price for line in self.quote_lines), ZERO)
