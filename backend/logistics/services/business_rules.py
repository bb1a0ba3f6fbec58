"""
CCTP constraint propagation.

Reads a project's constraints matrix together with its artworks, flows and
quote lines and returns an ordered list of BusinessRuleAction objects. Nothing
is mutated here; the state layer applies the actions.

Re-running is safe: every line this module adds is tagged with a constraint
key in ``applied_constraints`` and a surcharge is skipped when its key is
already present on the target line. Alerts are always emitted again.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from ..dataclasses import (
    ACTION_ADD_QUOTE_LINE,
    ACTION_ALERT,
    ACTION_UPDATE_FLOW,
    ACTION_UPDATE_PROJECT,
    ACTION_UPDATE_QUOTE_LINE,
    ART_SHUTTLE,
    COURIER,
    DEDICATED_TRUCK,
    HANDLING,
    PACKING,
    SECURITY,
    SEVERITY_CRITICAL,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    SOURCE_CALCULATION,
    SOURCE_ESTIMATION,
    TRANSPORT,
    ArtworkInput,
    BusinessRuleAction,
    ConstraintsMatrix,
    FlowRecord,
    ProjectRecord,
    QuoteLineRecord,
)
from .pricing_config import PricingConfig, get_pricing_config
from .utils import MM_PER_M, ceil_int, d, money, new_id

logger = logging.getLogger(__name__)

# Idempotence markers stored on QuoteLineRecord.applied_constraints
TAIL_LIFT = "TAIL_LIFT"
ELEVATOR_CRANE = "ELEVATOR_CRANE"
ARMORED_TRUCK = "ARMORED_TRUCK"
POLICE_ESCORT = "POLICE_ESCORT"
COURIER_SUPERVISION = "COURIER_SUPERVISION"
TARMAC_ACCESS = "TARMAC_ACCESS"
NIMP15 = "NIMP15"
ACCLIMATIZATION = "ACCLIMATIZATION"
NEUTRAL_MATERIALS = "NEUTRAL_MATERIALS"
NIGHT_WORK = "NIGHT_WORK"
SUNDAY_WORK = "SUNDAY_WORK"
SCHEDULE_MARKERS = (NIGHT_WORK, SUNDAY_WORK)

POLYURETHANE_TERM = "polyur"


def _alert(severity: str, message: str, description: str) -> BusinessRuleAction:
    return BusinessRuleAction(
        type=ACTION_ALERT,
        payload={"severity": severity, "message": message},
        description=description,
    )


class _RuleContext:
    def __init__(self, project, artworks, flows, quote_lines, config):
        self.project = project
        self.artworks = list(artworks)
        self.flows = list(flows)
        self.quote_lines = list(quote_lines)
        self.config = config
        self.actions: List[BusinessRuleAction] = []
        self.applied = set()
        for line in self.quote_lines:
            self.applied.update(line.applied_constraints)

    @property
    def crated_artworks(self) -> List[ArtworkInput]:
        return [a for a in self.artworks if a.crate_specification is not None]

    def add_line(self, marker: str, category: str, description: str, quantity, unit_price,
                 action_description: str, flow_id: Optional[str] = None):
        if marker in self.applied:
            logger.debug(f"Constraint {marker} already applied, skipping quote line")
            return
        quantity = d(quantity)
        unit = money(unit_price)
        line = QuoteLineRecord(
            id=new_id(),
            project_id=self.project.id,
            category=category,
            description=description,
            quantity=quantity,
            unit_price=unit,
            total_price=money(quantity * unit),
            currency=self.project.currency or self.config.currency,
            source=SOURCE_CALCULATION,
            flow_id=flow_id,
            applied_constraints=[marker],
        )
        self.applied.add(marker)
        self.actions.append(BusinessRuleAction(type=ACTION_ADD_QUOTE_LINE, payload=line.as_dict(),
                                               description=action_description))

    def surcharge_lines(self, category: str, markers: Sequence[str], factor: Decimal, marker: str,
                        suffix: str, description: str):
        for line in self.quote_lines:
            if line.category != category or line.source != SOURCE_ESTIMATION:
                continue
            if any(m in line.applied_constraints for m in markers):
                continue
            self.actions.append(BusinessRuleAction(
                type=ACTION_UPDATE_QUOTE_LINE,
                payload={
                    "id": line.id,
                    "unit_price": money(line.unit_price * factor),
                    "total_price": money(line.total_price * factor),
                    "description": f"{line.description} {suffix}",
                    "applied_constraints": list(line.applied_constraints) + [marker],
                },
                description=description,
            ))


def apply_cctp_business_rules(
    project: ProjectRecord,
    constraints: ConstraintsMatrix,
    artworks: Iterable[ArtworkInput],
    flows: Iterable[FlowRecord],
    quote_lines: Iterable[QuoteLineRecord],
    config: Optional[PricingConfig] = None,
) -> List[BusinessRuleAction]:
    """
    Evaluate every CCTP rule once, in a fixed order

    Args:
        project: Project being quoted
        constraints: Structured tender constraints
        artworks: Current artworks (crate specifications are read, not recomputed)
        flows: Current logistics flows
        quote_lines: Current quote lines, including previously applied surcharges

    Returns:
        List[BusinessRuleAction]: Actions for the caller to apply, in rule order
    """
    config = config or get_pricing_config()
    ctx = _RuleContext(project, artworks, flows, quote_lines, config)

    _access_rules(ctx, constraints)
    _security_rules(ctx, constraints)
    _packing_rules(ctx, constraints)
    _schedule_rules(ctx, constraints)

    logger.info(f"CCTP rules produced {len(ctx.actions)} actions for project {project.id}")
    return ctx.actions


def _access_rules(ctx: _RuleContext, constraints: ConstraintsMatrix):
    access = constraints.access
    config = ctx.config

    if access.max_height_meters is not None and d(access.max_height_meters) < config.max_height_limit_m:
        ctx.actions.append(_alert(
            SEVERITY_CRITICAL,
            f"Camion incompatible avec le CCTP (hauteur max détectée : {access.max_height_meters} m). "
            f"Basculement forcé sur porteur.",
            "Alerte hauteur limitée",
        ))
        for flow in ctx.flows:
            if flow.flow_type == DEDICATED_TRUCK:
                ctx.actions.append(BusinessRuleAction(
                    type=ACTION_UPDATE_FLOW,
                    payload={
                        "id": flow.id,
                        "flow_type": ART_SHUTTLE,
                        "notes": "Forcé en porteur (shuttle) suite contrainte hauteur CCTP",
                    },
                    description=f"Correction véhicule pour {flow.origin_country}",
                ))

    if access.tail_lift_required:
        ctx.actions.append(_alert(
            SEVERITY_INFO,
            "Hayon élévateur requis : vérifier la disponibilité sur tous les véhicules.",
            "Note hayon requis",
        ))
        for flow in ctx.flows:
            ctx.add_line(
                f"{TAIL_LIFT}:{flow.id}", TRANSPORT,
                f"Supplément hayon élévateur - {flow.origin_city} → {flow.destination_city}",
                1, config.tail_lift_fee, "Ajout frais hayon", flow_id=flow.id,
            )

    if access.elevator_dimensions is not None:
        elevator = access.elevator_dimensions
        limits = (d(elevator.h), d(elevator.w), d(elevator.d))
        for artwork in ctx.crated_artworks:
            ext = artwork.crate_specification.external
            sizes = (ext.h / MM_PER_M, ext.w / MM_PER_M, ext.d / MM_PER_M)
            if not any(size > limit for size, limit in zip(sizes, limits)):
                continue
            title = artwork.title or artwork.id
            ctx.actions.append(_alert(
                SEVERITY_CRITICAL,
                f"Grutage ou décaissage requis pour « {title} » : caisse trop grande pour le monte-charge.",
                "Alerte dimensions monte-charge",
            ))
            ctx.add_line(
                f"{ELEVATOR_CRANE}:{artwork.id}", HANDLING, f"Grutage extérieur - {title}",
                1, config.crane_fee, "Ajout frais grutage", flow_id=artwork.flow_id,
            )


def _security_rules(ctx: _RuleContext, constraints: ConstraintsMatrix):
    security = constraints.security
    config = ctx.config

    if security.armored_truck_required:
        factor = config.armored_truck_multiplier
        ctx.actions.append(_alert(
            SEVERITY_WARNING,
            f"Camion blindé requis : majoration x{factor} sur les estimations de transport.",
            "Note sécurité blindée",
        ))
        ctx.surcharge_lines(
            TRANSPORT, (ARMORED_TRUCK,), factor, ARMORED_TRUCK,
            f"[MAJORATION BLINDÉ x{factor}]", "Majoration transport blindé",
        )

    if security.police_escort_required:
        ctx.add_line(POLICE_ESCORT, SECURITY, "Frais administratifs escorte & coordination sécurité",
                     1, config.police_escort_fee, "Ajout frais escorte police")
    if security.courier_supervision:
        ctx.add_line(COURIER_SUPERVISION, COURIER, "Forfait voyage convoyeur (billet + hôtel + per diem)",
                     1, config.courier_travel_fee, "Ajout frais convoyage")
    if security.tarmac_access:
        ctx.add_line(TARMAC_ACCESS, HANDLING, "Badge tarmac & supervision palettisation aéroport",
                     1, config.tarmac_supervision_fee, "Ajout frais supervision tarmac")


def _packing_rules(ctx: _RuleContext, constraints: ConstraintsMatrix):
    packing = constraints.packing
    config = ctx.config
    crate_count = len(ctx.crated_artworks)

    if packing.nimp15_mandatory:
        ctx.actions.append(_alert(
            SEVERITY_INFO,
            "Certificat NIMP15 (ISPM15) imposé sur toutes les caisses.",
            "Note qualité caisse",
        ))
        if crate_count:
            ctx.add_line(NIMP15, PACKING, "Certification NIMP15 (traitement thermique bois)",
                         crate_count, config.nimp15_fee_per_crate, "Ajout frais NIMP15")

    if packing.acclimatization_hours:
        hours = packing.acclimatization_hours
        ctx.actions.append(_alert(
            SEVERITY_WARNING,
            f"Acclimatation de {hours}h requise avant déballage.",
            "Note acclimatation",
        ))
        ctx.add_line(ACCLIMATIZATION, HANDLING, f"Stockage climatisé pour acclimatation ({hours}h)",
                     ceil_int(Decimal(hours) / 24), config.climate_storage_per_day, "Ajout frais acclimatation")

    if packing.forbidden_materials:
        ctx.actions.append(_alert(
            SEVERITY_WARNING,
            f"Matériaux interdits : {', '.join(packing.forbidden_materials)}. "
            f"Vérification des spécifications de caisses requise.",
            "Alerte matériaux interdits",
        ))
        if crate_count and any(POLYURETHANE_TERM in m.lower() for m in packing.forbidden_materials):
            ctx.add_line(NEUTRAL_MATERIALS, PACKING, "Supplément matériaux neutres (Tyvek/Bondina)",
                         crate_count, config.neutral_materials_per_crate, "Ajout frais matériaux neutres")


def _schedule_rules(ctx: _RuleContext, constraints: ConstraintsMatrix):
    schedule = constraints.schedule
    config = ctx.config

    if schedule.night_work or schedule.sunday_work:
        if schedule.sunday_work:
            factor, marker, label = config.sunday_work_multiplier, SUNDAY_WORK, "DIMANCHE"
        else:
            factor, marker, label = config.night_work_multiplier, NIGHT_WORK, "NUIT"
        ctx.actions.append(_alert(
            SEVERITY_WARNING,
            f"Majoration main d'œuvre x{factor} (travail de nuit/dimanche).",
            "Alerte surcoût main d'œuvre",
        ))
        ctx.surcharge_lines(
            HANDLING, SCHEDULE_MARKERS, factor, marker,
            f"[MAJORATION {label} x{factor}]", "Majoration main d'œuvre",
        )

    if schedule.hard_deadline is not None:
        deadline = schedule.hard_deadline
        ctx.actions.append(_alert(
            SEVERITY_CRITICAL,
            f"Échéance impérative : {deadline.strftime('%d/%m/%Y')}. Aucun retard ne sera toléré.",
            "Alerte deadline critique",
        ))
        if ctx.project.end_date is None or deadline < ctx.project.end_date:
            ctx.actions.append(BusinessRuleAction(
                type=ACTION_UPDATE_PROJECT,
                payload={"id": ctx.project.id, "end_date": deadline},
                description="Mise à jour deadline projet",
            ))
