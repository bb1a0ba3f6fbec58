"""
Crate selection: maps an artwork's physical attributes to a crate type and
its internal/external dimensions.

All arithmetic is done in millimetres; only the billable volume is in m³.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from ..dataclasses import (
    GALLERY_GRADE,
    INSTALLATION,
    MUSEUM_GRADE,
    PAINTING,
    SCULPTURE,
    ArtworkInput,
    CrateSpecification,
    Dimensions,
)
from .pricing_config import PricingConfig, get_pricing_config
from .utils import MM_PER_CM, ZERO, d

logger = logging.getLogger(__name__)

CRATE_TYPE_LABELS = {
    GALLERY_GRADE: "Caisse Galerie (T1)",
    MUSEUM_GRADE: "Caisse Musée (T2)",
}
TRAVEL_FRAME_LABEL = "Caisse Musée (T2) + cadre de voyage"

FRAGILE_FOAM_TYPOLOGIES = (SCULPTURE, INSTALLATION)


class InvalidArtworkError(ValueError):
    """Raised when artwork measurements cannot describe a physical object"""
    pass


def validate_artwork_input(artwork: ArtworkInput) -> None:
    """
    Reject artworks the packing engine must never see.

    Raises:
        InvalidArtworkError: negative dimension or weight, or fragility outside 1-5
    """
    for field_name in ("height_cm", "width_cm", "depth_cm", "weight_kg"):
        value = d(getattr(artwork, field_name))
        if value < 0:
            raise InvalidArtworkError(f"Artwork {artwork.id}: {field_name} must not be negative (got {value})")
    if not 1 <= int(artwork.fragility) <= 5:
        raise InvalidArtworkError(f"Artwork {artwork.id}: fragility must be between 1 and 5 (got {artwork.fragility})")


def select_crate_type(artwork: ArtworkInput, config: PricingConfig) -> tuple:
    """Return (crate_type, needs_travel_frame). First matching rule wins."""
    if d(artwork.weight_kg) > config.museum_weight_threshold_kg or \
            artwork.max_dimension_cm > config.museum_max_dimension_cm:
        return MUSEUM_GRADE, False
    if artwork.typology == PAINTING and artwork.has_fragile_frame:
        return MUSEUM_GRADE, True
    if artwork.fragility >= config.museum_fragility_threshold:
        return MUSEUM_GRADE, False
    return GALLERY_GRADE, False


def calculate_packing(artwork: ArtworkInput, config: Optional[PricingConfig] = None) -> CrateSpecification:
    config = config or get_pricing_config()
    crate_type, needs_travel_frame = select_crate_type(artwork, config)

    if crate_type == MUSEUM_GRADE or artwork.typology in FRAGILE_FOAM_TYPOLOGIES:
        foam = config.foam_fragile_mm
    else:
        foam = config.foam_standard_mm
    frame = config.frame_thickness_mm if needs_travel_frame else ZERO
    wall = config.wall_t2_mm if crate_type == MUSEUM_GRADE else config.wall_t1_mm

    def inner(cm) -> Decimal:
        return d(cm) * MM_PER_CM + 2 * foam + frame

    internal = Dimensions(h=inner(artwork.height_cm), w=inner(artwork.width_cm), d=inner(artwork.depth_cm))
    external = Dimensions(
        h=internal.h + 2 * wall + config.pallet_height_mm,
        w=internal.w + 2 * wall,
        d=internal.d + 2 * wall,
    )

    spec = CrateSpecification(
        crate_type=crate_type,
        internal=internal,
        external=external,
        foam_thickness_mm=foam,
        wall_thickness_mm=wall,
        frame_thickness_mm=frame,
        needs_travel_frame=needs_travel_frame,
    )
    logger.debug(f"Artwork {artwork.id}: {crate_type} crate, external volume {spec.external_volume_m3} m3")
    return spec


def crate_type_label(crate_type: str, needs_travel_frame: bool = False) -> str:
    if needs_travel_frame:
        return TRAVEL_FRAME_LABEL
    return CRATE_TYPE_LABELS.get(crate_type, crate_type)
