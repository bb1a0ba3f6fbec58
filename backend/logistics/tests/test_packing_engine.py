from decimal import Decimal

import pytest

from logistics.dataclasses import GALLERY_GRADE, MUSEUM_GRADE
from logistics.services.packing_engine import (
    InvalidArtworkError,
    calculate_packing,
    crate_type_label,
    validate_artwork_input,
)


class TestCrateSelection:
    def test_reference_painting_gets_gallery_crate(self, config, make_artwork):
        artwork = make_artwork(height_cm=Decimal("180"), width_cm=Decimal("120"), depth_cm=Decimal("10"),
                               weight_kg=Decimal("25"), fragility=2)
        spec = calculate_packing(artwork, config)

        assert spec.crate_type == GALLERY_GRADE
        assert spec.foam_thickness_mm == Decimal("50")
        assert spec.wall_thickness_mm == Decimal("20")
        assert (spec.internal.h, spec.internal.w, spec.internal.d) == (Decimal("1900"), Decimal("1300"), Decimal("200"))
        # pallet height only on the height axis
        assert (spec.external.h, spec.external.w, spec.external.d) == (Decimal("2040"), Decimal("1340"), Decimal("240"))
        assert spec.external_volume_m3 == Decimal("0.656064")

    def test_heavy_artwork_gets_museum_crate(self, config, make_artwork):
        spec = calculate_packing(make_artwork(weight_kg=Decimal("81")), config)
        assert spec.crate_type == MUSEUM_GRADE
        assert spec.foam_thickness_mm == Decimal("100")
        assert spec.wall_thickness_mm == Decimal("50")

    def test_thresholds_are_exclusive(self, config, make_artwork):
        spec = calculate_packing(make_artwork(weight_kg=Decimal("80"), height_cm=Decimal("200")), config)
        assert spec.crate_type == GALLERY_GRADE

    def test_large_artwork_gets_museum_crate(self, config, make_artwork):
        spec = calculate_packing(make_artwork(width_cm=Decimal("201")), config)
        assert spec.crate_type == MUSEUM_GRADE
        assert spec.needs_travel_frame is False

    def test_fragile_frame_adds_travel_frame(self, config, make_artwork):
        spec = calculate_packing(make_artwork(has_fragile_frame=True), config)

        assert spec.crate_type == MUSEUM_GRADE
        assert spec.needs_travel_frame is True
        assert spec.frame_thickness_mm == Decimal("100")
        assert (spec.internal.h, spec.internal.w, spec.internal.d) == (Decimal("1300"), Decimal("1100"), Decimal("350"))
        assert (spec.external.h, spec.external.w, spec.external.d) == (Decimal("1500"), Decimal("1200"), Decimal("450"))

    def test_weight_rule_wins_over_fragile_frame(self, config, make_artwork):
        spec = calculate_packing(make_artwork(has_fragile_frame=True, weight_kg=Decimal("90")), config)
        assert spec.crate_type == MUSEUM_GRADE
        assert spec.needs_travel_frame is False

    def test_fragile_frame_ignored_for_sculpture(self, config, make_artwork):
        spec = calculate_packing(make_artwork(typology="SCULPTURE", has_fragile_frame=True), config)
        assert spec.crate_type == GALLERY_GRADE

    def test_high_fragility_gets_museum_crate(self, config, make_artwork):
        assert calculate_packing(make_artwork(fragility=4), config).crate_type == MUSEUM_GRADE
        assert calculate_packing(make_artwork(fragility=3), config).crate_type == GALLERY_GRADE

    def test_sculpture_in_gallery_crate_uses_fragile_foam(self, config, make_artwork):
        spec = calculate_packing(make_artwork(typology="SCULPTURE", weight_kg=Decimal("40")), config)
        assert spec.crate_type == GALLERY_GRADE
        assert spec.foam_thickness_mm == Decimal("100")
        assert spec.wall_thickness_mm == Decimal("20")

    @pytest.mark.parametrize("overrides", [
        {},
        {"weight_kg": Decimal("120")},
        {"has_fragile_frame": True},
        {"typology": "INSTALLATION", "fragility": 5},
        {"height_cm": Decimal("0"), "width_cm": Decimal("0"), "depth_cm": Decimal("0")},
    ])
    def test_external_contains_internal_contains_artwork(self, config, make_artwork, overrides):
        artwork = make_artwork(**overrides)
        spec = calculate_packing(artwork, config)
        raw = (artwork.height_cm * 10, artwork.width_cm * 10, artwork.depth_cm * 10)
        internal = (spec.internal.h, spec.internal.w, spec.internal.d)
        external = (spec.external.h, spec.external.w, spec.external.d)
        for r, i, e in zip(raw, internal, external):
            assert e >= i >= r


class TestValidation:
    def test_valid_artwork_passes(self, make_artwork):
        validate_artwork_input(make_artwork())

    def test_negative_dimension_rejected(self, make_artwork):
        with pytest.raises(InvalidArtworkError, match="height_cm"):
            validate_artwork_input(make_artwork(height_cm=Decimal("-1")))

    def test_negative_weight_rejected(self, make_artwork):
        with pytest.raises(InvalidArtworkError, match="weight_kg"):
            validate_artwork_input(make_artwork(weight_kg=Decimal("-0.5")))

    def test_fragility_out_of_range_rejected(self, make_artwork):
        with pytest.raises(InvalidArtworkError, match="fragility"):
            validate_artwork_input(make_artwork(fragility=6))
        with pytest.raises(InvalidArtworkError):
            validate_artwork_input(make_artwork(fragility=0))

    def test_is_a_value_error(self):
        assert issubclass(InvalidArtworkError, ValueError)


def test_crate_type_label():
    assert crate_type_label(GALLERY_GRADE) == "Caisse Galerie (T1)"
    assert crate_type_label(MUSEUM_GRADE) == "Caisse Musée (T2)"
    assert "cadre" in crate_type_label(MUSEUM_GRADE, needs_travel_frame=True)
