from decimal import Decimal

import pytest

from logistics.dataclasses import GALLERY_GRADE, CrateSpecification, Dimensions
from logistics.services.pricing_config import build_pricing_config, load_pricing_config
from logistics.services.transport import (
    HEAVY_TRUCK,
    LIGHT_TRUCK,
    calculate_flow_total_cost,
    calculate_packing_service,
    calculate_transport,
    format_transport_summary,
)


def crate(h, w, d):
    return CrateSpecification(
        crate_type=GALLERY_GRADE,
        internal=Dimensions(Decimal(h), Decimal(w), Decimal(d)),
        external=Dimensions(Decimal(h), Decimal(w), Decimal(d)),
        foam_thickness_mm=Decimal("50"),
        wall_thickness_mm=Decimal("20"),
    )


class TestPackingService:
    @pytest.mark.parametrize("h,w,hours", [
        ("100", "80", "0.25"),
        ("200", "150", "0.5"),
        ("250", "200", "1"),
    ])
    def test_painting_time_by_surface(self, config, make_artwork, h, w, hours):
        service = calculate_packing_service(make_artwork(height_cm=Decimal(h), width_cm=Decimal(w)), config)
        assert service.hours == Decimal(hours)
        assert service.workers == 2

    def test_small_painting_cost(self, config, make_artwork):
        service = calculate_packing_service(make_artwork(), config)
        assert service.cost == Decimal("25")
        assert service.description == "Tamponnage sur site (2 personnes × 0.25h)"

    def test_heavy_sculpture_needs_third_worker(self, config, make_artwork):
        service = calculate_packing_service(make_artwork(typology="SCULPTURE", weight_kg=Decimal("60")), config)
        assert service.hours == Decimal("1.5")
        assert service.workers == 3
        assert service.cost == Decimal("225")

    def test_light_sculpture_keeps_two_workers(self, config, make_artwork):
        service = calculate_packing_service(make_artwork(typology="SCULPTURE", weight_kg=Decimal("50")), config)
        assert service.workers == 2

    def test_object_and_installation(self, config, make_artwork):
        assert calculate_packing_service(make_artwork(typology="OBJECT"), config).hours == Decimal("0.25")
        installation = calculate_packing_service(make_artwork(typology="INSTALLATION"), config)
        assert installation.hours == Decimal("2")
        assert installation.workers == 3
        assert installation.cost == Decimal("300")

    def test_fragility_multiplies_time(self, config, make_artwork):
        service = calculate_packing_service(make_artwork(typology="SCULPTURE", fragility=4), config)
        assert service.hours == Decimal("2.25")


class TestTransport:
    def test_small_volume_uses_light_truck(self, config, make_artwork):
        artworks = [make_artwork(crate_specification=crate("1000", "1000", "1000"))]
        transport = calculate_transport(artworks, Decimal("450"), config)

        assert transport.vehicle_type == LIGHT_TRUCK
        assert transport.total_volume_m3 == Decimal("1")
        assert transport.base_cost == Decimal("800")
        assert transport.distance_cost == 0
        assert transport.total_cost == Decimal("800")

    def test_twelve_cubic_metres_is_heavy(self, config, make_artwork):
        artworks = [make_artwork(crate_specification=crate("2000", "2000", "3000"))]
        transport = calculate_transport(artworks, Decimal("100"), config)

        assert transport.total_volume_m3 == Decimal("12")
        assert transport.vehicle_type == HEAVY_TRUCK
        assert transport.distance_cost == Decimal("150")
        assert transport.total_cost == Decimal("1350")

    def test_volume_summed_across_artworks(self, config, make_artwork):
        artworks = [make_artwork(id=str(i), crate_specification=crate("2000", "2000", "1000")) for i in range(3)]
        transport = calculate_transport(artworks, 0, config)
        assert transport.total_volume_m3 == Decimal("12")
        assert transport.vehicle_type == HEAVY_TRUCK
        assert transport.distance_km is None

    def test_raw_dimensions_are_inflated_without_crate(self, config, make_artwork):
        artwork = make_artwork(height_cm=Decimal("100"), width_cm=Decimal("100"), depth_cm=Decimal("100"))
        transport = calculate_transport([artwork], 0, config)
        assert transport.total_volume_m3 == Decimal("1.5")

    def test_threshold_is_configurable(self, make_artwork):
        roomy = build_pricing_config(load_pricing_config(), {"light_truck_max_volume_m3": "15"})
        artworks = [make_artwork(crate_specification=crate("2000", "2000", "3000"))]
        assert calculate_transport(artworks, 100, roomy).vehicle_type == LIGHT_TRUCK

    def test_summary_mentions_mileage_for_heavy_truck(self, config, make_artwork):
        artworks = [make_artwork(crate_specification=crate("2000", "2000", "3000"))]
        summary = format_transport_summary(calculate_transport(artworks, Decimal("100"), config))
        assert "Poids Lourd" in summary
        assert "Kilométrage (100km): 150.00€" in summary
        assert summary.endswith("Coût Transport Total: 1350.00€")


def test_flow_total_cost(config, make_artwork):
    artworks = [
        make_artwork(id="a", crate_cost=Decimal("400"), crate_specification=crate("1000", "1000", "1000")),
        make_artwork(id="b", crate_cost=Decimal("600"), crate_specification=crate("1000", "1000", "1000")),
    ]
    totals = calculate_flow_total_cost(artworks, Decimal("300"), config)

    assert totals["crate_costs"] == Decimal("1000")
    assert totals["packing_costs"] == Decimal("50")
    assert totals["transport_cost"] == Decimal("800")
    assert totals["total_cost"] == Decimal("1850")
