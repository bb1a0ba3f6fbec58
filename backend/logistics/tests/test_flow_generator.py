from decimal import Decimal

import pytest

from logistics.dataclasses import (
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
    MUSEUM_GRADE,
    PACKING,
    PENDING_QUOTE,
    SOURCE_CALCULATION,
    SOURCE_ESTIMATION,
    TRANSPORT,
    GeoInfo,
    ProjectRecord,
    StaffingRecommendation,
)
from logistics.services.flow_generator import (
    FlowGenerationError,
    FlowGenerator,
    default_destination_city,
    determine_flow_type,
    generate_flows,
)
from logistics.services.packing_engine import calculate_packing
from logistics.services.routing import StaticRouteResolver


@pytest.fixture
def resolver():
    return StaticRouteResolver({("Lyon", "Paris"): 470, ("Paris", "Lyon"): 470})


@pytest.fixture
def generator(resolver, config):
    return FlowGenerator(route_resolver=resolver, config=config)


def lyon_artwork(make_artwork, id="a1", **overrides):
    values = dict(lender_city="Lyon", lender_country="France")
    values.update(overrides)
    return make_artwork(id=id, **values)


def flows_by_key(result):
    return {f.route_key: f for f in result.flows}


class TestFlowType:
    def test_same_country(self):
        fr = GeoInfo("FR", "France", True)
        assert determine_flow_type(fr, fr) == DOMESTIC_ROAD

    def test_both_eu(self):
        assert determine_flow_type(GeoInfo("FR", "France", True), GeoInfo("DE", "Allemagne", True)) == EU_ROAD

    def test_otherwise_air(self):
        assert determine_flow_type(GeoInfo("FR", "France", True), GeoInfo("GB", "Royaume-Uni", False)) == AIR_FREIGHT

    def test_default_destination(self):
        assert default_destination_city("US") == "New York"
        assert default_destination_city("GB") == "London"
        assert default_destination_city("JP") == "Paris"


class TestClustering:
    def test_shared_route_shares_one_flow(self, generator, paris_project, make_artwork):
        artworks = [lyon_artwork(make_artwork, "a1"), lyon_artwork(make_artwork, "a2")]
        result = generator.generate(paris_project, artworks)
        flows = flows_by_key(result)

        assert set(flows) == {("Lyon", "Paris"), ("Paris", "Lyon")}
        outbound = flows[("Lyon", "Paris")]
        assert outbound.leg == LEG_OUTBOUND
        assert outbound.artwork_ids == ["a1", "a2"]
        assert outbound.flow_type == DOMESTIC_ROAD
        assert flows[("Paris", "Lyon")].leg == LEG_RETURN
        assert [a.flow_id for a in result.artworks] == [outbound.id, outbound.id]

    def test_tour_creates_four_segments(self, generator, paris_project, make_artwork):
        artwork = lyon_artwork(make_artwork, destination_city="Paris", destination_city_2="London")
        flows = flows_by_key(generator.generate(paris_project, [artwork]))

        assert {key: f.leg for key, f in flows.items()} == {
            ("Lyon", "Paris"): LEG_OUTBOUND,
            ("Paris", "London"): LEG_TOUR,
            ("Lyon", "London"): LEG_DIRECT,
            ("London", "Lyon"): LEG_RETURN,
        }
        assert flows[("Paris", "London")].flow_type == AIR_FREIGHT
        assert flows[("Paris", "London")].destination_country_code == "GB"

    def test_second_destination_equal_to_first_is_ignored(self, generator, paris_project, make_artwork):
        artwork = lyon_artwork(make_artwork, destination_city="Paris", destination_city_2="Paris")
        assert len(generator.generate(paris_project, [artwork]).flows) == 2

    def test_return_leg_upgraded_by_real_shipment(self, generator, resolver, paris_project, make_artwork):
        artworks = [
            lyon_artwork(make_artwork, "a1"),
            make_artwork(id="a2", lender_city="Paris", destination_city="Lyon"),
        ]
        flows = flows_by_key(generator.generate(paris_project, artworks))

        assert len(flows) == 2
        assert all(f.leg == LEG_OUTBOUND for f in flows.values())
        assert sorted(resolver.calls) == [("Lyon", "Paris"), ("Paris", "Lyon")]

    def test_default_destination_follows_organizer(self, resolver, config, make_artwork):
        project = ProjectRecord(id=7, organizing_city="Chicago", organizing_country="USA")
        result = FlowGenerator(route_resolver=resolver, config=config).generate(project, [lyon_artwork(make_artwork)])
        assert ("Lyon", "New York") in flows_by_key(result)


class TestPricing:
    def test_outbound_flow_is_priced(self, generator, paris_project, make_artwork):
        artworks = [lyon_artwork(make_artwork, "a1"), lyon_artwork(make_artwork, "a2")]
        result = generator.generate(paris_project, artworks)
        outbound = flows_by_key(result)[("Lyon", "Paris")]

        assert outbound.distance_km == Decimal("470")
        assert outbound.transport_cost_total == Decimal("800.00")
        # 470 km at 80 km/h: one driving day plus pickup and delivery
        assert outbound.mission_duration_days == 3
        assert {m.role_id for m in outbound.team_members} == {"registrar", "technician"}
        # Paris is a premium zone: 2 people x (90 x 3 + 250 x 2) + (800 + 550) x 3
        assert outbound.team_cost_total == Decimal("5590.00")
        assert len(outbound.steps) == 1
        assert outbound.steps[0].duration_days == 3

        lines = [l for l in result.quote_lines if l.flow_id == outbound.id]
        categories = {(l.category, l.source) for l in lines}
        assert (TRANSPORT, SOURCE_CALCULATION) in categories
        assert (HANDLING, SOURCE_ESTIMATION) in categories

    def test_return_leg_is_flat_estimate(self, generator, resolver, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork)])
        ret = flows_by_key(result)[("Paris", "Lyon")]
        lines = [l for l in result.quote_lines if l.flow_id == ret.id]

        assert len(lines) == 1
        assert lines[0].category == TRANSPORT
        assert lines[0].source == SOURCE_ESTIMATION
        assert lines[0].total_price == Decimal("950.00")
        assert ret.distance_km is None
        assert resolver.calls == [("Lyon", "Paris")]

    def test_packing_line_per_artwork(self, generator, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork, "a1"), lyon_artwork(make_artwork, "a2")])
        packing = [l for l in result.quote_lines if l.category == PACKING]

        assert len(packing) == 2
        assert all(l.source == SOURCE_CALCULATION for l in packing)
        assert [l.total_price for l in packing] == [a.crate_cost for a in result.artworks]

    def test_air_freight_with_customs(self, generator, paris_project, make_artwork):
        artwork = make_artwork(lender_city="New York", lender_country="USA", customs_required=True)
        result = generator.generate(paris_project, [artwork])
        outbound = flows_by_key(result)[("New York", "Paris")]

        assert outbound.flow_type == AIR_FREIGHT
        assert outbound.status == AWAITING_QUOTE
        assert outbound.mission_duration_days == 3
        customs = [l for l in result.quote_lines if l.category == CUSTOMS]
        assert len(customs) == 1
        assert customs[0].total_price == Decimal("250.00")
        assert customs[0].flow_id == outbound.id

    def test_total_price(self, generator, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork)])
        assert result.total_price == sum(l.total_price for l in result.quote_lines)

    def test_lines_in_project_currency(self, resolver, config, make_artwork):
        project = ProjectRecord(id=3, organizing_city="Paris", organizing_country="France", currency="CHF")
        result = generate_flows(project, [lyon_artwork(make_artwork)], resolver, config)
        assert {l.currency for l in result.quote_lines} == {"CHF"}


class TestEscalation:
    def test_imposed_carrier(self, generator, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork, imposed_carrier="Hasenkamp")])
        for flow in result.flows:
            assert flow.assigned_carrier == "Hasenkamp"
            assert flow.status == AWAITING_QUOTE

    def test_courier_required(self, generator, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork, courier_required=True)])
        assert {f.status for f in result.flows} == {AWAITING_QUOTE}

    def test_plain_artwork_stays_pending(self, generator, paris_project, make_artwork):
        result = generator.generate(paris_project, [lyon_artwork(make_artwork)])
        assert {f.status for f in result.flows} == {PENDING_QUOTE}

    def test_first_carrier_kept(self, generator, paris_project, make_artwork):
        artworks = [
            lyon_artwork(make_artwork, "a1", imposed_carrier="Hasenkamp"),
            lyon_artwork(make_artwork, "a2", imposed_carrier="Crown"),
        ]
        outbound = flows_by_key(generator.generate(paris_project, artworks))[("Lyon", "Paris")]
        assert outbound.assigned_carrier == "Hasenkamp"


class TestCollaborators:
    def test_inputs_not_mutated(self, generator, paris_project, make_artwork):
        artwork = lyon_artwork(make_artwork)
        result = generator.generate(paris_project, [artwork])

        assert artwork.crate_specification is None
        assert artwork.crate_cost is None
        assert artwork.flow_id is None
        assert result.artworks[0] is not artwork
        assert result.artworks[0].crate_specification is not None

    def test_stale_crate_is_recomputed(self, generator, config, paris_project, make_artwork):
        stale = calculate_packing(make_artwork(), config)
        artwork = lyon_artwork(
            make_artwork, height_cm=Decimal("250"), weight_kg=Decimal("120"),
            crate_specification=stale, crate_cost=Decimal("123.00"), recommended_crate=None,
        )
        result = generator.generate(paris_project, [artwork])

        crated = result.artworks[0]
        assert crated.crate_specification.crate_type == MUSEUM_GRADE
        assert crated.crate_cost != Decimal("123.00")
        assert crated.recommended_crate == "Caisse Musée (T2)"
        packing = [l for l in result.quote_lines if l.category == PACKING]
        assert packing[0].description.startswith("Caisse Musée (T2) - ")

    def test_injected_staffing(self, resolver, config, paris_project, make_artwork):
        def no_team(artworks, distance_km, roles):
            return StaffingRecommendation(members=[], mission_duration_days=1, rationale="")

        generator = FlowGenerator(route_resolver=resolver, config=config, recommend_staffing=no_team)
        result = generator.generate(paris_project, [lyon_artwork(make_artwork)])
        assert not [l for l in result.quote_lines if l.category == HANDLING]

    def test_routing_failure_names_segment(self, config, paris_project, make_artwork):
        class Broken:
            def resolve(self, origin, destination):
                raise RuntimeError("provider down")

        generator = FlowGenerator(route_resolver=Broken(), config=config)
        with pytest.raises(FlowGenerationError) as excinfo:
            generator.generate(paris_project, [lyon_artwork(make_artwork)])
        assert excinfo.value.segment_key == ("Lyon", "Paris")
        assert "provider down" in str(excinfo.value)
