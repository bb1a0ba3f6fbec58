from decimal import Decimal

import pytest

from logistics.dataclasses import ArtworkInput, ProjectRecord
from logistics.services.pricing_config import (
    build_pricing_config,
    clear_pricing_config_cache,
    load_pricing_config,
)


@pytest.fixture
def config():
    return build_pricing_config(load_pricing_config())


@pytest.fixture(autouse=True)
def _fresh_pricing_cache():
    clear_pricing_config_cache()
    yield
    clear_pricing_config_cache()


@pytest.fixture
def paris_project():
    return ProjectRecord(id=1, name="Expo Paris", organizing_city="Paris", organizing_country="France")


@pytest.fixture
def make_artwork():
    def _make(id="a1", **overrides):
        values = dict(
            title=f"Oeuvre {id}",
            height_cm=Decimal("100"),
            width_cm=Decimal("80"),
            depth_cm=Decimal("5"),
            weight_kg=Decimal("10"),
            typology="PAINTING",
            fragility=2,
            lender_city="Paris",
            lender_country="France",
        )
        values.update(overrides)
        return ArtworkInput(id=id, **values)
    return _make
