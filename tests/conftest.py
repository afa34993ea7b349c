from datetime import date

import pytest


@pytest.fixture
def fixed_run():
    """Engine kwargs that pin the report id suffix and the generation date."""
    return {"id_generator": lambda: 42, "today": date(2025, 3, 4)}


@pytest.fixture
def steel_road_record():
    return {
        "metal": "steel",
        "productionRoute": "primary",
        "energySource": "grid",
        "transportDistanceKm": 500,
        "transportMode": "road",
        "recycledContentPercent": 0,
    }
