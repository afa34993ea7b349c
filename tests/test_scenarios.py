from lca_backend.app.lca_engine import build_lca_json
from lca_backend.app.scenarios import batch_averages, circularity_indicators, compare_routes, conventional_variant, end_of_life_split


def test_conventional_variant_overrides_every_alias():
    variant = conventional_variant({
        "metal": "steel", "Production Route": "recycled", "energy_source": "renewable", "recycledContent": 80,
    })
    assert variant == {
        "metal": "steel",
        "productionRoute": "primary",
        "energySource": "fossil",
        "recycledContentPercent": 0,
    }


def test_compare_routes():
    rows = compare_routes({"metal": "steel", "productionRoute": "recycled", "energySource": "renewable"})
    conventional, circular = rows
    assert conventional == {
        "name": "Conventional Route",
        "carbon_footprint_kg_co2e": 343.6,
        "energy_use_mj": 2472.0,
        "water_use_l": 600.0,
    }
    assert circular["name"] == "Circular Route"
    assert circular["carbon_footprint_kg_co2e"] == 49.38
    assert circular["water_use_l"] == 240.0


def test_compare_routes_with_no_record():
    rows = compare_routes(None)
    assert [r["name"] for r in rows] == ["Conventional Route", "Circular Route"]


def test_batch_averages():
    reports = [build_lca_json({"metal": "steel"}), build_lca_json({"metal": "steel", "recycledContentPercent": 100})]
    averages = batch_averages(reports)
    assert averages["avg_gwp_kg_co2e"] == 283.6
    assert averages["avg_mci_percent"] == 92.5
    assert averages["avg_water_consumption_m3"] == 0.6
    assert batch_averages([]) is None


def test_end_of_life_split():
    report = build_lca_json({"metal": "steel", "recycledContentPercent": 30})
    split = {s["name"]: s["value"] for s in end_of_life_split(report, "Recycling")}
    assert split == {"Recycling": 30, "Reuse": 5, "Energy Recovery": 10, "Landfill": 55}


def test_end_of_life_landfill_never_negative():
    report = build_lca_json({"metal": "aluminium"})
    split = {s["name"]: s["value"] for s in end_of_life_split(report, "reuse")}
    assert split["Recycling"] == 95
    assert split["Reuse"] == 20
    assert split["Landfill"] == 0


def test_circularity_indicators_for_recycled_aluminium_reuse():
    record = {"metal": "aluminium", "productionRoute": "recycled", "endOfLife": "Reuse"}
    indicators = circularity_indicators(record, build_lca_json(record))
    assert indicators == {
        "recyclable_percent": 95,
        "life_extension_years": 15,
        "resource_efficiency_score": 85,
        "resource_efficiency_rating": "high",
    }


def test_circularity_indicators_scores_by_route_and_end_of_life():
    mixed = {"metal": "copper", "Production Route": "Mixed", "end_of_life": "recycling"}
    indicators = circularity_indicators(mixed, build_lca_json(mixed))
    assert indicators["recyclable_percent"] == 90
    assert indicators["life_extension_years"] == 8
    assert indicators["resource_efficiency_score"] == 65
    assert indicators["resource_efficiency_rating"] == "moderate"

    primary = {"metal": "zinc", "endOfLife": "landfill"}
    indicators = circularity_indicators(primary, build_lca_json(primary))
    assert indicators["recyclable_percent"] == 80
    assert indicators["life_extension_years"] == 0
    assert indicators["resource_efficiency_rating"] == "low"


def test_circularity_indicators_without_a_record():
    indicators = circularity_indicators(None, build_lca_json())
    assert indicators["recyclable_percent"] == 85
    assert indicators["life_extension_years"] == 0
    assert indicators["resource_efficiency_score"] == 45
