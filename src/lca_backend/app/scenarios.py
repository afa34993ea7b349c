"""Derived views over finished LCA reports: route comparison, batch averages, end of life, circularity."""
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .input_normalizer import first_present, normalize_inputs
from .lca_engine import build_lca_json, round2, round_half_up

CONVENTIONAL_OVERRIDES = {
    "productionRoute": "primary",
    "energySource": "fossil",
    "recycledContentPercent": 0,
}

# reuse share (%) by the end-of-life option a user selected
REUSE_SHARE_BY_END_OF_LIFE = {"reuse": 20, "recycling": 5}
DEFAULT_REUSE_SHARE = 10
ENERGY_RECOVERY_SHARE = 10

END_OF_LIFE_KEYS = ("endOfLife", "end_of_life", "End of Life", "End-of-Life Option")
# expected service-life extension (years) by end-of-life option
LIFE_EXTENSION_YEARS = {"reuse": 15, "recycling": 8}
# resource efficiency score (0-100) by production route
RESOURCE_EFFICIENCY_BY_ROUTE = {"recycled": 85, "mixed": 65}
DEFAULT_RESOURCE_EFFICIENCY = 45

_ALIASES_TO_DROP = (
    "productionRoute", "production_route", "Production Route",
    "energySource", "energy_source", "Energy Source",
    "recycledContentPercent", "recycledContent", "recycled_content_percent", "Recycled Content (%)",
)


def _totals(report: Mapping[str, Any]) -> Mapping[str, float]:
    return report["impact_assessment_results"]["totals"]


def _comparison_row(name: str, report: Mapping[str, Any]) -> Dict[str, Any]:
    totals = _totals(report)
    return {
        "name": name,
        "carbon_footprint_kg_co2e": totals["gwp_kg_co2e"],
        "energy_use_mj": totals["ced_mj"],
        # litres read more naturally than m3 on the same chart
        "water_use_l": round2((totals.get("water_consumption_m3") or 0) * 1000),
    }


def conventional_variant(record: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """The same record produced the conventional way (primary, fossil, no scrap)."""
    variant = {k: v for k, v in dict(record or {}).items() if k not in _ALIASES_TO_DROP}
    variant.update(CONVENTIONAL_OVERRIDES)
    return variant


def compare_routes(record: Optional[Mapping[str, Any]], **engine_kwargs) -> List[Dict[str, Any]]:
    """Conventional vs circular (as entered) totals for one record."""
    conventional = build_lca_json(conventional_variant(record), **engine_kwargs)
    circular = build_lca_json(record, **engine_kwargs)
    return [
        _comparison_row("Conventional Route", conventional),
        _comparison_row("Circular Route", circular),
    ]


def batch_averages(reports: Sequence[Mapping[str, Any]]) -> Optional[Dict[str, float]]:
    if not reports:
        return None
    count = len(reports)

    def mean(key):
        return round2(sum(_totals(r)[key] for r in reports) / count)

    return {
        "avg_gwp_kg_co2e": mean("gwp_kg_co2e"),
        "avg_ced_mj": mean("ced_mj"),
        "avg_water_consumption_m3": mean("water_consumption_m3"),
        "avg_mci_percent": mean("mci_percent"),
    }


def end_of_life_split(report: Mapping[str, Any], end_of_life: Optional[str] = None) -> List[Dict[str, Any]]:
    """Recycling / reuse / energy recovery / landfill shares (percent) for charts."""
    eol = report["life_cycle_inventory"]["end_of_life_assumptions"]
    recycling = round_half_up(eol.get("collection_for_recycling_rate_percent") or 0)
    reuse = REUSE_SHARE_BY_END_OF_LIFE.get((end_of_life or "").strip().lower(), DEFAULT_REUSE_SHARE)
    landfill = max(0, 100 - recycling - reuse - ENERGY_RECOVERY_SHARE)
    return [
        {"name": "Recycling", "value": recycling},
        {"name": "Reuse", "value": reuse},
        {"name": "Energy Recovery", "value": ENERGY_RECOVERY_SHARE},
        {"name": "Landfill", "value": landfill},
    ]


def efficiency_rating(score: float) -> str:
    if score >= 80:
        return "high"
    if score >= 60:
        return "moderate"
    return "low"


def circularity_indicators(record: Optional[Mapping[str, Any]], report: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Headline circularity figures for one assessment.

    Recyclability comes from the report, so it matches the metal profile the
    calculation used. Life extension and resource efficiency are scored from
    the end-of-life option and production route of the input record.
    """
    params = normalize_inputs(record)
    end_of_life = str(first_present(record if isinstance(record, Mapping) else {}, END_OF_LIFE_KEYS, "")).strip().lower()
    eol = report["life_cycle_inventory"]["end_of_life_assumptions"]
    score = RESOURCE_EFFICIENCY_BY_ROUTE.get(params.production_route, DEFAULT_RESOURCE_EFFICIENCY)
    return {
        "recyclable_percent": eol.get("collection_for_recycling_rate_percent") or 0,
        "life_extension_years": LIFE_EXTENSION_YEARS.get(end_of_life, 0),
        "resource_efficiency_score": score,
        "resource_efficiency_rating": efficiency_rating(score),
    }
