import logging
import math
import random
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional

from .factor_tables import DEFAULT_TABLES, STAGE_SPLIT, FactorTables, ResolvedFactors, resolve_factors
from .input_normalizer import ProcessParameters, normalize_inputs

logger = logging.getLogger(__name__)

# Notional functional unit: 1 tonne of product, cradle-to-gate
PRODUCT_MASS_TONNE = 1.0
MJ_PER_KWH = 3.6

MANUFACTURING_PROCESSES = ["Melting/Casting", "Shaping/Finishing"]
ALLOYING_ELEMENTS_PERCENT = 2.0


def round2(value: Any) -> float:
    """Round half up to 2 decimals; non-numeric input rounds to 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return math.floor(value * 100 + 0.5) / 100


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def random_report_suffix() -> int:
    return random.randrange(1000)


@dataclass(frozen=True)
class ImpactBreakdown:
    """Unrounded intermediate quantities for one assessment."""

    params: ProcessParameters
    factors: ResolvedFactors
    electricity_kwh: float
    natural_gas_mj: float
    tonne_km: float
    gwp_electricity: float
    gwp_gas: float
    gwp_transport: float
    gwp_process: float
    energy_processing: float
    energy_electricity: float
    energy_transport: float
    water_l: int
    recyclable_percent: float
    mci_percent: float

    @property
    def gwp_total(self) -> float:
        return round2(self.gwp_electricity + self.gwp_gas + self.gwp_transport + self.gwp_process)

    @property
    def ced_total(self) -> float:
        return round2(self.energy_processing + self.energy_electricity + self.energy_transport)

    @property
    def water_m3(self) -> float:
        return round2(self.water_l / 1000)


def material_circularity(recyclable_percent: float, recycled_content_percent: float) -> float:
    """
    Simplified MCI in percent: 1 - (V / (V + R)) * (1 - E).

    V is the virgin share proxy, R the recyclable share and E the recycled
    content as a fraction.
    """
    virgin = 100 - recyclable_percent
    recyclable = recyclable_percent
    recycled_fraction = min(1.0, max(0.0, recycled_content_percent / 100))
    denominator = virgin + recyclable
    ratio = virgin / denominator if denominator else 0.0
    return round2(round2(1 - ratio * (1 - recycled_fraction)) * 100)


def calculate_impacts(params: ProcessParameters, tables: FactorTables = DEFAULT_TABLES) -> ImpactBreakdown:
    """Evaluate every impact component for already-normalised parameters."""
    factors = resolve_factors(params, tables)
    ef = tables.emission_factors

    # --- Energy inventory ---
    electricity_kwh = tables.electricity_kwh_per_tonne * factors.production_modifier * factors.energy_modifier
    natural_gas_mj = tables.natural_gas_mj_per_tonne * factors.production_modifier * factors.gas_factor
    tonne_km = PRODUCT_MASS_TONNE * params.transport_distance_km

    # --- GWP = sum(EF_i * I_i) ---
    gwp_electricity = ef.get("electricity_kwh", 0.0) * electricity_kwh
    gwp_gas = ef.get("natural_gas_mj", 0.0) * natural_gas_mj
    gwp_transport = ef.get("transport_tkm", 0.0) * tonne_km * factors.transport_multiplier
    gwp_process = ef.get("process_per_tonne", 0.0) * PRODUCT_MASS_TONNE * factors.production_modifier

    # --- Cumulative energy demand ---
    energy_processing = natural_gas_mj
    energy_electricity = electricity_kwh * MJ_PER_KWH
    divisor = factors.transport_divisor
    energy_transport = tonne_km / divisor if divisor > 0 else 0.0

    # --- Water and circularity ---
    water_l = round_half_up(factors.water_baseline_l_per_tonne * factors.production_modifier)
    recyclable = params.recycled_content_percent or factors.recyclable_default_percent
    recyclable = max(0.0, min(100.0, recyclable))
    mci = material_circularity(recyclable, params.recycled_content_percent)

    return ImpactBreakdown(
        params=params,
        factors=factors,
        electricity_kwh=electricity_kwh,
        natural_gas_mj=natural_gas_mj,
        tonne_km=tonne_km,
        gwp_electricity=gwp_electricity,
        gwp_gas=gwp_gas,
        gwp_transport=gwp_transport,
        gwp_process=gwp_process,
        energy_processing=energy_processing,
        energy_electricity=energy_electricity,
        energy_transport=energy_transport,
        water_l=water_l,
        recyclable_percent=recyclable,
        mci_percent=mci,
    )


def _reconcile(total: float, raw_materials: float, manufacturing: float, transportation: float) -> float:
    # rounding each stage separately can leave a cent of drift; the
    # transportation stage absorbs it so the stages always sum to the total
    residual = round2(total - raw_materials - manufacturing)
    if abs(residual - transportation) <= 0.01 + 1e-9:
        return residual
    return transportation


def attribute_stages(breakdown: ImpactBreakdown, split: Mapping[str, float] = STAGE_SPLIT) -> Dict[str, Dict[str, float]]:
    """
    Partition GWP and CED totals into life-cycle stages.

    Process emissions are split raw materials / manufacturing / transportation
    by `split` (25/50/25 by default). Processing energy gives its raw-materials
    share to that stage and the remainder to manufacturing.
    """
    raw_share = split["raw_materials"]
    gwp_raw = round2(breakdown.gwp_process * raw_share)
    gwp_manufacturing = round2(
        breakdown.gwp_electricity + breakdown.gwp_gas + breakdown.gwp_process * split["manufacturing"]
    )
    gwp_transport = round2(breakdown.gwp_transport + breakdown.gwp_process * split["transportation"])

    ced_raw = round2(breakdown.energy_processing * raw_share)
    ced_manufacturing = round2(breakdown.energy_processing * (1 - raw_share) + breakdown.energy_electricity)
    ced_transport = round2(breakdown.energy_transport)

    return {
        "raw_materials": {"gwp_kg_co2e": gwp_raw, "ced_mj": ced_raw},
        "manufacturing": {"gwp_kg_co2e": gwp_manufacturing, "ced_mj": ced_manufacturing},
        "transportation": {
            "gwp_kg_co2e": _reconcile(breakdown.gwp_total, gwp_raw, gwp_manufacturing, gwp_transport),
            "ced_mj": _reconcile(breakdown.ced_total, ced_raw, ced_manufacturing, ced_transport),
        },
    }


def _raw_materials_inventory(params: ProcessParameters) -> Dict[str, Any]:
    inventory = {"description": "Primary inputs per tonne product (estimated)."}
    if params.metal == "aluminium":
        recycled = params.recycled_content_percent
        inventory["scrap_aluminium_input_percent"] = recycled
        inventory["primary_aluminium_ingot_percent"] = max(0.0, 100 - recycled - ALLOYING_ELEMENTS_PERCENT)
        inventory["alloying_elements_percent"] = ALLOYING_ELEMENTS_PERCENT
    return inventory


def build_inventory(breakdown: ImpactBreakdown) -> Dict[str, Any]:
    """Resolved quantities the calculation actually used."""
    params, factors = breakdown.params, breakdown.factors
    return {
        "raw_materials": _raw_materials_inventory(params),
        "energy_inputs": {
            "description": "Energy consumed during manufacturing processes (estimated).",
            "grid_electricity_kwh": round2(breakdown.electricity_kwh),
            "natural_gas_mj": round2(breakdown.natural_gas_mj),
            "renewable_share_of_electricity_percent": factors.renewable_share_percent,
        },
        "transportation": {
            "description": "Inbound raw material and outbound transport assumptions.",
            "distance_km": params.transport_distance_km,
            "mode": params.transport_mode,
            "tonne_km": round2(breakdown.tonne_km),
        },
        "manufacturing_processes": list(MANUFACTURING_PROCESSES),
        "end_of_life_assumptions": {
            "description": "Simple end-of-life recycling proxy based on recyclable %.",
            "collection_for_recycling_rate_percent": breakdown.recyclable_percent,
            "landfill_rate_percent": round2(100 - breakdown.recyclable_percent),
        },
        "resolved_factors": {
            "profile_metal": factors.profile_metal,
            "production_modifier": factors.production_modifier,
            "energy_modifier": factors.energy_modifier,
            "transport_ef_multiplier": factors.transport_multiplier,
            "transport_energy_divisor": factors.transport_divisor,
            "water_baseline_l_per_tonne": factors.water_baseline_l_per_tonne,
        },
    }


def build_totals(breakdown: ImpactBreakdown, tables: FactorTables = DEFAULT_TABLES) -> Dict[str, float]:
    totals = {
        "gwp_kg_co2e": breakdown.gwp_total,
        "ced_mj": breakdown.ced_total,
        "mci_percent": breakdown.mci_percent,
        "water_consumption_m3": breakdown.water_m3,
    }
    totals.update(tables.placeholder_indicators)
    return totals


def build_lca_json(
    record: Optional[Mapping[str, Any]] = None,
    tables: FactorTables = DEFAULT_TABLES,
    id_generator: Optional[Callable[[], Any]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Build the full cradle-to-gate LCA report for one input record.

    `record` may use canonical or human-readable keys and may omit anything;
    missing or unrecognised values fall back to defaults, so this never raises
    on bad input. `id_generator` supplies the report-id suffix and `today`
    the generation date; both default to random/current values and are the
    only non-deterministic parts of the result.
    """
    params = normalize_inputs(record)
    breakdown = calculate_impacts(params, tables)

    today = today or date.today()
    suffix = (id_generator or random_report_suffix)()
    date_str = today.isoformat()

    logger.debug(
        "LCA for %s/%s/%s: GWP=%s CED=%s",
        params.metal, params.production_route, params.energy_source,
        breakdown.gwp_total, breakdown.ced_total,
    )

    return {
        "project_details": {
            "product_name": f"{params.metal.capitalize()} {params.product_type}",
            "company_name": params.company_name,
            "report_id": f"LCA-{date_str.replace('-', '')}-{suffix}",
            "generation_date": date_str,
        },
        "scope_and_boundaries": {
            "functional_unit": f"1 tonne of {params.metal} at the factory gate",
            "system_boundaries": "Cradle-to-Gate",
            "geographical_scope": params.geographical_scope,
            "time_horizon": str(today.year),
            "intended_audience": params.intended_audience,
        },
        "life_cycle_inventory": build_inventory(breakdown),
        "impact_assessment_results": {
            "by_stage": attribute_stages(breakdown),
            "totals": build_totals(breakdown, tables),
        },
    }
