"""
Static lookup tables for the LCA engine.

Every policy assumption the calculator depends on lives here: emission
factors, transport multipliers, metal baselines and the route/energy
modifiers. The values are illustrative placeholders, not a calibrated
inventory database. Swap a table with `dataclasses.replace(DEFAULT_TABLES, ...)`
and hand it to the engine; nothing in the calculation reads module globals.
"""
import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

logger = logging.getLogger(__name__)


def _frozen(values: dict) -> Mapping:
    return MappingProxyType(dict(values))


# Share of process emissions / processing energy given to each stage.
# This is a fixed heuristic, not a measured allocation.
STAGE_SPLIT = _frozen({
    "raw_materials": 0.25,
    "manufacturing": 0.50,
    "transportation": 0.25,
})


@dataclass(frozen=True)
class FactorTables:
    """Immutable bundle of every lookup table used by one calculation."""

    # kg CO2e per unit of activity
    emission_factors: Mapping[str, float]
    # GWP multiplier applied to the tonne-km transport factor
    transport_ef_multipliers: Mapping[str, float]
    transport_ef_fallback: float
    # tonne-km moved per MJ; transport energy = tkm / divisor
    transport_energy_divisors: Mapping[str, float]
    transport_energy_fallback: float
    # litres of water per tonne of product before route scaling
    water_baselines: Mapping[str, float]
    # metal used for anything not listed in water_baselines
    default_metal: str
    recyclable_defaults: Mapping[str, float]
    recyclable_fallback: float
    production_modifiers: Mapping[str, float]
    energy_modifiers: Mapping[str, float]
    renewable_electricity_share: Mapping[str, float]
    # indicators without a characterisation model yet
    placeholder_indicators: Mapping[str, float]
    electricity_kwh_per_tonne: float = 400.0
    natural_gas_mj_per_tonne: float = 600.0
    renewable_gas_factor: float = 0.4
    production_modifier_fallback: float = 1.0
    energy_modifier_fallback: float = 1.0


DEFAULT_TABLES = FactorTables(
    emission_factors=_frozen({
        "electricity_kwh": 0.5,     # kg CO2e per kWh (region dependent)
        "natural_gas_mj": 0.056,    # kg CO2e per MJ
        "transport_tkm": 0.1,       # kg CO2e per tonne-km (mode dependent)
        "process_per_tonne": 50.0,  # generic process emissions per tonne
    }),
    transport_ef_multipliers=_frozen({
        "road": 1.0,
        "rail": 0.4,
        "ship": 0.15,
        "air": 5.0,
        "multimodal": 0.7,
    }),
    transport_ef_fallback=1.0,
    transport_energy_divisors=_frozen({
        "road": 0.5,
        "rail": 1.5,
        "ship": 4.0,
        "air": 0.05,
        "multimodal": 0.8,
    }),
    transport_energy_fallback=0.5,
    water_baselines=_frozen({
        "aluminium": 1200.0,
        "copper": 800.0,
        "steel": 600.0,
        "nickel": 1500.0,
        "lithium": 2000.0,
        "zinc": 500.0,
        "titanium": 1800.0,
    }),
    default_metal="steel",
    recyclable_defaults=_frozen({
        "aluminium": 95.0,
        "copper": 90.0,
        "steel": 85.0,
    }),
    recyclable_fallback=80.0,
    production_modifiers=_frozen({
        "primary": 1.0,
        "recycled": 0.4,
        "mixed": 0.7,
    }),
    energy_modifiers=_frozen({
        "grid": 1.0,
        "renewable": 0.3,
        "fossil": 1.3,
        "mixed": 0.8,
    }),
    renewable_electricity_share=_frozen({
        "renewable": 100.0,
        "mixed": 50.0,
    }),
    placeholder_indicators=_frozen({
        "adp_kg_sbeq": 0.00015,
        "odp_kg_cfc11eq": 0.00000012,
        "ap_kg_so2eq": 0.04,
        "ep_kg_po4eq": 0.009,
        "human_toxicity_kg_dcb": 0.08,
        "eco_toxicity_kg_dcb": 0.15,
    }),
)


@dataclass(frozen=True)
class ResolvedFactors:
    """Scalars picked from the tables for one set of process parameters."""

    profile_metal: str
    production_modifier: float
    energy_modifier: float
    transport_multiplier: float
    transport_divisor: float
    water_baseline_l_per_tonne: float
    recyclable_default_percent: float
    renewable_share_percent: float
    gas_factor: float


def production_modifier(route: str, tables: FactorTables = DEFAULT_TABLES) -> float:
    return tables.production_modifiers.get(route, tables.production_modifier_fallback)


def energy_modifier(source: str, tables: FactorTables = DEFAULT_TABLES) -> float:
    return tables.energy_modifiers.get(source, tables.energy_modifier_fallback)


def transport_multiplier(mode: str, tables: FactorTables = DEFAULT_TABLES) -> float:
    return tables.transport_ef_multipliers.get(mode, tables.transport_ef_fallback)


def _usable_divisor(value) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def transport_divisor(mode: str, tables: FactorTables = DEFAULT_TABLES) -> float:
    """
    Energy-intensity divisor for a transport mode.

    A missing, zero or negative entry falls back to the table default so the
    caller can always divide. Returns 0.0 only if the fallback is unusable too,
    which callers treat as "no transport energy".
    """
    divisor = tables.transport_energy_divisors.get(mode)
    if _usable_divisor(divisor):
        return float(divisor)
    if _usable_divisor(tables.transport_energy_fallback):
        logger.debug("No usable energy divisor for mode %r; using fallback.", mode)
        return float(tables.transport_energy_fallback)
    return 0.0


def profile_metal(metal: str, tables: FactorTables = DEFAULT_TABLES) -> str:
    """Metal whose baselines apply; unrecognised metals use the default metal."""
    if metal in tables.water_baselines:
        return metal
    logger.debug("Unrecognised metal %r; using %s baselines.", metal, tables.default_metal)
    return tables.default_metal


def resolve_factors(params, tables: FactorTables = DEFAULT_TABLES) -> ResolvedFactors:
    """Pick every table value needed to evaluate `params`."""
    metal = profile_metal(params.metal, tables)
    return ResolvedFactors(
        profile_metal=metal,
        production_modifier=production_modifier(params.production_route, tables),
        energy_modifier=energy_modifier(params.energy_source, tables),
        transport_multiplier=transport_multiplier(params.transport_mode, tables),
        transport_divisor=transport_divisor(params.transport_mode, tables),
        water_baseline_l_per_tonne=tables.water_baselines.get(metal, 0.0),
        recyclable_default_percent=tables.recyclable_defaults.get(metal, tables.recyclable_fallback),
        renewable_share_percent=tables.renewable_electricity_share.get(params.energy_source, 0.0),
        gas_factor=tables.renewable_gas_factor if params.energy_source == "renewable" else 1.0,
    )
