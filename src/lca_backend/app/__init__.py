from .lca_engine import build_lca_json, calculate_impacts
from .input_normalizer import ProcessParameters, normalize_inputs
from .factor_tables import DEFAULT_TABLES, FactorTables

__all__ = [
    "build_lca_json",
    "calculate_impacts",
    "normalize_inputs",
    "ProcessParameters",
    "DEFAULT_TABLES",
    "FactorTables",
]
