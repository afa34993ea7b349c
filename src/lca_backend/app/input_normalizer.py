"""
Turns loosely-keyed input records into canonical process parameters.

Records arrive from the API (camelCase keys), from spreadsheet rows
(human-readable column headers) or from Python callers (snake_case). Each
field has one priority-ordered list of accepted keys; the first key with a
usable value wins, otherwise the field default is used. Normalisation never
raises.
"""
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    keys: Tuple[str, ...]
    default: Any
    kind: str = "text"  # text | enum | number


FIELD_SPECS: Dict[str, FieldSpec] = {
    "metal": FieldSpec(("metal", "Metal Type"), "steel", "enum"),
    "product_type": FieldSpec(("productType", "product_type", "Product Type"), "Product"),
    "production_route": FieldSpec(
        ("productionRoute", "production_route", "Production Route"), "primary", "enum"
    ),
    "energy_source": FieldSpec(("energySource", "energy_source", "Energy Source"), "grid", "enum"),
    "transport_distance_km": FieldSpec(
        ("transportDistanceKm", "transportDistance", "transport_distance_km", "Transport Distance (km)"),
        0.0,
        "number",
    ),
    "transport_mode": FieldSpec(("transportMode", "transport_mode", "Transport Mode"), "road", "enum"),
    "recycled_content_percent": FieldSpec(
        ("recycledContentPercent", "recycledContent", "recycled_content_percent", "Recycled Content (%)"),
        0.0,
        "number",
    ),
    "company_name": FieldSpec(("companyName", "company_name", "Company Name"), "N/A"),
    "geographical_scope": FieldSpec(
        ("geographicalScope", "geographical_scope", "Geographical Scope"), "Not specified"
    ),
    "intended_audience": FieldSpec(
        ("intendedAudience", "intended_audience", "Intended Audience"), "Engineering & Sustainability"
    ),
}


@dataclass(frozen=True)
class ProcessParameters:
    """Canonical, fully-populated inputs for one assessment."""

    metal: str = "steel"
    product_type: str = "Product"
    production_route: str = "primary"
    energy_source: str = "grid"
    transport_distance_km: float = 0.0
    transport_mode: str = "road"
    recycled_content_percent: float = 0.0
    company_name: str = "N/A"
    geographical_scope: str = "Not specified"
    intended_audience: str = "Engineering & Sustainability"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-likes are not "missing"; they get coerced later
        return False


def first_present(record: Mapping[str, Any], keys, default: Any) -> Any:
    """Value of the first key in `keys` that holds something usable."""
    for key in keys:
        if key in record and not _is_missing(record[key]):
            return record[key]
    return default


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce `value` to a finite float, or return `default`."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return default
    try:
        number = float(number)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def _coerce(name: str, spec: FieldSpec, raw: Any) -> Any:
    if spec.kind == "number":
        if isinstance(raw, str):
            raw = raw.strip().rstrip("%").replace(",", "")
        number = to_number(raw, spec.default)
        if number < 0:
            logger.debug("Negative %s (%s) clamped to 0.", name, number)
            number = 0.0
        return number
    text = str(raw).strip()
    if not text:
        text = spec.default
    return text.lower() if spec.kind == "enum" else text


def normalize_inputs(record: Optional[Mapping[str, Any]]) -> ProcessParameters:
    """Resolve every field of `record` into a `ProcessParameters`."""
    if isinstance(record, ProcessParameters):
        return record
    if isinstance(record, pd.Series):
        record = record.to_dict()
    if not isinstance(record, Mapping):
        record = {}
    values = {}
    for name, spec in FIELD_SPECS.items():
        raw = first_present(record, spec.keys, spec.default)
        values[name] = _coerce(name, spec, raw)
    return ProcessParameters(**values)
