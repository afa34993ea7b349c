"""
Spreadsheet ingestion for batch assessments.

Rows keep their original column headers ("Metal Type", "Transport Mode", ...);
the input normaliser maps those headers onto canonical fields, so nothing here
knows about individual columns beyond the downloadable templates.
"""
import io
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import pandas as pd

from .errors import IngestError

logger = logging.getLogger(__name__)

BASIC_TEMPLATE_COLUMNS = [
    "Metal Type",
    "Product Type",
    "Production Route",
    "Energy Source",
    "Transport Distance (km)",
    "Transport Mode",
    "Recycled Content (%)",
]
ADVANCED_TEMPLATE_COLUMNS = BASIC_TEMPLATE_COLUMNS + [
    "Company Name",
    "Geographical Scope",
    "Intended Audience",
]

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

Source = Union[bytes, str, Path, io.IOBase]


def _as_buffer(source: Source):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def read_spreadsheet(source: Source, filename: str = "") -> List[Dict[str, Any]]:
    """
    Read the first sheet of a CSV/XLSX/XLS file into a list of row dicts.

    Blank cells are dropped from each row so the normaliser applies its
    defaults. An empty sheet yields an empty list.
    """
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    suffix = Path(name).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise IngestError(f"Unsupported file type '{suffix or name}'. Use CSV, XLSX or XLS.")

    try:
        if suffix == ".csv":
            df = pd.read_csv(_as_buffer(source))
        else:
            df = pd.read_excel(_as_buffer(source), sheet_name=0)
    except pd.errors.EmptyDataError:
        return []
    except (ValueError, OSError, ImportError, zipfile.BadZipFile, pd.errors.ParserError) as e:
        raise IngestError(f"Could not read '{name}': {e}") from e

    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    rows = []
    for record in df.to_dict(orient="records"):
        rows.append({k: v for k, v in record.items() if not pd.isna(v)})
    logger.info("Read %d rows from %s", len(rows), name)
    return rows


def build_template(kind: str) -> Tuple[str, bytes, str]:
    """Empty upload template: `basic` as CSV, `advanced` as XLSX."""
    if kind == "basic":
        data = pd.DataFrame(columns=BASIC_TEMPLATE_COLUMNS).to_csv(index=False).encode("utf-8")
        return "basic_lca_template.csv", data, "text/csv"
    if kind == "advanced":
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame(columns=ADVANCED_TEMPLATE_COLUMNS).to_excel(writer, sheet_name="LCA Data", index=False)
        return "advanced_lca_template.xlsx", buffer.getvalue(), XLSX_MEDIA_TYPE
    raise ValueError(f"Unknown template kind: {kind!r}")
