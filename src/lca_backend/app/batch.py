"""Apply the LCA engine to many records independently."""
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .lca_engine import build_lca_json

logger = logging.getLogger(__name__)


def run_batch(records: Iterable[Mapping[str, Any]], max_workers: Optional[int] = None, **engine_kwargs) -> List[Dict[str, Any]]:
    """
    Build one LCA report per record, in input order.

    Records share nothing, so with `max_workers > 1` they are evaluated on a
    thread pool; the results are the same as a sequential run.
    """
    records = list(records)
    compute = partial(build_lca_json, **engine_kwargs)
    if not max_workers or max_workers <= 1 or len(records) < 2:
        return [compute(record) for record in records]

    logger.info("Running %d LCA records on %d workers.", len(records), max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(compute, records))
