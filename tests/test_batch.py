import random

from lca_backend.app.batch import run_batch
from lca_backend.app.lca_engine import build_lca_json

RECORDS = [
    {"metal": "aluminium", "productionRoute": "recycled", "transportDistanceKm": 120, "transportMode": "rail"},
    {"Metal Type": "Copper", "Energy Source": "Fossil", "Transport Distance (km)": 900},
    {"metal": "lithium", "energySource": "renewable", "transportMode": "air", "transportDistanceKm": 50},
    {},
    {"metal": "zinc", "recycledContentPercent": 40, "transportMode": "ship", "transportDistanceKm": 4000},
]


def _impacts(results):
    return [r["impact_assessment_results"] for r in results]


def test_sequential_and_threaded_runs_match(fixed_run):
    sequential = run_batch(RECORDS, **fixed_run)
    threaded = run_batch(RECORDS, max_workers=4, **fixed_run)
    assert sequential == threaded


def test_results_follow_input_order(fixed_run):
    results = run_batch(RECORDS, max_workers=3, **fixed_run)
    expected = [build_lca_json(r, **fixed_run) for r in RECORDS]
    assert results == expected
    assert results[1]["project_details"]["product_name"] == "Copper Product"


def test_each_record_is_independent_of_its_neighbours(fixed_run):
    shuffled = RECORDS[:]
    random.Random(3).shuffle(shuffled)
    by_order = {str(r): i for i, r in enumerate(RECORDS)}
    results = run_batch(shuffled, max_workers=2, **fixed_run)
    original = run_batch(RECORDS, **fixed_run)
    for record, result in zip(shuffled, results):
        assert result == original[by_order[str(record)]]


def test_empty_batch():
    assert run_batch([]) == []
    assert run_batch(iter([]), max_workers=8) == []
