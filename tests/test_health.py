import copy
import os
import sys

import numpy as np

# Add the project root (parent directory of tests/) to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from inventory.health import classify_stock, get_inventory_health, get_low_stock_items  # noqa: E402
from ledger_builders import make_receipt, make_sale  # noqa: E402


def test_classify_stock_boundaries():
    assert classify_stock(5, 5) == "warning", "stock equal to the threshold is a warning"
    assert classify_stock(0, 0) == "critical", "zero stock is critical even with a zero threshold"
    assert classify_stock(6, 5) == "healthy"
    assert classify_stock(-3, 10) == "critical"
    assert classify_stock(0.5, 0) == "healthy"


def test_classify_stock_vectorised():
    labels = classify_stock(np.array([10, 2, 0]), np.array([5, 5, 5]))
    assert labels.tolist() == ["healthy", "warning", "critical"]


def test_flour_health_follows_bread_sales(flour_ledger):
    """15 kg left → healthy, 4 kg → warning, -1 kg → critical (threshold 5)."""
    flour_ledger["sales"].append(make_sale("s1", "2025-01-03", [("bread", 10, 3000)]))
    assert get_inventory_health(flour_ledger) == {"healthy": 1, "warning": 0, "critical": 0}

    flour_ledger["sales"].append(make_sale("s2", "2025-01-04", [("bread", 22, 3000)]))
    assert get_inventory_health(flour_ledger) == {"healthy": 0, "warning": 1, "critical": 0}

    flour_ledger["sales"].append(make_sale("s3", "2025-01-05", [("bread", 10, 3000)]))
    assert get_inventory_health(flour_ledger) == {"healthy": 0, "warning": 0, "critical": 1}


def test_health_counts_every_catalog_item():
    ledger = {
        "purchaseItems": [
            {"id": "a", "name": "At Threshold", "minStockThreshold": 5},
            {"id": "b", "name": "Empty No Threshold", "minStockThreshold": 0},
            {"id": "c", "name": "Plenty", "minStockThreshold": 5},
            {"id": "d", "name": "Oversold", "minStockThreshold": 0},
            {"id": "e", "name": "Nearly Out", "minStockThreshold": 2},
        ],
        "recipes": [{"id": "r1", "sellableItemId": "x", "ingredients": [{"purchaseItemId": "d", "quantity": 2}]}],
        "receipts": [make_receipt("rc1", "2025-01-01", [("a", 5, 1), ("c", 6, 1), ("e", 0.5, 1)])],
        "sales": [make_sale("s1", "2025-01-02", [("x", 1, 10)])],
    }

    counts = get_inventory_health(ledger)

    assert counts == {"healthy": 1, "warning": 2, "critical": 2}
    assert sum(counts.values()) == len(ledger["purchaseItems"])


def test_health_of_empty_catalog():
    assert get_inventory_health(None) == {"healthy": 0, "warning": 0, "critical": 0}
    assert get_inventory_health({"purchaseItems": []}) == {"healthy": 0, "warning": 0, "critical": 0}


def test_low_stock_items_sorted_and_limited():
    ledger = {
        "purchaseItems": [
            {"id": "a", "name": "A", "minStockThreshold": 10},
            {"id": "b", "name": "B", "minStockThreshold": 10},
            {"id": "c", "name": "C", "minStockThreshold": 1},
            {"id": "d", "name": "D", "minStockThreshold": 10},
        ],
        "receipts": [make_receipt("rc1", "2025-01-01", [("a", 7, 1), ("b", 2, 1), ("c", 50, 1)])],
    }

    low = get_low_stock_items(ledger, limit=2)

    assert low["id"].tolist() == ["d", "b"]
    assert low["status"].tolist() == ["critical", "warning"]
    assert get_low_stock_items(ledger, limit=None)["id"].tolist() == ["d", "b", "a"]


def test_health_is_repeatable_and_leaves_ledger_untouched(mixed_ledger):
    before = copy.deepcopy(mixed_ledger)

    first = get_inventory_health(mixed_ledger)
    second = get_inventory_health(mixed_ledger)

    assert first == second
    assert sum(first.values()) == len(mixed_ledger["purchaseItems"])
    assert mixed_ledger == before, "health is derived, the ledger is never written"
