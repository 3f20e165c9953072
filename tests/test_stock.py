import copy
import os
import sys

import pandas as pd
import pytest

# Add the project root (parent directory of tests/) to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from inventory.stock import (  # noqa: E402
    calculate_price_history,
    calculate_stock,
    calculate_stock_levels,
    filter_ledger_as_of,
    get_inventory_overview,
)
from ledger_builders import make_receipt, make_sale  # noqa: E402


def _expected_stock(purchase_item_id, ledger):
    """Straight loop over the ledgers: purchases minus recipe consumption."""
    purchased = sum(
        line["quantity"]
        for receipt in ledger.get("receipts", [])
        for line in receipt["items"]
        if line["purchaseItemId"] == purchase_item_id
    )
    recipe_for = {}
    for recipe in ledger.get("recipes", []):
        recipe_for.setdefault(recipe["sellableItemId"], recipe)
    consumed = 0.0
    for sale in ledger.get("sales", []):
        for line in sale["items"]:
            recipe = recipe_for.get(line["sellableItemId"])
            if recipe is None:
                continue
            for ingredient in recipe["ingredients"]:
                if ingredient["purchaseItemId"] == purchase_item_id:
                    consumed += ingredient["quantity"] * line["quantity"]
    return purchased - consumed


def test_bread_sales_drive_flour_stock(flour_ledger):
    """20 kg flour, 0.5 kg per loaf: 10 loaves → 15, 32 loaves → 4, 42 loaves → -1."""
    assert calculate_stock("flour", flour_ledger) == 20.0

    flour_ledger["sales"].append(make_sale("s1", "2025-01-03T10:00:00Z", [("bread", 10, 3000)]))
    assert calculate_stock("flour", flour_ledger) == 15.0

    flour_ledger["sales"].append(make_sale("s2", "2025-01-04T10:00:00Z", [("bread", 22, 3000)]))
    assert calculate_stock("flour", flour_ledger) == 4.0

    flour_ledger["sales"].append(make_sale("s3", "2025-01-05T10:00:00Z", [("bread", 10, 3000)]))
    assert calculate_stock("flour", flour_ledger) == -1.0, "overselling must go negative, not clamp at zero"


def test_stock_matches_purchases_minus_consumption(mixed_ledger):
    """Every item, including ones only referenced by dangling lines, follows the ledger identity."""
    ids = ["milk", "beans", "cups", "ghost-item", "deleted-item", "never-seen"]
    levels = calculate_stock_levels(mixed_ledger, ids)

    for pid in ids:
        expected = _expected_stock(pid, mixed_ledger)
        assert calculate_stock(pid, mixed_ledger) == pytest.approx(expected), pid
        assert levels[pid] == pytest.approx(expected), pid

    assert levels["milk"] == pytest.approx(15 - 10 * 0.25), "duplicate milk lines in one recipe are summed"
    assert levels["cups"] == pytest.approx(80.0)
    assert levels["ghost-item"] == pytest.approx(-30.0)
    assert levels["deleted-item"] == pytest.approx(7.0)
    assert levels["never-seen"] == 0.0


def test_stock_levels_default_to_catalog(mixed_ledger):
    levels = calculate_stock_levels(mixed_ledger)
    assert list(levels.index) == ["milk", "beans", "cups"]
    assert levels.name == "stock"


def test_only_first_recipe_per_sellable_counts(flour_ledger):
    flour_ledger["recipes"].append({
        "id": "r-bread-2", "sellableItemId": "bread",
        "ingredients": [{"purchaseItemId": "flour", "quantity": 5}],
    })
    flour_ledger["sales"].append(make_sale("s1", "2025-01-03", [("bread", 4, 3000)]))

    assert calculate_stock("flour", flour_ledger) == 18.0


def test_missing_and_empty_ledgers_give_zero():
    assert calculate_stock("flour", None) == 0.0
    assert calculate_stock("flour", {}) == 0.0
    assert calculate_stock_levels(None, ["flour"]).tolist() == [0.0]
    assert calculate_stock_levels({"purchaseItems": []}).empty


def test_absent_collections_count_as_empty(flour_ledger):
    """A ledger with receipts but no sales or recipes still reports what was purchased."""
    receipts_only = {"receipts": flour_ledger["receipts"]}
    assert calculate_stock("flour", receipts_only) == 20.0

    sales_without_recipes = {"receipts": flour_ledger["receipts"],
                             "sales": [make_sale("s1", "2025-01-03", [("bread", 10, 3000)])]}
    assert calculate_stock("flour", sales_without_recipes) == 20.0


def test_negative_ingredient_quantities_still_balance(flour_ledger):
    """A negative recipe line adds back to stock; zero and unparseable lines consume nothing."""
    flour_ledger["recipes"][0]["ingredients"] = [{"purchaseItemId": "flour", "quantity": -0.5}]
    flour_ledger["sales"].append(make_sale("s1", "2025-01-03", [("bread", 10, 3000)]))

    assert calculate_stock("flour", flour_ledger) == _expected_stock("flour", flour_ledger) == 25.0
    assert calculate_stock_levels(flour_ledger)["flour"] == 25.0

    flour_ledger["recipes"][0]["ingredients"].append({"purchaseItemId": "flour", "quantity": 0})
    flour_ledger["recipes"][0]["ingredients"].append({"purchaseItemId": "flour", "quantity": "lots"})
    assert calculate_stock("flour", flour_ledger) == 25.0


def test_stock_reads_do_not_mutate_ledger(mixed_ledger):
    before = copy.deepcopy(mixed_ledger)

    first = calculate_stock_levels(mixed_ledger)
    second = calculate_stock_levels(mixed_ledger)
    calculate_price_history("milk", mixed_ledger)
    get_inventory_overview(mixed_ledger)

    pd.testing.assert_series_equal(first, second)
    assert mixed_ledger == before


def test_filter_ledger_as_of_gives_point_in_time_stock(flour_ledger):
    flour_ledger["sales"].append(make_sale("s1", "2025-01-03T10:00:00Z", [("bread", 10, 3000)]))
    flour_ledger["sales"].append(make_sale("s2", "2025-01-10T10:00:00Z", [("bread", 10, 3000)]))
    flour_ledger["sales"].append(make_sale("s3", "not-a-date", [("bread", 10, 3000)]))

    snapshot = filter_ledger_as_of(flour_ledger, "2025-01-05")

    assert [s["id"] for s in snapshot["sales"]] == ["s1"]
    assert calculate_stock("flour", snapshot) == 15.0
    assert len(flour_ledger["sales"]) == 3, "the source snapshot is left untouched"


# ── Price history ────────────────────────────────────────────────────
def test_price_history_dedupes_by_date_and_skips_zero_prices():
    ledger = {"receipts": [
        make_receipt("r0", "2025-01-05T10:00:00Z", [("flour", 1, 1000)]),
        make_receipt("r1", "2025-01-03", [("flour", 1, 900), ("sugar", 1, 50)]),
        make_receipt("r2", "2025-01-05T18:00:00Z", [("flour", 1, 1100)]),
        make_receipt("r3", "2025-01-04", [("flour", 1, 0)]),
        make_receipt("r4", "garbage", [("flour", 1, 1200)]),
    ]}

    history = calculate_price_history("flour", ledger)

    assert list(history.columns) == ["date", "price"]
    assert history["date"].tolist() == ["2025-01-03", "2025-01-05"]
    assert history["price"].tolist() == [900.0, 1100.0], "last-appended line wins for a shared date"


def test_price_history_respects_date_format():
    ledger = {"receipts": [make_receipt("r0", "2025-03-07", [("flour", 1, 1000)])]}
    history = calculate_price_history("flour", ledger, date_format="%d/%m/%Y")
    assert history["date"].tolist() == ["07/03/2025"]


def test_price_history_of_unknown_item_is_empty(flour_ledger):
    assert calculate_price_history("nothing", flour_ledger).empty
    assert calculate_price_history("flour", None).empty


# ── Overview ─────────────────────────────────────────────────────────
def test_inventory_overview(flour_ledger):
    flour_ledger["purchaseItems"].append(
        {"id": "yeast", "name": "Active Yeast", "category": "Bakery", "unit": "package", "minStockThreshold": 2})
    flour_ledger["receipts"].append(make_receipt("rc2", "2025-01-20", [("flour", 10, 1250)]))
    flour_ledger["sales"].append(make_sale("s1", "2025-01-21", [("bread", 10, 3000)]))

    overview = get_inventory_overview(flour_ledger)

    assert overview["name"].tolist() == ["Active Yeast", "Flour"]
    flour = overview.set_index("id").loc["flour"]
    assert flour["stock"] == 25.0
    assert flour["current_price"] == 1250.0
    assert flour["previous_price"] == 1000.0
    assert flour["price_change_pct"] == pytest.approx(25.0)
    assert flour["stock_value"] == pytest.approx(25.0 * 1250.0)

    yeast = overview.set_index("id").loc["yeast"]
    assert yeast["stock"] == 0.0
    assert yeast["current_price"] == 0.0
    assert yeast["price_change_pct"] == 0.0
