# File: inventory/stock.py
"""
Stock valuation derived from the append-only purchase and sales ledgers.

Stock is never stored. For every purchasable item:

    stock = Σ receipt line quantities
          − Σ over sale lines of (recipe ingredient qty × sale line qty)

All functions are pure: they read the snapshot passed in and return freshly
allocated results.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd

from ledger.ledger_data import catalog_frame, collection, receipt_lines, sale_lines
from recipe.recipe_index import build_recipe_index
from utils.time_utils import TimeUtils

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
PRICE_HISTORY_COLUMNS = ["date", "price"]

PURCHASE_ITEM_FIELDS = {
    "id": "id",
    "name": "name",
    "category": "category",
    "unit": "unit",
    "minStockThreshold": "min_stock_threshold",
}


def _purchased(lines: pd.DataFrame) -> pd.Series:
    return lines.groupby("purchase_item_id")["quantity"].sum()


def calculate_stock(purchase_item_id, ledger: Mapping | None) -> float:
    """All-time stock of one purchasable item.

    Callers wanting Stock(item, t) pre-filter with ``filter_ledger_as_of``.
    The result may be negative when more was sold than purchased.
    """
    if not ledger:
        return 0.0

    receipts = receipt_lines(ledger)
    purchased = receipts.loc[receipts["purchase_item_id"] == purchase_item_id, "quantity"].sum()

    index = build_recipe_index(ledger)
    consumers = index.consumers_of(purchase_item_id)
    consumed = 0.0
    if consumers:
        sales = sale_lines(ledger)
        usage = index.explode_sales(sales[sales["sellable_item_id"].isin(consumers)])
        consumed = usage.loc[usage["purchase_item_id"] == purchase_item_id, "consumed"].sum()

    return float(purchased - consumed)


def calculate_stock_levels(ledger: Mapping | None, purchase_item_ids: Iterable | None = None) -> pd.Series:
    """Stock for many items at once, indexed by purchasable-item id.

    Args:
        ledger: Ledger snapshot
        purchase_item_ids: Items to report. Defaults to the purchaseItems catalog.

    Returns:
        pd.Series: float stock per item id (0 for items never purchased or sold)
    """
    if purchase_item_ids is None:
        purchase_item_ids = [p.get("id") for p in collection(ledger, "purchaseItems") if isinstance(p, Mapping)]
    ids = pd.Index(list(purchase_item_ids), dtype="object")

    if not ledger:
        return pd.Series(0.0, index=ids, name="stock")

    purchased = _purchased(receipt_lines(ledger))
    consumed = (
        build_recipe_index(ledger)
        .explode_sales(sale_lines(ledger))
        .set_index("purchase_item_id")["consumed"]
    )
    levels = purchased.sub(consumed, fill_value=0.0)
    return levels.reindex(ids, fill_value=0.0).astype(float).rename("stock")


def filter_ledger_as_of(ledger: Mapping | None, as_of) -> dict:
    """Copy of the snapshot keeping only receipts and sales dated on or before ``as_of``.

    Records with an unparseable date are dropped. Catalog collections are
    passed through untouched.
    """
    snapshot = dict(ledger or {})
    cutoff = TimeUtils.resolve_now(as_of)
    for name, field in (("receipts", "receiptDate"), ("sales", "saleDate")):
        records = [r for r in collection(ledger, name) if isinstance(r, Mapping)]
        dates = TimeUtils.parse_dates([r.get(field) for r in records])
        snapshot[name] = [r for r, d in zip(records, dates) if pd.notna(d) and d <= cutoff]
    return snapshot


def _price_points(ledger: Mapping | None, date_format: str) -> pd.DataFrame:
    """Deduped (purchase_item_id, date, price) points for every item.

    Zero-price lines and undated receipts are not observations. When several
    lines share a date string, the one appended last to the ledger wins.
    """
    lines = receipt_lines(ledger)
    lines = lines[(lines["unit_price"] > 0) & lines["receipt_date"].notna()]
    if lines.empty:
        return pd.DataFrame(columns=["purchase_item_id", "day", *PRICE_HISTORY_COLUMNS])

    lines = lines.assign(
        day=lines["receipt_date"].dt.normalize(),
        date=lines["receipt_date"].dt.strftime(date_format),
        price=lines["unit_price"],
    )
    return (
        lines.sort_values(["receipt_order", "line_order"], kind="stable")
             .drop_duplicates(["purchase_item_id", "date"], keep="last")
             .sort_values(["purchase_item_id", "day", "receipt_order", "line_order"], kind="stable")
             [["purchase_item_id", "day", *PRICE_HISTORY_COLUMNS]]
             .reset_index(drop=True)
    )


def calculate_price_history(purchase_item_id, ledger: Mapping | None, date_format: str | None = None) -> pd.DataFrame:
    """Unit-price observations for one item, ascending by date, one per date string.

    Returns:
        pd.DataFrame: 'date' (formatted string) and 'price' columns
    """
    points = _price_points(ledger, date_format or DEFAULT_DATE_FORMAT)
    points = points[points["purchase_item_id"] == purchase_item_id]
    return points[PRICE_HISTORY_COLUMNS].reset_index(drop=True)


def get_inventory_overview(ledger: Mapping | None, date_format: str | None = None) -> pd.DataFrame:
    """Per-item stock and price summary for the inventory screen, sorted by name.

    price_change_pct compares the last two price points; stock_value is
    stock × current price.
    """
    items = catalog_frame(collection(ledger, "purchaseItems"), PURCHASE_ITEM_FIELDS)
    items["min_stock_threshold"] = pd.to_numeric(items["min_stock_threshold"], errors="coerce").fillna(0.0)
    items["stock"] = calculate_stock_levels(ledger, items["id"]).to_numpy()

    points = _price_points(ledger, date_format or DEFAULT_DATE_FORMAT)
    grouped = points.groupby("purchase_item_id")["price"]
    current = grouped.last()
    previous = grouped.agg(lambda s: s.iloc[-2] if len(s) > 1 else s.iloc[-1])

    items["current_price"] = items["id"].map(current).fillna(0.0).astype(float)
    items["previous_price"] = items["id"].map(previous).fillna(items["current_price"]).astype(float)
    change = (items["current_price"] - items["previous_price"]) / items["previous_price"] * 100
    items["price_change_pct"] = change.where(items["previous_price"] > 0, 0.0).fillna(0.0)
    items["stock_value"] = items["stock"] * items["current_price"]

    return items.sort_values("name", kind="stable").reset_index(drop=True)
