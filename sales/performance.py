# File: sales/performance.py

from __future__ import annotations

import pandas as pd

from ledger.ledger_data import catalog_frame, sale_lines

PERFORMANCE_COLUMNS = ["sellable_item_id", "name", "units_sold", "revenue"]


def get_sales_performance(sales, recipes, sellable_items) -> pd.DataFrame:
    """
    Units sold and revenue per sellable item, highest revenue first.

    Sale lines for sellable items missing from the catalog are skipped.
    Equal revenues keep the order in which the items were first sold.
    ``recipes`` is accepted for call-site symmetry with the other analyses
    and does not affect the result.

    Returns:
        pd.DataFrame: sellable_item_id | name | units_sold | revenue
    """
    lines = sale_lines({"sales": list(sales or [])})
    catalog = catalog_frame(sellable_items, {"id": "sellable_item_id", "name": "name"})
    catalog = catalog.dropna(subset=["sellable_item_id"]).drop_duplicates("sellable_item_id")

    merged = lines.merge(catalog, on="sellable_item_id", how="inner", sort=False)
    if merged.empty:
        return pd.DataFrame(columns=PERFORMANCE_COLUMNS).astype({"units_sold": float, "revenue": float})

    performance = (
        merged.groupby("sellable_item_id", sort=False)
              .agg(name=("name", "first"), units_sold=("quantity", "sum"), revenue=("total_price", "sum"))
              .reset_index()
    )
    return (
        performance.sort_values("revenue", ascending=False, kind="stable")
                   [PERFORMANCE_COLUMNS]
                   .reset_index(drop=True)
    )
