# File: inventory/health.py

from __future__ import annotations

from typing import Dict, Mapping

import numpy as np
import pandas as pd

from ledger.ledger_data import catalog_frame, collection
from inventory.stock import calculate_stock_levels

CRITICAL = "critical"
WARNING = "warning"
HEALTHY = "healthy"
HEALTH_LEVELS = (HEALTHY, WARNING, CRITICAL)


def classify_stock(stock, threshold):
    """Three-tier rule: stock ≤ 0 is critical, stock ≤ threshold is warning, else healthy.

    Works element-wise on arrays/Series as well as on scalars.
    """
    stock = np.asarray(stock, dtype=float)
    threshold = np.asarray(threshold, dtype=float)
    labels = np.select([stock <= 0, stock <= threshold], [CRITICAL, WARNING], default=HEALTHY)
    return str(labels) if labels.ndim == 0 else labels


def _stock_table(ledger: Mapping | None) -> pd.DataFrame:
    items = catalog_frame(
        collection(ledger, "purchaseItems"),
        {"id": "id", "name": "name", "minStockThreshold": "min_stock_threshold"},
    )
    items["min_stock_threshold"] = pd.to_numeric(items["min_stock_threshold"], errors="coerce").fillna(0.0)
    items["stock"] = calculate_stock_levels(ledger, items["id"]).to_numpy()
    items["status"] = classify_stock(items["stock"], items["min_stock_threshold"]) if not items.empty else []
    return items


def get_inventory_health(ledger: Mapping | None) -> Dict[str, int]:
    """Count catalog items per health level. An empty catalog yields all zeros."""
    counts = _stock_table(ledger)["status"].value_counts()
    return {level: int(counts.get(level, 0)) for level in HEALTH_LEVELS}


def get_low_stock_items(ledger: Mapping | None, limit: int | None = 5) -> pd.DataFrame:
    """Items at or below their threshold, lowest stock first."""
    table = _stock_table(ledger)
    low = table[table["stock"] <= table["min_stock_threshold"]].sort_values("stock", kind="stable")
    if limit is not None:
        low = low.head(limit)
    return low.reset_index(drop=True)
