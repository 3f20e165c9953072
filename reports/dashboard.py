"""Dashboard assembly.

Runs every derivation over one ledger snapshot, so all tables describe the
same point in time. Returns a dictionary of DataFrames ready for display or
export.
"""

from __future__ import annotations

from typing import Dict, Mapping

import pandas as pd

from analysis.trends import (
    calculate_metrics,
    get_month_summary,
    get_monthly_trends,
    get_recurring_expense_total,
    get_weekly_data,
)
from inventory.health import get_inventory_health, get_low_stock_items
from inventory.stock import get_inventory_overview
from ledger.ledger_data import collection
from purchase.analytics import get_category_breakdown
from sales.performance import get_sales_performance
from utils.config_utils import DEFAULT_CFG
from utils.time_utils import TimeUtils


def build_dashboard(ledger: Mapping | None, cfg: Dict | None = None, now=None) -> Dict[str, pd.DataFrame]:
    """Compute every dashboard table from ``ledger``.

    Args:
        ledger: Full application-database snapshot
        cfg: Optional configuration dictionary to override defaults
        now: Reference moment for the time series; defaults to the clock

    Returns:
        Dictionary of DataFrames keyed by table name
    """
    cfg = {**DEFAULT_CFG, **(cfg or {})}
    now = TimeUtils.resolve_now(now)
    sales = collection(ledger, "sales")
    receipts = collection(ledger, "receipts")

    metrics = {**calculate_metrics(ledger), **get_month_summary(ledger, now)}

    return {
        "metrics": pd.DataFrame([metrics]),
        "weekly": get_weekly_data(sales, receipts, now=now, week_count=cfg["week_count"],
                                  scale=cfg["display_scale"]),
        "monthly": get_monthly_trends(sales, receipts, month_count=cfg["month_count"], now=now,
                                      scale=cfg["display_scale"]),
        "categories": get_category_breakdown(receipts, collection(ledger, "purchaseItems")),
        "sales_performance": get_sales_performance(sales, collection(ledger, "recipes"),
                                                   collection(ledger, "sellableItems")),
        "inventory": get_inventory_overview(ledger, cfg["price_date_format"]),
        "health": pd.DataFrame([get_inventory_health(ledger)]),
        "low_stock": get_low_stock_items(ledger, cfg["low_stock_limit"]),
        "recurring_expenses": pd.DataFrame([{
            "monthly_projection": get_recurring_expense_total(ledger),
        }]),
    }
