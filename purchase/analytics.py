from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd

from ledger.ledger_data import catalog_frame, receipt_lines
from utils.time_utils import TimeUtils

CATEGORY_COLUMNS = ["category", "total_value"]


# ── Internal helpers ─────────────────────────────────────────────────
def _receipt_lines(receipts: Iterable[Mapping] | None) -> pd.DataFrame:
    return receipt_lines({"receipts": list(receipts or [])})


def _categories(purchase_items: Iterable[Mapping] | None) -> pd.Series:
    catalog = catalog_frame(purchase_items, {"id": "id", "category": "category"})
    catalog = catalog.dropna(subset=["id"]).drop_duplicates("id")
    return catalog.set_index("id")["category"]


# ── Category roll-ups ─────────────────────────────────────────────────
def get_category_breakdown(receipts, purchase_items) -> pd.DataFrame:
    """
    Sum receipt line totals by the purchasable item's category.

    Lines whose item is missing from ``purchase_items`` are skipped. Rows come
    out in the order each category is first seen; sort the result if a ranked
    or alphabetical view is needed.

    Returns
    -------
    pd.DataFrame
        category | total_value
    """
    lines = _receipt_lines(receipts)
    lines = lines.assign(category=lines["purchase_item_id"].map(_categories(purchase_items)))
    lines = lines[lines["purchase_item_id"].notna() & lines["category"].notna()]
    if lines.empty:
        return pd.DataFrame(columns=CATEGORY_COLUMNS).astype({"total_value": float})

    return (
        lines.groupby("category", sort=False)["total_price"].sum()
             .rename("total_value")
             .reset_index()
    )


def filter_receipts_by_period(receipts, time_period=None, start_date=None, end_date=None, now=None) -> list:
    """Receipts dated inside a named window ('week', 'month', …, or N days) or explicit dates.

    Bounds are inclusive; undated receipts are dropped whenever a bound applies.
    """
    records = [r for r in (receipts or []) if isinstance(r, Mapping)]
    if time_period is not None:
        start_date, end_date = TimeUtils.get_period_dates(time_period, now)
    if start_date is None and end_date is None:
        return records

    dates = TimeUtils.parse_dates([r.get("receiptDate") for r in records])
    keep = dates.notna()
    if start_date is not None:
        keep &= dates >= TimeUtils.resolve_now(start_date)
    if end_date is not None:
        keep &= dates <= TimeUtils.resolve_now(end_date)
    return [r for r, k in zip(records, keep) if k]


def get_category_share(receipts, purchase_items, time_period=None, now=None) -> pd.DataFrame:
    """Category breakdown over a reporting window with each category's share of spend.

    Returns
    -------
    pd.DataFrame
        category | total_value | percentage
    """
    window = filter_receipts_by_period(receipts, time_period=time_period, now=now)
    breakdown = get_category_breakdown(window, purchase_items)
    total = breakdown["total_value"].sum()
    breakdown["percentage"] = breakdown["total_value"] / total * 100 if total > 0 else 0.0
    return breakdown
