"""Revenue / expense / profit series over calendar buckets.

Every bucket is half-open [start, end) on the date axis and "now" is read once
per call. Sales and receipts whose date cannot be parsed are left out of the
series instead of failing the aggregation.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping

import pandas as pd

from ledger.ledger_data import collection, documents_frame
from utils.time_utils import TimeUtils

WEEKLY_COLUMNS = ["label", "start", "end", "revenue", "expense"]
MONTHLY_COLUMNS = ["label", "period", "start", "end", "revenue", "expense", "profit"]


def _dated(records: Iterable[Mapping] | None, date_field: str) -> pd.DataFrame:
    frame = documents_frame(records, date_field)
    return frame[frame["date"].notna()]


def _bucket_total(frame: pd.DataFrame, start, end) -> float:
    mask = (frame["date"] >= start) & (frame["date"] < end)
    return float(frame.loc[mask, "total_amount"].sum())


def get_weekly_data(sales, receipts, now=None, week_count: int = 4, scale: float = 1000) -> pd.DataFrame:
    """Revenue and expense for the last ``week_count`` 7-day windows ending at ``now``.

    Args:
        sales: Sale records (saleDate, totalAmount)
        receipts: Receipt records (receiptDate, totalAmount)
        now: Reference moment; defaults to the clock, read once
        week_count: Number of buckets
        scale: Display divisor applied to revenue and expense

    Returns:
        pd.DataFrame: label | start | end | revenue | expense, oldest first
    """
    sale_df = _dated(sales, "saleDate")
    receipt_df = _dated(receipts, "receiptDate")

    rows = []
    for n, (start, end) in enumerate(TimeUtils.week_buckets(now, week_count), start=1):
        rows.append({
            "label": f"Week {n}",
            "start": start,
            "end": end,
            "revenue": _bucket_total(sale_df, start, end) / scale,
            "expense": _bucket_total(receipt_df, start, end) / scale,
        })
    return pd.DataFrame(rows, columns=WEEKLY_COLUMNS)


def get_monthly_trends(sales, receipts, month_count: int = 6, now=None, scale: float = 1000) -> pd.DataFrame:
    """Revenue, expense and profit for the last ``month_count`` calendar months.

    Returns:
        pd.DataFrame: label | period | start | end | revenue | expense | profit, oldest first
    """
    sale_df = _dated(sales, "saleDate")
    receipt_df = _dated(receipts, "receiptDate")

    rows = []
    for period, start, end in TimeUtils.month_buckets(now, month_count):
        revenue = _bucket_total(sale_df, start, end)
        expense = _bucket_total(receipt_df, start, end)
        rows.append({
            "label": start.strftime("%B"),
            "period": str(period),
            "start": start,
            "end": end,
            "revenue": revenue / scale,
            "expense": expense / scale,
            "profit": (revenue - expense) / scale,
        })
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def calculate_metrics(ledger: Mapping | None) -> Dict[str, float]:
    """All-time headline figures for the dashboard."""
    sales = documents_frame(collection(ledger, "sales"), "saleDate")
    receipts = documents_frame(collection(ledger, "receipts"), "receiptDate")

    total_revenue = float(sales["total_amount"].sum())
    total_expenses = float(receipts["total_amount"].sum())
    gross_profit = total_revenue - total_expenses
    total_transactions = len(sales) + len(receipts)

    return {
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "gross_profit": gross_profit,
        "profit_margin": gross_profit / total_revenue * 100 if total_revenue > 0 else 0.0,
        "avg_transaction_value": (total_revenue + total_expenses) / total_transactions if total_transactions else 0.0,
        "total_transactions": total_transactions,
    }


def get_month_summary(ledger: Mapping | None, now=None) -> Dict[str, float]:
    """Month-to-date sales, expenses and profit, with the sales trend against last month."""
    (_, last_start, last_end), (_, month_start, month_end) = TimeUtils.month_buckets(now, 2)
    sales = _dated(collection(ledger, "sales"), "saleDate")
    receipts = _dated(collection(ledger, "receipts"), "receiptDate")

    month_sales = _bucket_total(sales, month_start, month_end)
    last_month_sales = _bucket_total(sales, last_start, last_end)
    month_expenses = _bucket_total(receipts, month_start, month_end)

    return {
        "month_sales": month_sales,
        "last_month_sales": last_month_sales,
        "month_expenses": month_expenses,
        "month_profit": month_sales - month_expenses,
        "sales_trend_pct": (month_sales - last_month_sales) / last_month_sales * 100 if last_month_sales > 0 else 0.0,
    }


def get_recurring_expense_total(ledger: Mapping | None) -> float:
    """Projected monthly outgoings: the sum of every recurring expense amount."""
    amounts = pd.Series([e.get("amount") for e in collection(ledger, "recurringExpenses") if isinstance(e, Mapping)],
                        dtype="object")
    return float(pd.to_numeric(amounts, errors="coerce").fillna(0.0).sum())
