# File: ledger/ledger_data.py
"""
Flatten a ledger snapshot (the JSON application database) into line-level
DataFrames.

A snapshot is a mapping of collection name to a list of records, e.g.
``{"receipts": [...], "sales": [...], "recipes": [...], "purchaseItems": [...]}``.
Missing collections, ``None`` snapshots and records without line items all
produce empty frames with the expected columns. Numeric fields are coerced
(non-numeric → 0) and dates become UTC-naive Timestamps (unparseable → NaT).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from utils.time_utils import TimeUtils

logger = logging.getLogger(__name__)

RECEIPT_LINE_COLUMNS = [
    "receipt_id", "receipt_order", "line_order", "receipt_date",
    "purchase_item_id", "quantity", "unit_price", "total_price",
]
SALE_LINE_COLUMNS = [
    "sale_id", "sale_order", "sale_date",
    "sellable_item_id", "quantity", "unit_price", "total_price",
]
RECIPE_INGREDIENT_COLUMNS = ["recipe_id", "recipe_order", "sellable_item_id", "purchase_item_id", "quantity"]
DOCUMENT_COLUMNS = ["id", "date", "total_amount"]


def collection(ledger: Mapping | None, name: str) -> list:
    """Return a ledger collection as a list, treating absent/None as empty."""
    if not ledger:
        return []
    records = ledger.get(name)
    return list(records) if records else []


def _lines(record: Mapping, key: str) -> list:
    lines = record.get(key) if isinstance(record, Mapping) else None
    return [line for line in lines if isinstance(line, Mapping)] if isinstance(lines, list) else []


def _to_number(frame: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0).astype(float)
    return frame


def _to_dates(frame: pd.DataFrame, col: str) -> pd.DataFrame:
    frame[col] = TimeUtils.parse_dates(frame[col]).to_numpy()
    return frame


def receipt_lines(ledger: Mapping | None) -> pd.DataFrame:
    """One row per receipt line, in ledger order."""
    rows = []
    for r_pos, receipt in enumerate(collection(ledger, "receipts")):
        for l_pos, line in enumerate(_lines(receipt, "items")):
            rows.append({
                "receipt_id": receipt.get("id"),
                "receipt_order": r_pos,
                "line_order": l_pos,
                "receipt_date": receipt.get("receiptDate"),
                "purchase_item_id": line.get("purchaseItemId"),
                "quantity": line.get("quantity"),
                "unit_price": line.get("unitPrice"),
                "total_price": line.get("totalPrice"),
            })
    df = pd.DataFrame(rows, columns=RECEIPT_LINE_COLUMNS)
    _to_dates(df, "receipt_date")
    return _to_number(df, ["quantity", "unit_price", "total_price"])


def sale_lines(ledger: Mapping | None) -> pd.DataFrame:
    """One row per sale line, in ledger order."""
    rows = []
    for s_pos, sale in enumerate(collection(ledger, "sales")):
        for line in _lines(sale, "items"):
            rows.append({
                "sale_id": sale.get("id"),
                "sale_order": s_pos,
                "sale_date": sale.get("saleDate"),
                "sellable_item_id": line.get("sellableItemId"),
                "quantity": line.get("quantity"),
                "unit_price": line.get("unitPrice"),
                "total_price": line.get("totalPrice"),
            })
    df = pd.DataFrame(rows, columns=SALE_LINE_COLUMNS)
    _to_dates(df, "sale_date")
    return _to_number(df, ["quantity", "unit_price", "total_price"])


def recipe_ingredients(ledger: Mapping | None) -> pd.DataFrame:
    """One row per recipe ingredient. Recipes with no ingredients contribute no rows."""
    rows = []
    for r_pos, recipe in enumerate(collection(ledger, "recipes")):
        if not isinstance(recipe, Mapping):
            continue
        for ingredient in _lines(recipe, "ingredients"):
            rows.append({
                "recipe_id": recipe.get("id"),
                "recipe_order": r_pos,
                "sellable_item_id": recipe.get("sellableItemId"),
                "purchase_item_id": ingredient.get("purchaseItemId"),
                "quantity": ingredient.get("quantity"),
            })
    df = pd.DataFrame(rows, columns=RECIPE_INGREDIENT_COLUMNS)
    return _to_number(df, ["quantity"])


def documents_frame(records: Iterable[Mapping] | None, date_field: str) -> pd.DataFrame:
    """Header-level view of sales or receipts: id, parsed date and totalAmount.

    Records whose date cannot be parsed keep a NaT date; time-bucketed callers
    drop them.
    """
    rows = [
        {"id": r.get("id"), "date": r.get(date_field), "total_amount": r.get("totalAmount")}
        for r in (records or [])
        if isinstance(r, Mapping)
    ]
    df = pd.DataFrame(rows, columns=DOCUMENT_COLUMNS)
    _to_dates(df, "date")
    return _to_number(df, ["total_amount"])


def catalog_frame(records: Iterable[Mapping] | None, columns: Mapping[str, str]) -> pd.DataFrame:
    """Catalog records as a DataFrame, renaming JSON fields via ``columns`` ({json: col})."""
    rows = [
        {col: r.get(field) for field, col in columns.items()}
        for r in (records or [])
        if isinstance(r, Mapping)
    ]
    return pd.DataFrame(rows, columns=list(columns.values()))


def load_ledger_json(path) -> dict:
    """Read a full application-database snapshot from a JSON file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as file:
        data = json.load(file)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    logger.info("Loaded ledger snapshot from %s (%s)", path,
                ", ".join(f"{k}={len(v)}" for k, v in data.items() if isinstance(v, list)))
    return data
