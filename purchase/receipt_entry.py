# purchase/receipt_entry.py
"""
Receipt entry – turns a confirmed entry form (typed in, or pre-filled from
OCR) into a Receipt payload for the store.
"""

from __future__ import annotations

import logging
from typing import Mapping

import pandas as pd

from utils.time_utils import TimeUtils

logger = logging.getLogger(__name__)


class ReceiptEntryError(ValueError):
    """The entry form is incomplete; nothing was saved."""


def _number(value) -> float:
    parsed = pd.to_numeric(pd.Series([value], dtype="object"), errors="coerce").iloc[0]
    return 0.0 if pd.isna(parsed) else float(parsed)


def build_receipt_payload(form: Mapping, now=None) -> dict:
    """
    Validate the entry form and build a Receipt payload.

    ``form`` holds vendorId, receiptDate (YYYY-MM-DD, optional), items
    [{purchaseItemId, quantity, unitPrice, totalPrice}] and an optional
    imageUrl. Numeric fields that do not parse count as 0; a missing or bad
    date falls back to today. totalAmount is the sum of line totals.

    Raises:
        ReceiptEntryError: If no vendor is selected or there are no lines.
    """
    vendor_id = form.get("vendorId")
    if not vendor_id:
        raise ReceiptEntryError("Select a vendor")
    items = form.get("items") or []
    if not items:
        raise ReceiptEntryError("A receipt needs at least one line")

    receipt_date = TimeUtils.parse_dates([form.get("receiptDate")]).iloc[0]
    if pd.isna(receipt_date):
        receipt_date = TimeUtils.resolve_now(now).normalize()

    lines = [
        {
            "purchaseItemId": item.get("purchaseItemId") or "",
            "quantity": _number(item.get("quantity")),
            "unitPrice": _number(item.get("unitPrice")),
            "totalPrice": _number(item.get("totalPrice")),
        }
        for item in items
    ]
    unlinked = sum(1 for line in lines if not line["purchaseItemId"])
    if unlinked:
        logger.warning("%d receipt line(s) are not linked to a purchasable item", unlinked)

    payload = {
        "vendorId": vendor_id,
        "receiptDate": receipt_date.isoformat(timespec="milliseconds") + "Z",
        "items": lines,
        "totalAmount": sum(line["totalPrice"] for line in lines),
    }
    if form.get("imageUrl"):
        payload["imageUrl"] = form["imageUrl"]
    return payload


def form_from_extraction(extraction, vendors=(), purchase_items=()) -> dict:
    """Pre-fill an entry form from an OCR result, matching names against the catalogs.

    Vendor and item names are matched case-insensitively; anything unmatched
    stays empty for the user to pick.
    """
    vendor_ids = {str(v.get("name", "")).strip().lower(): v.get("id") for v in vendors}
    item_ids = {str(p.get("name", "")).strip().lower(): p.get("id") for p in purchase_items}

    def match(lookup, name):
        return lookup.get(name.strip().lower(), "") if name else ""

    return {
        "vendorId": match(vendor_ids, extraction.vendorName),
        "vendorName": extraction.vendorName or "",
        "receiptDate": extraction.date.isoformat() if extraction.date else None,
        "items": [
            {
                "name": line.name,
                "purchaseItemId": match(item_ids, line.name),
                "quantity": line.quantity,
                "unitPrice": line.unitPrice,
                "totalPrice": line.totalPrice,
            }
            for line in extraction.items
        ],
    }
