# File: sales/checkout.py
"""
Checkout boundary: turns a Cart into a recorded Sale.

The cart and the payment are checked here, before anything reaches the
store: an empty cart, a payment that is not a finite number or a payment
below the cart total is rejected with a CheckoutError and nothing is written.
"""

from __future__ import annotations

import logging
import math
from typing import Tuple

import pandas as pd

from sales.cart import Cart
from utils.time_utils import TimeUtils

logger = logging.getLogger(__name__)


class CheckoutError(ValueError):
    """Checkout rejected before recording; the message is meant for the cashier."""


def _payment(value) -> float:
    """Cash received as a float; anything unparseable becomes NaN."""
    parsed = pd.to_numeric(pd.Series([value], dtype="object"), errors="coerce").iloc[0]
    return float("nan") if pd.isna(parsed) else float(parsed)


def build_sale_payload(cart: Cart, paid_amount: float, now=None) -> dict:
    """Validate the checkout and build the Sale payload (without id/timestamps).

    Raises:
        CheckoutError: If the cart is empty, ``paid_amount`` is not a finite
            number, or it is below the total.
    """
    if cart.is_empty:
        raise CheckoutError("Cart is empty")
    total = cart.total
    paid = _payment(paid_amount)
    if not math.isfinite(paid):
        raise CheckoutError(f"Payment {paid_amount!r} is not a valid amount")
    if paid < total:
        raise CheckoutError(f"Payment {paid} does not cover the total {total}")

    sale_date = TimeUtils.resolve_now(now)
    return {
        "saleDate": sale_date.isoformat(timespec="milliseconds") + "Z",
        "items": [
            {
                "sellableItemId": line.sellable_item_id,
                "quantity": line.quantity,
                "unitPrice": line.unit_price,
                "totalPrice": line.total,
            }
            for line in cart.lines
        ],
        "totalAmount": total,
    }


def checkout(cart: Cart, paid_amount: float, store, now=None) -> Tuple[dict, float]:
    """Record the cart as a Sale and clear it.

    Args:
        cart: The session's cart
        paid_amount: Cash received
        store: Anything with ``create_sale(payload) -> dict`` (data_access.document_store.LedgerStore)
        now: Sale timestamp; defaults to the clock

    Returns:
        tuple: (stored sale record, change due)
    """
    payload = build_sale_payload(cart, paid_amount, now)
    sale = store.create_sale(payload)
    change = _payment(paid_amount) - payload["totalAmount"]
    cart.clear()
    logger.info("Checkout complete: sale %s, change %s", sale.get("id"), change)
    return sale, change
