# File: sales/cart.py

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping


@dataclass(frozen=True)
class CartLine:
    sellable_item_id: str
    name: str
    unit_price: float
    quantity: float

    @property
    def total(self) -> float:
        return self.unit_price * self.quantity


class Cart:
    """Point-of-sale cart state.

    One instance per checkout session, passed explicitly to whatever needs it.
    Lines keep the order items were first added.
    """

    def __init__(self):
        self._lines: Dict[str, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def total(self) -> float:
        return sum(line.total for line in self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add(self, item: Mapping, quantity: float = 1) -> CartLine:
        """Add a sellable item (its catalog record), bumping the quantity if already present.

        Raises:
            ValueError: If ``quantity`` is not positive; use set_quantity/remove to shrink a line.
        """
        if not quantity > 0:
            raise ValueError(f"Quantity to add must be positive, got {quantity!r}")
        item_id = item["id"]
        line = self._lines.get(item_id)
        if line is None:
            line = CartLine(item_id, item.get("name", ""), float(item.get("price", 0)), quantity)
        else:
            line = replace(line, quantity=line.quantity + quantity)
        self._lines[item_id] = line
        return line

    def set_quantity(self, item_id: str, quantity: float) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if item_id not in self._lines:
            raise KeyError(item_id)
        if quantity <= 0:
            self.remove(item_id)
        else:
            self._lines[item_id] = replace(self._lines[item_id], quantity=quantity)

    def change_quantity(self, item_id: str, delta: float) -> None:
        self.set_quantity(item_id, self._lines[item_id].quantity + delta)

    def remove(self, item_id: str) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()
