"""Stock levels, price history and inventory health, all derived from the ledgers."""

from inventory.health import get_inventory_health
from inventory.stock import calculate_price_history, calculate_stock
