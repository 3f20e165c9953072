import os
import sys

import pytest

from ledger_builders import make_receipt, make_sale

# Add the project root (parent directory of tests/) to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


@pytest.fixture
def flour_ledger():
    """Flour (threshold 5), 20 kg bought at 1000/kg, Bread uses 0.5 kg per loaf, no sales yet."""
    return {
        "vendors": [{"id": "v1", "name": "Mill"}],
        "purchaseItems": [
            {"id": "flour", "name": "Flour", "category": "Bakery", "unit": "kilogram", "minStockThreshold": 5},
        ],
        "sellableItems": [
            {"id": "bread", "name": "Bread", "price": 3000, "category": "Bakery"},
        ],
        "recipes": [
            {"id": "r-bread", "sellableItemId": "bread",
             "ingredients": [{"purchaseItemId": "flour", "quantity": 0.5}]},
        ],
        "receipts": [make_receipt("rc1", "2025-01-02T09:00:00.000Z", [("flour", 20, 1000)])],
        "sales": [],
        "recurringExpenses": [],
    }


@pytest.fixture
def mixed_ledger():
    """Several items, duplicate ingredient lines, a recipe-less product and dangling references."""
    return {
        "purchaseItems": [
            {"id": "milk", "name": "Milk", "category": "Dairy", "unit": "liter", "minStockThreshold": 2},
            {"id": "beans", "name": "Coffee Beans", "category": "Coffee", "unit": "kilogram", "minStockThreshold": 1},
            {"id": "cups", "name": "Cups", "category": "Packaging", "unit": "number", "minStockThreshold": 50},
        ],
        "sellableItems": [
            {"id": "latte", "name": "Latte", "price": 120, "category": "Drinks"},
            {"id": "espresso", "name": "Espresso", "price": 80, "category": "Drinks"},
            {"id": "cookie", "name": "Cookie", "price": 40, "category": "Food"},
        ],
        "recipes": [
            {"id": "r-latte", "sellableItemId": "latte", "ingredients": [
                {"purchaseItemId": "milk", "quantity": 0.2},
                {"purchaseItemId": "beans", "quantity": 0.018},
                {"purchaseItemId": "cups", "quantity": 1},
                {"purchaseItemId": "milk", "quantity": 0.05},
            ]},
            {"id": "r-espresso", "sellableItemId": "espresso", "ingredients": [
                {"purchaseItemId": "beans", "quantity": 0.018},
                {"purchaseItemId": "cups", "quantity": 1},
                {"purchaseItemId": "ghost-item", "quantity": 3},
            ]},
        ],
        "receipts": [
            make_receipt("rc1", "2025-01-02", [("milk", 10, 50), ("beans", 2, 900), ("cups", 100, 2)]),
            make_receipt("rc2", "2025-01-09", [("milk", 5, 55), ("deleted-item", 7, 10)]),
        ],
        "sales": [
            make_sale("s1", "2025-01-03T10:00:00Z", [("latte", 4, 120), ("cookie", 3, 40)]),
            make_sale("s2", "2025-01-04T11:00:00Z", [("espresso", 10, 80), ("deleted-product", 2, 99)]),
            make_sale("s3", "2025-01-05T12:00:00Z", [("latte", 6, 120)]),
        ],
    }
