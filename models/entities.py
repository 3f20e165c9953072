"""
Payload schemas for every collection in the application database.

Field names stay camelCase because the records are stored and exchanged as
JSON documents. Identity and timestamps (``id``, ``createdAt``,
``updatedAt``) are assigned by the store and are not part of any payload.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PayloadModel(BaseModel):
    model_config = ConfigDict(extra="allow", use_enum_values=True)


# Purchase side
class VendorPayload(PayloadModel):
    name: str = Field(..., min_length=2)
    contactPerson: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class PurchaseItemUnit(str, Enum):
    KILOGRAM = "kilogram"   # weight
    NUMBER = "number"       # count
    PACKAGE = "package"
    LITER = "liter"         # volume
    METER = "meter"         # length


class PurchaseItemPayload(PayloadModel):
    name: str = Field(..., min_length=2)
    category: str = Field(..., min_length=2)
    unit: PurchaseItemUnit
    minStockThreshold: float = Field(0, ge=0)


class ReceiptLinePayload(PayloadModel):
    purchaseItemId: str
    quantity: float
    unitPrice: float
    totalPrice: float


def _iso_date(value):
    if isinstance(value, datetime):
        return value.isoformat()
    datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return str(value)


class ReceiptPayload(PayloadModel):
    vendorId: str = Field(..., min_length=1)
    receiptDate: str
    items: List[ReceiptLinePayload]
    totalAmount: float
    imageUrl: Optional[str] = None

    @field_validator("receiptDate", mode="before")
    @classmethod
    def check_date(cls, v):
        return _iso_date(v)


# Sales side
class SellableItemPayload(PayloadModel):
    name: str = Field(..., min_length=2)
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=2)


class RecipeIngredientPayload(PayloadModel):
    purchaseItemId: str
    quantity: float = Field(..., gt=0)


class RecipePayload(PayloadModel):
    sellableItemId: str = Field(..., min_length=1)
    ingredients: List[RecipeIngredientPayload] = Field(default_factory=list)


class SaleLinePayload(PayloadModel):
    sellableItemId: str
    quantity: float = Field(..., gt=0)
    unitPrice: float = Field(..., ge=0)
    totalPrice: float = Field(..., ge=0)


class SalePayload(PayloadModel):
    saleDate: str
    items: List[SaleLinePayload] = Field(..., min_length=1)
    totalAmount: float = Field(..., ge=0)

    @field_validator("saleDate", mode="before")
    @classmethod
    def check_date(cls, v):
        return _iso_date(v)


# Financials
class RecurringExpensePayload(PayloadModel):
    title: str = Field(..., min_length=2)
    amount: float = Field(..., ge=1)
    dueDate: int = Field(..., ge=1, le=31)
    category: str = Field(..., min_length=2)


COLLECTION_SCHEMAS: Dict[str, Type[PayloadModel]] = {
    "vendors": VendorPayload,
    "purchaseItems": PurchaseItemPayload,
    "receipts": ReceiptPayload,
    "sellableItems": SellableItemPayload,
    "recipes": RecipePayload,
    "sales": SalePayload,
    "recurringExpenses": RecurringExpensePayload,
}

COLLECTIONS = tuple(COLLECTION_SCHEMAS)


def validate_payload(collection: str, payload: dict) -> dict:
    """Validate ``payload`` against the collection schema and return plain JSON data.

    Unknown keys (including store-assigned ones on a merged record) pass through.
    """
    schema = COLLECTION_SCHEMAS[collection]
    return schema.model_validate(payload).model_dump(mode="json", exclude_none=True)
