"""
Receipt photo → structured guess {vendorName, date, items}.

The model is asked for JSON only. Whatever comes back is parsed leniently:
every field may be missing, and ``None`` means "unknown", never zero.
"""

from __future__ import annotations

import base64
import json
import logging
import re
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

PROMPT = (
    "You are reading a photographed purchase receipt. Extract:\n"
    "- vendorName: the shop or vendor name\n"
    "- date: the receipt date as YYYY-MM-DD\n"
    "- items: list of {name, quantity, unitPrice, totalPrice} with numbers as numbers\n\n"
    "Return ONLY a JSON object with exactly these keys. Use null for anything you cannot read."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ExtractedLine(BaseModel):
    name: Optional[str] = None
    quantity: Optional[float] = None
    unitPrice: Optional[float] = None
    totalPrice: Optional[float] = None

    @field_validator("quantity", "unitPrice", "totalPrice", mode="before")
    @classmethod
    def lenient_number(cls, v):
        if v is None or isinstance(v, (int, float)):
            return v
        try:
            return float(str(v).replace(",", "").strip())
        except ValueError:
            return None


class ReceiptExtraction(BaseModel):
    vendorName: Optional[str] = None
    date: Optional[dt.date] = None
    items: List[ExtractedLine] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v):
        if not v:
            return None
        try:
            return dt.date.fromisoformat(str(v)[:10])
        except ValueError:
            return None

    @field_validator("items", mode="before")
    @classmethod
    def list_only(cls, v):
        return [i for i in v if isinstance(i, dict)] if isinstance(v, list) else []


def parse_extraction(raw) -> ReceiptExtraction:
    """Parse model output (a dict or JSON text, optionally fenced) into a ReceiptExtraction."""
    if isinstance(raw, (str, bytes)):
        text = _FENCE.sub("", (raw.decode() if isinstance(raw, bytes) else raw).strip())
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Receipt extraction is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError("Receipt extraction must be a JSON object")
    return ReceiptExtraction.model_validate(raw)


class ReceiptExtractor:
    """Reads receipts through the Anthropic Messages API."""

    def __init__(self, client=None, model: str = "claude-sonnet-4-20250514", max_tokens: int = 1024,
                 api_key: Optional[str] = None):
        if client is None:
            import anthropic

            client = anthropic.Anthropic(api_key=api_key)
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def extract(self, image: bytes, media_type: str = "image/jpeg") -> ReceiptExtraction:
        """Send one receipt image and return the parsed guess."""
        if not image:
            raise ValueError("No image supplied")

        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {
                        "type": "base64",
                        "media_type": media_type,
                        "data": base64.b64encode(image).decode("ascii"),
                    }},
                    {"type": "text", "text": PROMPT},
                ],
            }],
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        extraction = parse_extraction(text)
        logger.info("Extracted receipt from %s: %d line(s)", extraction.vendorName or "unknown vendor",
                    len(extraction.items))
        return extraction


def get_extractor(cfg: dict, client=None) -> ReceiptExtractor:
    """Build a ReceiptExtractor from configuration (see utils.config_utils.DEFAULT_CFG)."""
    return ReceiptExtractor(client=client, model=cfg["ocr_model"], max_tokens=int(cfg["ocr_max_tokens"]))
