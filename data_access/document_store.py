# File: data_access/document_store.py
"""
Record store – the whole application database lives in ONE JSON document.

The document is a row in a ``documents`` table (name, body, version). Reads
return plain dicts; every write reads the document, applies the change and
writes it back only if ``version`` is still the one it read. A lost race is
retried against the fresh document, so two sales recorded at the same time
both survive.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Tuple

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from data_access.exceptions import ConcurrentWriteError, RecordNotFoundError, UnknownCollectionError
from models.entities import COLLECTIONS, SalePayload, validate_payload
from recipe.recipe_index import build_recipe_index

logger = logging.getLogger(__name__)

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("name", String(100), primary_key=True),
    Column("body", Text, nullable=False),
    Column("version", Integer, nullable=False),
)

STORE_MANAGED = ("id", "createdAt", "updatedAt")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-31T09:15:02.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def empty_document() -> Dict[str, list]:
    return {name: [] for name in COLLECTIONS}


class LedgerStore:
    """CRUD over the named collections of the JSON application database."""

    def __init__(self, engine: Engine, document_name: str = "app_db", write_retries: int = 3):
        if write_retries < 1:
            raise ValueError("write_retries must be at least 1")
        self.engine = engine
        self.document_name = document_name
        self.write_retries = write_retries
        metadata.create_all(engine)

    # ── Raw document access ──────────────────────────────────────────────
    def _read(self) -> Tuple[dict, int]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(documents.c.body, documents.c.version).where(documents.c.name == self.document_name)
            ).first()
        if row is None:
            return self._initialise()
        data = json.loads(row.body)
        for name in COLLECTIONS:
            data.setdefault(name, [])
        return data, row.version

    def _initialise(self) -> Tuple[dict, int]:
        data = empty_document()
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(documents).values(
                    name=self.document_name, body=json.dumps(data, ensure_ascii=False), version=0,
                ))
            logger.info("Created empty document %r", self.document_name)
            return data, 0
        except IntegrityError:
            # Someone else created it first
            return self._read()

    def _write(self, data: dict, expected_version: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                update(documents)
                .where(documents.c.name == self.document_name)
                .where(documents.c.version == expected_version)
                .values(body=json.dumps(data, ensure_ascii=False), version=expected_version + 1)
            )
        return result.rowcount == 1

    def _mutate(self, change: Callable[[dict], object]):
        """Apply ``change`` to a fresh copy of the document and commit it optimistically."""
        for attempt in range(1, self.write_retries + 1):
            data, version = self._read()
            result = change(data)
            if self._write(data, version):
                return result
            logger.warning("Document %r changed during write (attempt %d/%d), retrying",
                           self.document_name, attempt, self.write_retries)
        raise ConcurrentWriteError(
            f"Could not write document {self.document_name!r} after {self.write_retries} attempt(s)"
        )

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise UnknownCollectionError(collection)

    # ── Reads ────────────────────────────────────────────────────────────
    def get_db(self) -> dict:
        """Return the full application database (a ledger snapshot)."""
        return self._read()[0]

    def get_all(self, collection: str) -> List[dict]:
        self._check_collection(collection)
        return self.get_db()[collection]

    # ── Writes ───────────────────────────────────────────────────────────
    @staticmethod
    def _new_record(collection: str, payload: dict) -> dict:
        clean = {k: v for k, v in payload.items() if k not in STORE_MANAGED}
        record = validate_payload(collection, clean)
        now = utc_timestamp()
        record.update(id=str(uuid.uuid4()), createdAt=now, updatedAt=now)
        return record

    def create(self, collection: str, payload: dict) -> dict:
        """Append a record; the store assigns id, createdAt and updatedAt."""
        self._check_collection(collection)
        record = self._new_record(collection, payload)

        def change(data):
            data[collection].append(record)
            return record

        self._mutate(change)
        logger.info("Created %s record %s", collection, record["id"])
        return record

    def update(self, collection: str, record_id: str, payload: dict) -> dict:
        """Merge ``payload`` onto an existing record and refresh updatedAt."""
        self._check_collection(collection)
        changes = {k: v for k, v in payload.items() if k not in STORE_MANAGED}

        def change(data):
            records = data[collection]
            for pos, existing in enumerate(records):
                if existing.get("id") == record_id:
                    merged = validate_payload(collection, {**existing, **changes})
                    merged["updatedAt"] = utc_timestamp()
                    records[pos] = merged
                    return merged
            raise RecordNotFoundError(collection, record_id)

        merged = self._mutate(change)
        logger.info("Updated %s record %s", collection, record_id)
        return merged

    def delete(self, collection: str, record_id: str) -> None:
        self._check_collection(collection)

        def change(data):
            remaining = [r for r in data[collection] if r.get("id") != record_id]
            if len(remaining) == len(data[collection]):
                raise RecordNotFoundError(collection, record_id)
            data[collection] = remaining

        self._mutate(change)
        logger.info("Deleted %s record %s", collection, record_id)

    def create_sale(self, payload: dict) -> dict:
        """Append a Sale. Stock is derived at read time, so nothing else is written.

        The recipes are read from the same document version the sale is
        appended to, only to log what the sale consumes.
        """
        record = self._new_record("sales", SalePayload.model_validate(payload).model_dump(mode="json"))

        def change(data):
            index = build_recipe_index(data)
            for line in record["items"]:
                usage = index.consumption_per_unit(line["sellableItemId"])
                logger.debug("Sale line %s x%s consumes %s", line["sellableItemId"], line["quantity"],
                             {k: v * line["quantity"] for k, v in usage.items()} or "nothing")
            data["sales"].append(record)
            return record

        self._mutate(change)
        logger.info("Recorded sale %s (total %s)", record["id"], record["totalAmount"])
        return record

    # ── Snapshots ────────────────────────────────────────────────────────
    def import_document(self, data: dict) -> None:
        """Replace the whole document with ``data`` (missing collections become empty)."""
        unknown = set(data) - set(COLLECTIONS)
        if unknown:
            logger.warning("Importing unknown collection(s): %s", ", ".join(sorted(unknown)))

        def change(current):
            current.clear()
            current.update(empty_document())
            current.update(data)

        self._mutate(change)
        logger.info("Imported document %r", self.document_name)

    def export_document(self) -> dict:
        return self.get_db()


def get_store(cfg: dict) -> LedgerStore:
    """Build a LedgerStore from configuration (see utils.config_utils.DEFAULT_CFG)."""
    engine = create_engine(cfg["database_url"])
    return LedgerStore(engine, document_name=cfg["document_name"], write_retries=int(cfg["write_retries"]))
