"""
Record Store - persists generated invoices to a document database.

Each record is the raw form input merged with the computed breakdown, written
once and never updated. Write failures raise RecordStoreError; callers decide
whether that blocks anything (the invoice workflow treats it as advisory).
"""
import logging
import re
import time
import uuid
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Optional

from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from ..engine.models import InvoiceBreakdown
from ..errors import RecordStoreError

logger = logging.getLogger(__name__)


def build_record(breakdown: InvoiceBreakdown, raw_input: dict, generated_at: str) -> dict:
    """Merge raw input and breakdown into the stored document shape."""
    document = dict(raw_input or {})
    document.update(breakdown.to_legacy_dict())
    document['generatedAt'] = generated_at
    return document


class RecordStore:
    """Interface for invoice record persistence."""

    def save(self, breakdown: InvoiceBreakdown, raw_input: dict, generated_at: str) -> str:
        """Persist one invoice and return its record id."""
        raise NotImplementedError

    def list_records(
        self,
        client: Optional[str] = None,
        package_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """
        List records newest invoice date first.

        Args:
            client: Client name prefix
            package_type: Exact package type
            date_from: Inclusive lower bound on invoiceDate (YYYY-MM-DD)
            date_to: Inclusive upper bound on invoiceDate (YYYY-MM-DD)
            limit: Page size
            offset: Number of records to skip
        """
        raise NotImplementedError

    def diagnose(self) -> dict:
        """Write then read back a probe document. Never raises."""
        raise NotImplementedError


class InMemoryRecordStore(RecordStore):
    """Store used when no database is configured, and in tests."""

    def __init__(self):
        self.records: list[dict] = []
        self.diagnostics: list[dict] = []

    def save(self, breakdown: InvoiceBreakdown, raw_input: dict, generated_at: str) -> str:
        record = build_record(breakdown, raw_input, generated_at)
        record['id'] = uuid.uuid4().hex
        record['createdAt'] = datetime.now(timezone.utc).isoformat()
        self.records.append(record)
        return record['id']

    def list_records(self, client=None, package_type=None, date_from=None, date_to=None,
                     limit: int = 20, offset: int = 0) -> list[dict]:
        rows = self.records
        if client:
            rows = [r for r in rows if str(r.get('clientName', '')).startswith(client)]
        if package_type:
            rows = [r for r in rows if r.get('packageType') == package_type]
        if date_from:
            rows = [r for r in rows if str(r.get('invoiceDate', '')) >= date_from]
        if date_to:
            rows = [r for r in rows if str(r.get('invoiceDate', '')) <= date_to]
        rows = sorted(rows, key=lambda r: str(r.get('invoiceDate', '')), reverse=True)
        return deepcopy(rows[offset:offset + limit])

    def diagnose(self) -> dict:
        start = time.monotonic()
        probe = {'id': uuid.uuid4().hex, 'note': 'connectivity test',
                 'tsClient': datetime.now(timezone.utc).isoformat()}
        self.diagnostics.append(probe)
        return {
            'ok': True,
            'message': 'In-memory store write/read succeeded',
            'id': probe['id'],
            'round_trip_ms': int((time.monotonic() - start) * 1000),
            'read_data': dict(probe),
        }


class MongoRecordStore(RecordStore):
    """Record store backed by a MongoDB collection."""

    def __init__(self, uri: str, db_name: str, collection: str = 'invoices',
                 diagnostics_collection: str = '__diagnostics', client: Any = None):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection
        self.diagnostics_collection = diagnostics_collection
        self._client = client

    def _db(self):
        if self._client is None:
            self._client = MongoClient(self.uri, serverSelectionTimeoutMS=5000)
            logger.info("Connected to MongoDB: %s", self.db_name)
        return self._client[self.db_name]

    def save(self, breakdown: InvoiceBreakdown, raw_input: dict, generated_at: str) -> str:
        document = build_record(breakdown, raw_input, generated_at)
        document['createdAt'] = datetime.now(timezone.utc)
        try:
            result = self._db()[self.collection_name].insert_one(document)
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to save invoice record: {e}") from e
        return str(result.inserted_id)

    def list_records(self, client=None, package_type=None, date_from=None, date_to=None,
                     limit: int = 20, offset: int = 0) -> list[dict]:
        query: dict = {}
        if client:
            query['clientName'] = {'$regex': f"^{re.escape(client)}"}
        if package_type:
            query['packageType'] = package_type
        date_range = {}
        if date_from:
            date_range['$gte'] = date_from
        if date_to:
            date_range['$lte'] = date_to
        if date_range:
            query['invoiceDate'] = date_range

        try:
            cursor = (
                self._db()[self.collection_name]
                .find(query)
                .sort('invoiceDate', DESCENDING)
                .skip(offset)
                .limit(limit)
            )
            rows = []
            for doc in cursor:
                doc['id'] = str(doc.pop('_id'))
                rows.append(doc)
            return rows
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to list invoice records: {e}") from e

    def diagnose(self) -> dict:
        start = time.monotonic()
        try:
            collection = self._db()[self.diagnostics_collection]
            written = collection.insert_one({
                'createdAt': datetime.now(timezone.utc),
                'note': 'connectivity test',
                'tsClient': datetime.now(timezone.utc).isoformat(),
            })
            read_data = collection.find_one({'_id': written.inserted_id})
            if read_data is not None:
                read_data['_id'] = str(read_data['_id'])
            return {
                'ok': True,
                'message': 'MongoDB write/read succeeded',
                'id': str(written.inserted_id),
                'round_trip_ms': int((time.monotonic() - start) * 1000),
                'read_data': read_data,
            }
        except PyMongoError as e:
            logger.warning("Record store diagnostic failed: %s", e)
            return {
                'ok': False,
                'message': 'MongoDB diagnostic failed',
                'error': str(e),
                'code': getattr(e, 'code', None),
            }


def create_record_store(settings) -> RecordStore:
    """Pick the store for the configured database URI."""
    if settings.mongodb_uri:
        return MongoRecordStore(
            uri=settings.mongodb_uri,
            db_name=settings.mongodb_db_name,
            collection=settings.records_collection,
            diagnostics_collection=settings.diagnostics_collection,
        )
    logger.info("No MongoDB URI configured; using in-memory record store")
    return InMemoryRecordStore()
