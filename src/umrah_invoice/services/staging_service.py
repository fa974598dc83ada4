"""
Staging Service - holds generated invoices until they are committed to Excel.

Records are keyed by invoice number; adding a record whose number is already
staged replaces it in place. Not transactional and not safe across processes
(last write wins).
"""
import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

KEY_FIELD = 'invoiceNumber'


class StagingBuffer:
    """Ordered collection of invoice records keyed by invoice number."""

    def _load(self) -> list[dict]:
        raise NotImplementedError

    def _persist(self, records: list[dict]):
        raise NotImplementedError

    def add(self, record: dict) -> int:
        """Upsert a record by invoice number. Returns the staged count."""
        records = self._load()
        key = record.get(KEY_FIELD)
        for i, existing in enumerate(records):
            if existing.get(KEY_FIELD) == key:
                records[i] = deepcopy(record)
                break
        else:
            records.append(deepcopy(record))
        self._persist(records)
        logger.debug("Staged %s (%d staged)", key, len(records))
        return len(records)

    def get_all(self) -> list[dict]:
        """Get all staged records in staging order."""
        return self._load()

    def get(self, invoice_number: str) -> Optional[dict]:
        """Get a single staged record by invoice number."""
        for record in self._load():
            if record.get(KEY_FIELD) == invoice_number:
                return record
        return None

    def clear(self):
        """Drop every staged record."""
        self._persist([])

    def remove(self, invoice_number: str) -> int:
        """Remove a record by invoice number. Returns the staged count."""
        records = [r for r in self._load() if r.get(KEY_FIELD) != invoice_number]
        self._persist(records)
        return len(records)

    def __len__(self) -> int:
        return len(self._load())


class InMemoryStagingBuffer(StagingBuffer):
    """Process-local buffer, used by tests and the API by default."""

    def __init__(self):
        self._records: list[dict] = []

    def _load(self) -> list[dict]:
        return deepcopy(self._records)

    def _persist(self, records: list[dict]):
        self._records = deepcopy(records)


class JsonFileStagingBuffer(StagingBuffer):
    """
    Buffer persisted as a JSON array on disk.

    A missing, unreadable or malformed file reads as an empty buffer.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable staging file %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            return []
        return [r for r in data if isinstance(r, dict)]

    def _persist(self, records: list[dict]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(records, f, ensure_ascii=False, indent=2, default=str)
