"""
Module: mes_kernel.storage.collection
Responsibility: Serialize a collection of records to one JSON array and
    back.  Decimals are written as strings, datetimes as ISO-8601, enums by
    value.
Architecture position: Kernel > Storage.

Failure modes:
    - StorageReadError when the stored payload is not a JSON array.
    - StorageWriteError when a record cannot be serialized, or when the
      underlying BlobStore write fails.
"""

import json
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from mes_kernel.exceptions import StorageReadError, StorageWriteError
from mes_kernel.logging_config import get_logger
from mes_kernel.storage.blob_store import BlobStore

logger = get_logger("storage.collection")


class _SnapshotEncoder(json.JSONEncoder):
    """JSON encoder for persisted records."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


class CollectionStore:
    """A named JSON array of records inside a BlobStore."""

    def __init__(self, blob_store: BlobStore, key: str):
        self._blob_store = blob_store
        self.key = key

    def load(self) -> list[dict[str, Any]]:
        """Load every record; an absent key is an empty collection."""
        payload = self._blob_store.read(self.key)
        if payload is None:
            return []
        try:
            records = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise StorageReadError(self.key, f"invalid JSON: {exc}") from exc
        if not isinstance(records, list) or not all(
            isinstance(r, dict) for r in records
        ):
            raise StorageReadError(self.key, "expected a JSON array of objects")
        logger.debug(
            "collection_loaded",
            extra={"key": self.key, "record_count": len(records)},
        )
        return records

    def save(self, records: Sequence[Mapping[str, Any]]) -> None:
        """Replace the stored collection with ``records``."""
        try:
            payload = json.dumps(
                [dict(r) for r in records],
                cls=_SnapshotEncoder,
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(self.key, f"not serializable: {exc}") from exc
        self._blob_store.write(self.key, payload)
        logger.debug(
            "collection_saved",
            extra={"key": self.key, "record_count": len(records)},
        )

    def exists(self) -> bool:
        """True once anything, even an empty array, was saved under the key."""
        return self._blob_store.read(self.key) is not None
