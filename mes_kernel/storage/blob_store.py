"""
Module: mes_kernel.storage.blob_store
Responsibility: Key/value storage of text snapshots.  The stock ledger and
    master-data collections persist their whole state as one JSON document
    per key; a BlobStore only moves those documents in and out.
Architecture position: Kernel > Storage.  May import from db/, models/ and
    exceptions.  MUST NOT import from domain/ or outer layers.

Invariants enforced:
    - read() of a key never written returns None, not an error.
    - write() either stores the whole payload or raises StorageWriteError.

Failure modes:
    - StorageReadError / StorageWriteError wrap backend failures
      (SQLAlchemyError for SqlBlobStore).
"""

import threading
from abc import ABC, abstractmethod

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mes_kernel.db.engine import session_scope
from mes_kernel.exceptions import StorageReadError, StorageWriteError
from mes_kernel.logging_config import get_logger
from mes_kernel.models.stored_blob import StoredBlob

logger = get_logger("storage.blob_store")


class BlobStore(ABC):
    """
    Abstract snapshot store.

    Contract:
        Services receive a BlobStore via constructor injection and never
        know which backend holds their data.
    """

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the payload stored under ``key`` or None."""
        ...

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """Replace the payload stored under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; a missing key is not an error."""
        ...

    def close(self) -> None:
        """Release backend resources."""


class InMemoryBlobStore(BlobStore):
    """Process-local store, used by tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, payload: str) -> None:
        with self._lock:
            self._data[key] = payload

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlBlobStore(BlobStore):
    """
    Store backed by the ``stored_blobs`` table.

    Each call runs in its own session_scope(), so a failed write is rolled
    back and leaves the previous payload in place.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def read(self, key: str) -> str | None:
        try:
            with session_scope(self._session_factory) as session:
                return session.scalar(
                    select(StoredBlob.payload).where(StoredBlob.key == key)
                )
        except SQLAlchemyError as exc:
            logger.error("blob_read_failed", extra={"key": key, "error": str(exc)})
            raise StorageReadError(key, str(exc)) from exc

    def write(self, key: str, payload: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                blob = session.scalar(
                    select(StoredBlob).where(StoredBlob.key == key)
                )
                if blob is None:
                    session.add(StoredBlob(key=key, payload=payload))
                else:
                    blob.payload = payload
        except SQLAlchemyError as exc:
            logger.error("blob_write_failed", extra={"key": key, "error": str(exc)})
            raise StorageWriteError(key, str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(StoredBlob).where(StoredBlob.key == key))
        except SQLAlchemyError as exc:
            logger.error("blob_delete_failed", extra={"key": key, "error": str(exc)})
            raise StorageWriteError(key, str(exc)) from exc
