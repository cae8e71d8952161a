"""Snapshot storage - blob stores and JSON collection persistence."""

from mes_kernel.storage.blob_store import BlobStore, InMemoryBlobStore, SqlBlobStore
from mes_kernel.storage.collection import CollectionStore

__all__ = [
    "BlobStore",
    "InMemoryBlobStore",
    "SqlBlobStore",
    "CollectionStore",
]
