"""ORM models for the MES kernel."""

from mes_kernel.models.stored_blob import StoredBlob

__all__ = ["StoredBlob"]
