"""
Module: mes_kernel.models.stored_blob
Responsibility: ORM persistence for named JSON snapshots.  Each collection
    (stock lots, materials, products, BOM rows, lines) is one row keyed by
    its storage key; the payload is the whole collection as a JSON array.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - key is unique (uq_stored_blob_key); a write replaces the payload of
      the existing row.

Failure modes:
    - IntegrityError on a concurrent first insert of the same key.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from mes_kernel.db.base import Base


class StoredBlob(Base):
    """
    One named snapshot.

    Guarantees:
        - payload holds the exact text last written under ``key``.
        - updated_at moves on every write.
    """

    __tablename__ = "stored_blobs"

    __table_args__ = (
        UniqueConstraint("key", name="uq_stored_blob_key"),
    )

    key: Mapped[str] = mapped_column(String(200), nullable=False)
    payload: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredBlob {self.key} ({len(self.payload)} chars)>"
