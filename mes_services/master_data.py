"""
mes_services.master_data -- Master-data collections.

Responsibility:
    CRUD containers for materials, products and BOM rows.  Each collection
    is one JSON array under its own storage key; ids are assigned as
    max(existing ids) + 1 and every added record is stamped with the
    plant-local registration date.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    BOMCollection derives levels and its grouping tree through
    mes_engines.bom; MaterialCollection classifies stock through
    mes_engines.material_status.

Invariants enforced:
    - ids are unique within a collection and never reused while the
      record with the highest id exists.
    - Mutations persist the new snapshot before it becomes visible.
    - No referential integrity across collections: deleting a product
      leaves its BOM rows in place.

Failure modes:
    - RecordNotFoundError from update() of an unknown id.
    - StorageReadError / StorageWriteError from the CollectionStore.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal
from typing import Generic, TypeVar

from mes_engines.bom import BOMGroup, determine_level, group_bom_items
from mes_engines.material_status import (
    DEFAULT_DANGER_RATIO,
    MaterialStatus,
    classify_material_stock,
)
from mes_kernel.domain.clock import Clock, SystemClock
from mes_kernel.domain.master_data import BOMItem, Material, Product
from mes_kernel.exceptions import RecordNotFoundError, StorageReadError
from mes_kernel.logging_config import get_logger
from mes_kernel.storage.collection import CollectionStore

logger = get_logger("services.master_data")

R = TypeVar("R")


class RecordCollection(Generic[R]):
    """
    Base collection of id-keyed frozen records.

    Subclasses set ``record_type`` and ``collection_name`` and may override
    ``_prepare`` (normalise a record on add/update), ``_prepare_new``
    (extra rules for added records) and ``_stamp`` (assign id and date).
    """

    record_type: type
    collection_name: str = "record"

    def __init__(
        self,
        store: CollectionStore,
        clock: Clock | None = None,
        timezone: str = "UTC",
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._timezone = timezone
        self._lock = threading.RLock()
        self._records: tuple[R, ...] | None = None

    # -- snapshot -------------------------------------------------------

    def _initial_records(self) -> tuple[R, ...]:
        return ()

    def _snapshot(self) -> tuple[R, ...]:
        if self._records is None:
            rows = self._store.load()
            try:
                records = tuple(self.record_type.from_record(r) for r in rows)
            except (KeyError, TypeError, ValueError) as exc:
                raise StorageReadError(
                    self._store.key, f"invalid {self.collection_name} record: {exc}"
                ) from exc
            if not records and not self._store.exists():
                records = self._initial_records()
            self._records = records
        return self._records

    def _commit(self, records: tuple[R, ...]) -> None:
        self._store.save([r.to_record() for r in records])
        self._records = records
        self._on_change()

    def _on_change(self) -> None:
        """Hook run after every committed mutation."""

    def close(self) -> None:
        with self._lock:
            self._records = None
            self._on_change()

    # -- hooks ----------------------------------------------------------

    def _prepare(self, record: R) -> R:
        return record

    def _prepare_new(self, record: R) -> R:
        return self._prepare(record)

    def _stamp(self, record: R, record_id: int, today: str) -> R:
        return replace(record, id=record_id, reg_date=today)

    def _next_id(self, records: Iterable[R]) -> int:
        return max((r.id for r in records), default=0) + 1

    def _today(self) -> str:
        return self._clock.today(self._timezone).isoformat()

    # -- queries --------------------------------------------------------

    def all(self) -> list[R]:
        with self._lock:
            return list(self._snapshot())

    def get(self, record_id: int) -> R | None:
        with self._lock:
            for record in self._snapshot():
                if record.id == record_id:
                    return record
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshot())

    # -- mutations ------------------------------------------------------

    def add(self, record: R) -> R:
        """Add one record; returns it with its assigned id."""
        with self._lock:
            records = self._snapshot()
            added = self._stamp(self._prepare_new(record), self._next_id(records), self._today())
            self._commit(records + (added,))
            logger.info(
                "record_added",
                extra={"collection": self.collection_name, "record_id": added.id},
            )
            return added

    def add_many(self, new_records: Iterable[R]) -> int:
        """Add records in one write; they get consecutive ids and one date."""
        with self._lock:
            records = self._snapshot()
            start = self._next_id(records)
            today = self._today()
            added = tuple(
                self._stamp(self._prepare_new(r), start + offset, today)
                for offset, r in enumerate(new_records)
            )
            if not added:
                return 0
            self._commit(records + added)
            logger.info(
                "records_added",
                extra={"collection": self.collection_name, "record_count": len(added)},
            )
            return len(added)

    def update(self, record: R) -> R:
        """Replace the record carrying ``record.id``."""
        with self._lock:
            records = self._snapshot()
            for i, existing in enumerate(records):
                if existing.id == record.id:
                    updated = self._prepare(record)
                    self._commit(records[:i] + (updated,) + records[i + 1:])
                    logger.info(
                        "record_updated",
                        extra={"collection": self.collection_name, "record_id": record.id},
                    )
                    return updated
            logger.warning(
                "record_update_missing",
                extra={"collection": self.collection_name, "record_id": record.id},
            )
            raise RecordNotFoundError(self.collection_name, record.id)

    def delete(self, record_id: int) -> bool:
        with self._lock:
            records = self._snapshot()
            kept = tuple(r for r in records if r.id != record_id)
            if len(kept) == len(records):
                return False
            self._commit(kept)
            logger.info(
                "record_deleted",
                extra={"collection": self.collection_name, "record_id": record_id},
            )
            return True

    def reset(self) -> int:
        """Remove every record; returns how many there were."""
        with self._lock:
            count = len(self._snapshot())
            self._commit(())
            logger.info(
                "collection_reset",
                extra={"collection": self.collection_name, "record_count": count},
            )
            return count


class MaterialCollection(RecordCollection[Material]):
    """Materials.  Stock on hand starts at zero and moves via receiving."""

    record_type = Material
    collection_name = "material"

    def __init__(
        self,
        store: CollectionStore,
        clock: Clock | None = None,
        timezone: str = "UTC",
        danger_ratio: Decimal = DEFAULT_DANGER_RATIO,
    ):
        super().__init__(store, clock, timezone)
        self._danger_ratio = danger_ratio

    def _prepare_new(self, record: Material) -> Material:
        return replace(record, stock=Decimal("0"))

    def get_by_code(self, code: str) -> Material | None:
        with self._lock:
            for material in self._snapshot():
                if material.code == code:
                    return material
            return None

    def with_status(self) -> list[tuple[Material, MaterialStatus]]:
        """Every material paired with its stock status."""
        return [
            (m, classify_material_stock(m.stock, m.safe_stock, self._danger_ratio))
            for m in self.all()
        ]


class ProductCollection(RecordCollection[Product]):
    record_type = Product
    collection_name = "product"

    def get_by_code(self, code: str) -> Product | None:
        with self._lock:
            for product in self._snapshot():
                if product.code == code:
                    return product
            return None


class BOMCollection(RecordCollection[BOMItem]):
    """
    Flattened BOM rows.

    ``level`` is always derived from ``process_code``.  ``groups`` is the
    product -> level -> crimp tree, rebuilt after every mutation.
    """

    record_type = BOMItem
    collection_name = "bom"

    def __init__(
        self,
        store: CollectionStore,
        clock: Clock | None = None,
        timezone: str = "UTC",
    ):
        super().__init__(store, clock, timezone)
        self._groups: tuple[BOMGroup, ...] | None = None

    def _prepare(self, record: BOMItem) -> BOMItem:
        return replace(record, level=determine_level(record.process_code))

    def _on_change(self) -> None:
        self._groups = None

    @property
    def groups(self) -> list[BOMGroup]:
        """A fresh list over the cached grouping; the groups themselves are frozen."""
        with self._lock:
            if self._groups is None:
                self._groups = tuple(group_bom_items(self._snapshot()))
            return list(self._groups)

    def get_by_product(self, product_code: str) -> list[BOMItem]:
        with self._lock:
            return [r for r in self._snapshot() if r.product_code == product_code]

    def delete_by_product(self, product_code: str) -> int:
        """Delete every row of a product; returns how many were removed."""
        with self._lock:
            records = self._snapshot()
            kept = tuple(r for r in records if r.product_code != product_code)
            removed = len(records) - len(kept)
            if removed:
                self._commit(kept)
                logger.info(
                    "bom_product_deleted",
                    extra={"product_code": product_code, "record_count": removed},
                )
            return removed
