"""
mes_services.line_registry -- Production line registry.

Responsibility:
    Keep the list of physical production lines (machines) and the process
    each belongs to.  Scan screens pick a line filtered by process.

Architecture position:
    Services -- built on RecordCollection from mes_services.master_data.

Invariants enforced:
    - A store that has never held the lines key is seeded with the
      configured default lines on first use; the seed is persisted with
      the first mutation.  A saved empty list stays empty.
    - New lines are active and get id = max(ids) + 1.

Failure modes:
    - LineNotFoundError from update_line() of an unknown id.
      set_line_active() and delete_line() ignore unknown ids.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from mes_kernel.domain.clock import Clock
from mes_kernel.domain.master_data import ProductionLine
from mes_kernel.exceptions import LineNotFoundError
from mes_kernel.logging_config import get_logger
from mes_kernel.storage.collection import CollectionStore
from mes_services.master_data import RecordCollection

logger = get_logger("services.line_registry")


class LineRegistry(RecordCollection[ProductionLine]):
    record_type = ProductionLine
    collection_name = "line"

    def __init__(
        self,
        store: CollectionStore,
        seed_lines: Sequence[ProductionLine] = (),
        clock: Clock | None = None,
        timezone: str = "UTC",
    ):
        super().__init__(store, clock, timezone)
        self._seed_lines = tuple(seed_lines)

    def _initial_records(self) -> tuple[ProductionLine, ...]:
        if self._seed_lines:
            logger.info("line_registry_seeded", extra={"line_count": len(self._seed_lines)})
        return self._seed_lines

    def _stamp(self, record: ProductionLine, record_id: int, today: str) -> ProductionLine:
        return replace(record, id=record_id)

    def get_lines(self) -> list[ProductionLine]:
        return self.all()

    def get_lines_by_process(self, process_code: str) -> list[ProductionLine]:
        code = (process_code or "").upper()
        return [line for line in self.all() if line.process_code == code]

    def create_line(self, code: str, name: str, process_code: str) -> ProductionLine:
        return self.add(ProductionLine(
            code=code,
            name=name,
            process_code=process_code.upper(),
            is_active=True,
        ))

    def update_line(self, line_id: int, **changes: Any) -> ProductionLine:
        with self._lock:
            existing = self.get(line_id)
            if existing is None:
                raise LineNotFoundError(line_id)
            changes.pop("id", None)
            return self.update(replace(existing, **changes))

    def set_line_active(self, line_id: int, is_active: bool) -> ProductionLine | None:
        with self._lock:
            existing = self.get(line_id)
            if existing is None:
                return None
            return self.update(replace(existing, is_active=is_active))

    def delete_line(self, line_id: int) -> bool:
        return self.delete(line_id)
