"""
Module: mes_engines.bom.import_mapping
Responsibility:
    Map already-parsed BOM import rows (``productCode``, ``itemCode``,
    ``quantity``, ``unit``, ``processCode``, ``crimpCode``) to BOMItem
    records ready for BOMCollection.add_many().

Architecture position:
    Engines -- pure calculation layer, zero I/O.  File parsing happens in
    the caller.

Invariants enforced:
    - process_code is upper-cased; missing becomes ''.
    - material_code and material_name both come from ``itemCode``.
    - quantity defaults to 1 when missing or zero; unit defaults to EA.
    - crimp_code is kept for CA rows only.
    - level = determine_level(process_code).

Failure modes:
    - ValueError if ``quantity`` is present but not numeric.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from mes_engines.bom.levels import determine_level
from mes_engines.tracer import traced_engine
from mes_kernel.domain.master_data import BOMItem
from mes_kernel.domain.values import to_quantity
from mes_kernel.logging_config import get_logger

logger = get_logger("engines.bom.import_mapping")

CRIMP_PROCESS_CODE = "CA"
DEFAULT_UNIT = "EA"


def _quantity(raw: Any) -> Decimal:
    if raw is None or raw == "":
        return Decimal("1")
    quantity = to_quantity(raw)
    return quantity or Decimal("1")


def map_bom_import_row(row: Mapping[str, Any]) -> BOMItem:
    process_code = (row.get("processCode") or "").upper()
    item_code = row.get("itemCode") or ""
    return BOMItem(
        product_code=row.get("productCode") or "",
        material_code=item_code,
        material_name=item_code,
        quantity=_quantity(row.get("quantity")),
        unit=row.get("unit") or DEFAULT_UNIT,
        process_code=process_code,
        level=determine_level(process_code),
        crimp_code=(row.get("crimpCode") or None) if process_code == CRIMP_PROCESS_CODE else None,
    )


@traced_engine("bom_import_mapping", "1.0")
def map_bom_import_rows(rows: Iterable[Mapping[str, Any]]) -> list[BOMItem]:
    """Map every row; see the module docstring for the field rules."""
    items = [map_bom_import_row(row) for row in rows]
    logger.info("bom_import_rows_mapped", extra={"row_count": len(items)})
    return items
