"""
Module: mes_engines
Responsibility:
    Pure calculation engines: FIFO depletion planning, BOM level/grouping
    and import mapping, material stock classification.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import mes_kernel/domain (and sibling engine modules).
    MUST NOT import mes_services.

Invariants enforced:
    - Engines NEVER read the clock; timestamps are passed in.
    - Decimal-only quantity arithmetic.
    - Identical inputs always produce identical outputs.

Every public engine entry point is wrapped by ``@traced_engine`` and emits
a MES_ENGINE_TRACE log record.
"""

from mes_engines.bom import (
    BOMGroup,
    CrimpGroup,
    LevelGroup,
    determine_level,
    get_process_name,
    group_bom_items,
    map_bom_import_rows,
)
from mes_engines.fifo import FifoCandidate, FifoDraw, FifoPlan, plan_fifo_depletion
from mes_engines.material_status import MaterialStatus, classify_material_stock

__all__ = [
    "FifoCandidate",
    "FifoDraw",
    "FifoPlan",
    "plan_fifo_depletion",
    "determine_level",
    "get_process_name",
    "group_bom_items",
    "map_bom_import_rows",
    "BOMGroup",
    "LevelGroup",
    "CrimpGroup",
    "MaterialStatus",
    "classify_material_stock",
]
