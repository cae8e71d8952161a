"""BOM level derivation, grouping tree and import mapping."""

from mes_engines.bom.grouping import (
    UNASSIGNED_CRIMP_CODE,
    BOMGroup,
    CrimpGroup,
    LevelGroup,
    group_bom_items,
)
from mes_engines.bom.import_mapping import map_bom_import_row, map_bom_import_rows
from mes_engines.bom.levels import (
    PROCESS_LEVELS,
    PROCESS_NAMES,
    determine_level,
    get_process_name,
)

__all__ = [
    "determine_level",
    "get_process_name",
    "PROCESS_LEVELS",
    "PROCESS_NAMES",
    "group_bom_items",
    "BOMGroup",
    "LevelGroup",
    "CrimpGroup",
    "UNASSIGNED_CRIMP_CODE",
    "map_bom_import_row",
    "map_bom_import_rows",
]
