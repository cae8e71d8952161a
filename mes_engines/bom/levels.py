"""
Module: mes_engines.bom.levels
Responsibility:
    Map a production process code to its fixed BOM depth and display name.

Architecture position:
    Engines -- pure lookup tables, zero I/O.

Invariants enforced:
    - Lookups are case-insensitive.
    - Unknown, empty and None codes map to level 1.
"""

from __future__ import annotations

from types import MappingProxyType

DEFAULT_LEVEL = 1
UNASSIGNED_PROCESS_NAME = "기타"

# PA is the finished-product assembly (top of the tree); CA is the
# automatic cut-and-crimp of wires (bottom).
PROCESS_LEVELS = MappingProxyType({
    "PA": 1,
    "MC": 2,
    "SB": 3,
    "MS": 3,
    "CA": 4,
})

PROCESS_NAMES = MappingProxyType({
    "PA": "제품조립",
    "MC": "수동압착",
    "SB": "서브조립",
    "MS": "중간탈피",
    "CA": "자동절단압착",
})

BOM_LEVELS = (1, 2, 3, 4)


def determine_level(process_code: str | None) -> int:
    """BOM level (1-4) for ``process_code``."""
    if not process_code:
        return DEFAULT_LEVEL
    return PROCESS_LEVELS.get(process_code.upper(), DEFAULT_LEVEL)


def get_process_name(process_code: str | None) -> str:
    """Display name for ``process_code``; unknown codes are echoed back."""
    if not process_code:
        return UNASSIGNED_PROCESS_NAME
    return PROCESS_NAMES.get(process_code.upper(), process_code)
