"""
Module: mes_engines.bom.grouping
Responsibility:
    Turn flat BOM rows into the product -> level -> crimp-group tree shown
    by the BOM screens.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Product groups are sorted by product_code; levels ascend 1..4 and
      only levels with at least one item appear.
    - Only level 4 carries crimp groups; a missing or empty crimp code is
      grouped under UNASSIGNED_CRIMP_CODE.
    - Items keep their input order inside every group.
    - total_items counts every item of the product.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mes_engines.bom.levels import BOM_LEVELS, determine_level, get_process_name
from mes_engines.tracer import traced_engine
from mes_kernel.domain.master_data import BOMItem

UNASSIGNED_CRIMP_CODE = "(미지정)"
CRIMP_LEVEL = 4


@dataclass(frozen=True, slots=True)
class CrimpGroup:
    crimp_code: str
    items: tuple[BOMItem, ...]


@dataclass(frozen=True, slots=True)
class LevelGroup:
    level: int
    process_code: str
    process_name: str
    items: tuple[BOMItem, ...]
    crimp_groups: tuple[CrimpGroup, ...] | None = None


@dataclass(frozen=True, slots=True)
class BOMGroup:
    product_code: str
    product_name: str | None
    level_groups: tuple[LevelGroup, ...]
    total_items: int

    def level(self, level: int) -> LevelGroup | None:
        for group in self.level_groups:
            if group.level == level:
                return group
        return None


def _item_level(item: BOMItem) -> int:
    if item.level is not None:
        return item.level
    return determine_level(item.process_code)


def _crimp_groups(items: Sequence[BOMItem]) -> tuple[CrimpGroup, ...]:
    by_code: dict[str, list[BOMItem]] = {}
    for item in items:
        by_code.setdefault(item.crimp_code or UNASSIGNED_CRIMP_CODE, []).append(item)
    return tuple(
        CrimpGroup(crimp_code=code, items=tuple(by_code[code]))
        for code in sorted(by_code)
    )


def _level_groups(items: Sequence[BOMItem]) -> tuple[LevelGroup, ...]:
    by_level: dict[int, list[BOMItem]] = {}
    for item in items:
        by_level.setdefault(_item_level(item), []).append(item)

    groups: list[LevelGroup] = []
    for level in BOM_LEVELS:
        members = by_level.get(level)
        if not members:
            continue
        process_code = (members[0].process_code or "").upper()
        groups.append(LevelGroup(
            level=level,
            process_code=process_code,
            process_name=get_process_name(process_code),
            items=tuple(members),
            crimp_groups=_crimp_groups(members) if level == CRIMP_LEVEL else None,
        ))
    return tuple(groups)


@traced_engine("bom_grouping", "1.0")
def group_bom_items(items: Sequence[BOMItem]) -> list[BOMGroup]:
    """Group BOM rows by product, then level, then (level 4) crimp code."""
    by_product: dict[str, list[BOMItem]] = {}
    for item in items:
        by_product.setdefault(item.product_code, []).append(item)

    return [
        BOMGroup(
            product_code=code,
            product_name=by_product[code][0].product_name,
            level_groups=_level_groups(by_product[code]),
            total_items=len(by_product[code]),
        )
        for code in sorted(by_product)
    ]
