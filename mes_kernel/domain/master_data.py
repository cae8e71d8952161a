"""
Master-data records: materials, products, BOM rows and production lines.

Plain frozen records with an auto-increment ``id`` and a ``reg_date``
stamp, both assigned by the owning collection.  ``to_record`` /
``from_record`` map to the camelCase JSON shape kept in the store.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, ClassVar

from mes_kernel.domain.values import to_quantity


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class _CamelRecord:
    """Mixin giving dataclass records the camelCase persisted shape."""

    _DECIMAL_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def __post_init__(self) -> None:
        for name in self._DECIMAL_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Decimal):
                object.__setattr__(self, name, to_quantity(value))

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                record[_camel(f.name)] = value
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]):
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            value = record.get(_camel(f.name))
            if value is not None:
                kwargs[f.name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class Material(_CamelRecord):
    """Raw or auxiliary material master record."""

    _DECIMAL_FIELDS: ClassVar[frozenset[str]] = frozenset({"stock", "safe_stock"})

    code: str
    name: str
    spec: str = ""
    category: str = ""
    unit: str = "EA"
    stock: Decimal = Decimal("0")
    safe_stock: Decimal = Decimal("0")
    desc: str = ""
    id: int = 0
    reg_date: str = ""


@dataclass(frozen=True)
class Product(_CamelRecord):
    """Finished or semi-finished product master record."""

    code: str
    name: str
    type: str = "FINISHED"
    spec: str | None = None
    process_code: str | None = None
    crimp_code: str | None = None
    description: str | None = None
    id: int = 0
    reg_date: str = ""


@dataclass(frozen=True)
class BOMItem(_CamelRecord):
    """
    One row of a flattened bill of materials.

    ``level`` is derived from ``process_code`` by the BOM collection when
    left as None.  ``crimp_code`` only means something for CA rows.
    """

    _DECIMAL_FIELDS: ClassVar[frozenset[str]] = frozenset({"quantity"})

    product_code: str
    material_code: str
    material_name: str = ""
    quantity: Decimal = Decimal("1")
    unit: str = "EA"
    process_code: str = ""
    level: int | None = None
    crimp_code: str | None = None
    product_name: str | None = None
    description: str | None = None
    id: int = 0
    reg_date: str = ""


@dataclass(frozen=True)
class ProductionLine(_CamelRecord):
    """A physical line (machine) belonging to one process."""

    code: str
    name: str
    process_code: str
    is_active: bool = True
    id: int = 0
