"""
Module: mes_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy models backing the
    snapshot store.  Provides the type annotation map for consistent column
    types.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, storage/, domain/, or outer layers.

Invariants enforced:
    - datetime maps to DateTime(timezone=True); stored timestamps are
      always timezone-aware.
    - Integer primary keys are autoincrementing.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrementing integer primary key.
        - datetime maps to DateTime(timezone=True).
        - str maps to Text unless a model narrows it.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: Text,
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
