"""
mes_services.bootstrap -- Build the MES services from configuration.

Responsibility:
    Pick the snapshot store named by the configuration, then construct the
    stock ledger and the master-data collections on top of it with one
    shared clock.

Architecture position:
    Services -- composition root.  The only module that reads MesConfig
    and touches the database engine lifecycle.

Usage:
    services = build_services()
    try:
        services.ledger.register_process_stock(...)
    finally:
        services.close()
"""

from __future__ import annotations

from dataclasses import dataclass

from mes_config import MesConfig, get_active_config
from mes_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from mes_kernel.domain.clock import Clock, SystemClock
from mes_kernel.domain.master_data import ProductionLine
from mes_kernel.logging_config import get_logger
from mes_kernel.storage.blob_store import BlobStore, InMemoryBlobStore, SqlBlobStore
from mes_kernel.storage.collection import CollectionStore
from mes_services.line_registry import LineRegistry
from mes_services.master_data import BOMCollection, MaterialCollection, ProductCollection
from mes_services.stock_ledger import StockLedger

logger = get_logger("services.bootstrap")


@dataclass
class MesServices:
    """The assembled services sharing one store and one clock."""

    ledger: StockLedger
    materials: MaterialCollection
    products: ProductCollection
    bom: BOMCollection
    lines: LineRegistry
    store: BlobStore
    owns_engine: bool = False

    def close(self) -> None:
        for service in (self.ledger, self.materials, self.products, self.bom, self.lines):
            service.close()
        self.store.close()
        if self.owns_engine:
            reset_engine()
        logger.info("mes_services_closed")


def build_blob_store(config: MesConfig) -> BlobStore:
    """Create the store named by ``config.storage``.

    The ``sql`` backend initializes the module-level engine and creates
    the snapshot table.
    """
    storage = config.storage
    match storage.backend:
        case "memory":
            return InMemoryBlobStore()
        case "sql":
            init_engine_from_url(storage.url, echo=storage.echo)
            create_tables()
            return SqlBlobStore(get_session_factory())
        case _:
            raise ValueError(f"Unknown storage backend: {storage.backend}")


def _seed_lines(config: MesConfig) -> list[ProductionLine]:
    return [
        ProductionLine(
            id=i,
            code=seed.code,
            name=seed.name,
            process_code=seed.process_code,
            is_active=seed.is_active,
        )
        for i, seed in enumerate(config.lines, start=1)
    ]


def build_services(
    config: MesConfig | None = None,
    store: BlobStore | None = None,
    clock: Clock | None = None,
) -> MesServices:
    """Wire the ledger and collections.

    Args:
        config: Defaults to ``get_active_config()``.
        store: Overrides the configured store (the caller keeps ownership
            of any engine behind it).
        clock: Defaults to SystemClock.
    """
    config = config or get_active_config()
    clock = clock or SystemClock()
    owns_engine = store is None and config.storage.backend == "sql"
    store = store or build_blob_store(config)

    keys = config.storage.keys
    tz = config.ledger.timezone

    services = MesServices(
        ledger=StockLedger(CollectionStore(store, keys.stocks), clock, tz),
        materials=MaterialCollection(
            CollectionStore(store, keys.materials),
            clock,
            tz,
            danger_ratio=config.material_status.danger_ratio,
        ),
        products=ProductCollection(CollectionStore(store, keys.products), clock, tz),
        bom=BOMCollection(CollectionStore(store, keys.bom), clock, tz),
        lines=LineRegistry(
            CollectionStore(store, keys.lines),
            seed_lines=_seed_lines(config),
            clock=clock,
            timezone=tz,
        ),
        store=store,
        owns_engine=owns_engine,
    )
    logger.info(
        "mes_services_built",
        extra={
            "profile": config.profile,
            "storage_backend": type(store).__name__,
            "timezone": tz,
        },
    )
    return services
