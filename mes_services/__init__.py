"""
mes_services -- Stateful services over the MES kernel and engines.

    StockLedger          process-scoped lot registration and FIFO consumption
    MaterialCollection   materials, with stock status
    ProductCollection    products
    BOMCollection        BOM rows and their grouping tree
    LineRegistry         production lines per process
    build_services       wire everything from a MesConfig
"""

from mes_services.bootstrap import MesServices, build_blob_store, build_services
from mes_services.line_registry import LineRegistry
from mes_services.master_data import (
    BOMCollection,
    MaterialCollection,
    ProductCollection,
    RecordCollection,
)
from mes_services.stock_ledger import StockLedger

__all__ = [
    "StockLedger",
    "RecordCollection",
    "MaterialCollection",
    "ProductCollection",
    "BOMCollection",
    "LineRegistry",
    "MesServices",
    "build_blob_store",
    "build_services",
]
