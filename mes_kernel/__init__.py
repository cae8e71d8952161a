"""
MES Kernel - process-scoped material stock core.

Shared foundation for the harness MES back end:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clocks
- Pure domain records (stock lots, master data)
- Storage port with in-memory and SQLAlchemy adapters
"""

__version__ = "0.1.0"
