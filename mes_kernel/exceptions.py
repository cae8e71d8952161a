"""
Typed Exception Hierarchy for the MES Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Scan screens react differently to "pick a process first", "this barcode is
already used up" and "the store is unavailable". Matching on message text
ties the UI to wording; every error here instead has:
  1. a TYPED exception class (catch by type, not message)
  2. a CODE attribute (machine-readable, UI-safe)
  3. structured DATA (not just a message string)

Example - WRONG way to handle errors:
    result = ledger.register_process_stock(...)
    if "fully used" in result.error:     # FRAGILE - message might change
        beep()

Example - RIGHT way:
    if result.error_code is StockErrorKind.LOT_EXHAUSTED:
        beep()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from MesKernelError:

    MesKernelError (base)
    |
    +-- StockError
    |   +-- MissingProcessError
    |   +-- MissingLotError
    |   +-- InvalidQuantityError
    |   +-- InvalidReceivedAtError
    |   +-- LotExhaustedError
    |
    +-- StorageError
    |   +-- StorageReadError
    |   +-- StorageWriteError
    |
    +-- RecordError
        +-- RecordNotFoundError
        +-- LineNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                   | When Raised
-----------|------------------------|------------------------------------------
Stock      | MISSING_PROCESS        | Registration without a process code
           | MISSING_LOT            | Registration without a lot number
           | INVALID_QUANTITY       | Negative registration quantity
           | LOT_EXHAUSTED          | Re-scan of a lot whose stock is used up
           | INVALID_RECEIVED_AT    | Unparseable receiving timestamp
-----------|------------------------|------------------------------------------
Storage    | STORAGE_READ_FAILED    | Snapshot unreadable or not valid JSON
           | STORAGE_WRITE_FAILED   | Snapshot could not be serialized/written
-----------|------------------------|------------------------------------------
Record     | RECORD_NOT_FOUND       | Update of a master-data id that is absent
           | LINE_NOT_FOUND         | Update of a production line that is absent

===============================================================================
HANDLING PATTERNS
===============================================================================

1. STOCK ERRORS ARE RESULTS, NOT FAULTS:

    StockLedger.register_process_stock catches StockError and returns
    RegistrationResult.failure(...). The exception classes still exist so
    that validation has a single typed source and the result carries
    `error_code`.

2. STORAGE ERRORS PROPAGATE:

    try:
        ledger.consume_process_stock("CA", 1, 50)
    except StorageWriteError as e:
        show_banner(f"Could not save ({e.key})")
        # ledger state is unchanged; retry is safe

3. ABSENCE IS NOT AN ERROR:

    Query methods return None / [] / zero summaries for unknown process
    codes and lot numbers.

===============================================================================
"""


class MesKernelError(Exception):
    """
    Base exception for all MES kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "MES_KERNEL_ERROR"


# Stock ledger exceptions


class StockError(MesKernelError):
    """Base exception for stock registration errors."""

    code: str = "STOCK_ERROR"


class MissingProcessError(StockError):
    """Registration attempted without selecting a process."""

    code: str = "MISSING_PROCESS"

    def __init__(self, lot_number: str | None = None):
        self.lot_number = lot_number
        super().__init__("Process code is required: select a process before scanning")


class MissingLotError(StockError):
    """Registration attempted without a lot number."""

    code: str = "MISSING_LOT"

    def __init__(self, process_code: str | None = None):
        self.process_code = process_code
        super().__init__("LOT number is required")


class InvalidQuantityError(StockError):
    """Registration quantity is negative or not a number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: str, lot_number: str | None = None):
        self.quantity = quantity
        self.lot_number = lot_number
        super().__init__(f"Invalid quantity: {quantity} (must be zero or greater)")


class InvalidReceivedAtError(StockError):
    """Registration timestamp is not an ISO-8601 date-time."""

    code: str = "INVALID_RECEIVED_AT"

    def __init__(self, received_at: str, lot_number: str | None = None):
        self.received_at = received_at
        self.lot_number = lot_number
        super().__init__(f"Invalid receiving time: {received_at!r}")


class LotExhaustedError(StockError):
    """
    Lot has been fully consumed in this process.

    A barcode whose whole allotment was used once cannot be scanned in again.
    """

    code: str = "LOT_EXHAUSTED"

    def __init__(self, process_code: str, lot_number: str, used_qty: str):
        self.process_code = process_code
        self.lot_number = lot_number
        self.used_qty = used_qty
        super().__init__(
            f"Barcode already fully used: lot {lot_number} in process "
            f"{process_code} has no remaining quantity (used {used_qty})"
        )


# Storage exceptions


class StorageError(MesKernelError):
    """Base exception for storage adapter failures."""

    code: str = "STORAGE_ERROR"


class StorageReadError(StorageError):
    """Snapshot could not be read or decoded."""

    code: str = "STORAGE_READ_FAILED"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not read collection {key}: {reason}")


class StorageWriteError(StorageError):
    """Snapshot could not be serialized or written."""

    code: str = "STORAGE_WRITE_FAILED"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not write collection {key}: {reason}")


# Master data exceptions


class RecordError(MesKernelError):
    """Base exception for master-data collection errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """Record with given id does not exist in the collection."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, collection: str, record_id: int):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")


class LineNotFoundError(RecordError):
    """Production line with given id does not exist."""

    code: str = "LINE_NOT_FOUND"

    def __init__(self, line_id: int):
        self.line_id = line_id
        super().__init__(f"Line not found: {line_id}")
