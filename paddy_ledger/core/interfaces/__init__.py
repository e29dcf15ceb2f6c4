"""Core interfaces (ports) for dependency injection."""

from paddy_ledger.core.interfaces.ledger_store import (
    ILedgerReader,
    ILedgerStore,
    ILedgerTransaction,
)

__all__ = [
    "ILedgerReader",
    "ILedgerTransaction",
    "ILedgerStore",
]
