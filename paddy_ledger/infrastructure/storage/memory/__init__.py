"""In-memory storage implementation."""

from paddy_ledger.infrastructure.storage.memory.ledger_store import InMemoryLedgerStore

__all__ = ["InMemoryLedgerStore"]
