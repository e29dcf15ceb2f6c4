"""Core domain layer - entities, interfaces, services and exceptions."""

from paddy_ledger.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
