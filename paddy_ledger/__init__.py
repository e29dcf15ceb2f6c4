"""Paddy stock ledger with weighted-average rate tracking."""

__version__ = "1.0.0"
