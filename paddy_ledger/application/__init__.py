"""
Application layer - use cases, DTOs and service factories.

Use cases coordinate core services with the configured ledger store and are
the entry point for the command-line interface.
"""
