"""Persistence adapters (PostgreSQL via psycopg2, in-memory)."""

from .memory import InMemoryMeterDirectory, InMemoryReadingStore
from .reading_store import PgMeterDirectory, PgReadingStore

__all__ = [
    "InMemoryMeterDirectory",
    "InMemoryReadingStore",
    "PgMeterDirectory",
    "PgReadingStore",
]
