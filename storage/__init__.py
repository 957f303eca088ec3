"""Storage Module - farm-scoped persistence."""

from storage.base import DomainRecord, FarmDataStore
from storage.farm_store import (
    DEFAULT_DB_PATH,
    RECORD_TABLES,
    SQLiteFarmStore,
    from_iso,
    to_iso,
)
from storage.records import RECORD_TABLE_BY_KIND, build_records

__all__ = [
    "DomainRecord",
    "FarmDataStore",
    "DEFAULT_DB_PATH",
    "RECORD_TABLES",
    "SQLiteFarmStore",
    "from_iso",
    "to_iso",
    "RECORD_TABLE_BY_KIND",
    "build_records",
]
