"""Database catalog access for schemagraph.

This module provides the backend adapter contract with implementations
for PostgreSQL, CockroachDB, SQLite, DuckDB and Oracle.
"""

from .models import Column, Table, ForeignKey, Index, IndexColumn, Enum, EnumValue, Proc, ProcParam
from .base import BackendAdapter, Capability, RelType
from .type_mappers import (
    TypeMapper,
    TypeMode,
    TypeResolution,
    PostgresTypeMapper,
    SQLiteTypeMapper,
    DuckDBTypeMapper,
    OracleTypeMapper,
)
from .postgres import PostgresAdapter
from .cockroach import CockroachAdapter
from .sqlite import SQLiteAdapter
from .duckdb import DuckDBAdapter
from .oracle import OracleAdapter
from .registry import AdapterRegistry, default_registry

__all__ = [
    # Catalog rows
    "Column",
    "Table",
    "ForeignKey",
    "Index",
    "IndexColumn",
    "Enum",
    "EnumValue",
    "Proc",
    "ProcParam",
    # Base classes
    "BackendAdapter",
    "Capability",
    "RelType",
    # Type mappers
    "TypeMapper",
    "TypeMode",
    "TypeResolution",
    "PostgresTypeMapper",
    "SQLiteTypeMapper",
    "DuckDBTypeMapper",
    "OracleTypeMapper",
    # Adapters
    "PostgresAdapter",
    "CockroachAdapter",
    "SQLiteAdapter",
    "DuckDBAdapter",
    "OracleAdapter",
    # Registry
    "AdapterRegistry",
    "default_registry",
]
