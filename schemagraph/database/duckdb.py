"""DuckDB backend adapter."""

import re
from typing import List, Set, Tuple

from .base import BackendAdapter, Capability, RelType
from .models import Column, ForeignKey, Index, IndexColumn, Table
from .type_mappers import DuckDBTypeMapper

_INDEX_COLUMNS_RE = re.compile(r"\((.*)\)\s*;?\s*$", re.DOTALL)


class DuckDBAdapter(BackendAdapter):
    """Adapter reading DuckDB's ``duckdb_*()`` catalog functions.

    Primary keys and unique constraints are enforced by internal ART indexes
    that ``duckdb_indexes()`` does not list, so only explicit CREATE INDEX
    statements are reported as indexes.
    """

    ENGINE = "duckdb"
    TYPE_MAPPER = DuckDBTypeMapper
    CAPABILITIES = frozenset({
        Capability.SCHEMA_DISCOVERY,
        Capability.SEQUENCES,
        Capability.QUERY_INTROSPECTION,
    })

    RELKINDS = {RelType.TABLE: "BASE TABLE", RelType.VIEW: "VIEW"}

    def relkind(self, rel_type: RelType) -> str:
        return self.RELKINDS[rel_type]

    def schema_name(self) -> str:
        row = self._fetch_one("SELECT current_schema()")
        return row[0] if row else "main"

    def tables(self, schema: str, relkind: str) -> List[Table]:
        rows = self._fetch_all("""
            SELECT table_type, table_name
            FROM information_schema.tables
            WHERE table_catalog = current_database()
              AND table_schema = ?
              AND table_type = ?
            ORDER BY table_name
        """, (schema, relkind))
        return [Table(name=row[1], type=row[0]) for row in rows]

    def sequence_tables(self, schema: str) -> List[str]:
        rows = self._fetch_all("""
            SELECT DISTINCT table_name
            FROM duckdb_columns()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND column_default LIKE 'nextval(%'
        """, (schema,))
        return [row[0] for row in rows]

    def _primary_keys(self, schema: str, table: str) -> Set[str]:
        """Get primary key column names from duckdb_constraints()."""
        rows = self._fetch_all("""
            SELECT constraint_column_names
            FROM duckdb_constraints()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
              AND constraint_type = 'PRIMARY KEY'
        """, (schema, table))
        keys = set()
        for row in rows:
            names = row[0]
            keys.update(names if isinstance(names, list) else [names])
        return keys

    def columns(self, schema: str, table: str) -> List[Column]:
        rows = self._fetch_all("""
            SELECT ordinal_position, column_name, data_type, is_nullable, column_default
            FROM information_schema.columns
            WHERE table_catalog = current_database()
              AND table_schema = ?
              AND table_name = ?
            ORDER BY ordinal_position
        """, (schema, table))
        pks = self._primary_keys(schema, table)
        return [
            Column(
                ordinal=row[0],
                name=row[1],
                data_type=row[2],
                not_null=row[3] == "NO",
                default_value=row[4],
                is_primary_key=row[1] in pks,
            )
            for row in rows
        ]

    def foreign_keys(self, schema: str, table: str) -> List[ForeignKey]:
        rows = self._fetch_all("""
            SELECT constraint_name, constraint_column_names, referenced_table, referenced_column_names
            FROM duckdb_constraints()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
              AND constraint_type = 'FOREIGN KEY'
            ORDER BY constraint_index
        """, (schema, table))
        foreign_keys = []
        for name, columns, ref_table, ref_columns in rows:
            ref_columns = ref_columns or []
            for i, column in enumerate(columns):
                ref_column = ref_columns[i] if i < len(ref_columns) else ""
                foreign_keys.append(ForeignKey(
                    name=name or "",
                    column_name=column,
                    ref_table_name=ref_table,
                    ref_column_name=ref_column,
                ))
        return foreign_keys

    def indexes(self, schema: str, table: str) -> List[Index]:
        rows = self._fetch_all("""
            SELECT index_name, is_unique, is_primary
            FROM duckdb_indexes()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
            ORDER BY index_name
        """, (schema, table))
        return [Index(name=row[0], is_unique=bool(row[1]), is_primary=bool(row[2])) for row in rows]

    def _index_definition(self, schema: str, index: str) -> Tuple[str, List[str]]:
        """Get an index's table and key column names, parsed from its DDL."""
        row = self._fetch_one("""
            SELECT table_name, sql
            FROM duckdb_indexes()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND index_name = ?
        """, (schema, index))
        if not row:
            return "", []
        m = _INDEX_COLUMNS_RE.search(row[1] or "")
        if not m:
            return row[0], []
        names = [part.strip().strip('"') for part in m.group(1).split(",")]
        return row[0], [n for n in names if n]

    def _column_ids(self, schema: str, table: str) -> dict:
        return {c.name: c.ordinal for c in self.columns(schema, table)}

    def index_columns(self, schema: str, table: str, index: str) -> List[IndexColumn]:
        _, names = self._index_definition(schema, index)
        column_ids = self._column_ids(schema, table)
        return [
            IndexColumn(seq_no=i, cid=column_ids[name], column_name=name)
            for i, name in enumerate(names)
            if name in column_ids
        ]

    def index_column_order(self, schema: str, index: str) -> str:
        table, names = self._index_definition(schema, index)
        column_ids = self._column_ids(schema, table)
        # expressions have no column id
        return " ".join(str(column_ids[name]) for name in names if name in column_ids)

    def create_view_sql(self, view: str, statement: str) -> str:
        return f"CREATE VIEW {view} AS {statement}"

    def view_schema(self, view: str) -> str:
        row = self._fetch_one("""
            SELECT schema_name
            FROM duckdb_views()
            WHERE database_name = current_database() AND view_name = ?
        """, (view,))
        return row[0] if row else "main"
