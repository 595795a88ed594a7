"""SQLite backend adapter."""

from typing import List

from .base import BackendAdapter, Capability, RelType
from .models import Column, ForeignKey, Index, IndexColumn, Table
from .type_mappers import SQLiteTypeMapper


class SQLiteAdapter(BackendAdapter):
    """Adapter reading sqlite_master and the pragma table-valued functions.

    SQLite has a single namespace per attached database, so the schema
    argument is ignored. A rowid alias (``INTEGER PRIMARY KEY``) is not
    listed by ``index_list``; the graph builder synthesizes its index.
    """

    ENGINE = "sqlite"
    TYPE_MAPPER = SQLiteTypeMapper
    CAPABILITIES = frozenset({
        Capability.SCHEMA_DISCOVERY,
        Capability.SEQUENCES,
        Capability.AUTO_INCREMENTS,
        Capability.QUERY_INTROSPECTION,
    })

    RELKINDS = {RelType.TABLE: "table", RelType.VIEW: "view"}

    def relkind(self, rel_type: RelType) -> str:
        return self.RELKINDS[rel_type]

    def schema_name(self) -> str:
        return "main"

    def tables(self, schema: str, relkind: str) -> List[Table]:
        rows = self._fetch_all("""
            SELECT type, tbl_name
            FROM sqlite_master
            WHERE type = ? AND tbl_name NOT LIKE 'sqlite_%'
            ORDER BY tbl_name
        """, (relkind,))
        return [Table(name=row[1], type=row[0]) for row in rows]

    def sequence_tables(self, schema: str) -> List[str]:
        rows = self._fetch_all("""
            SELECT tbl_name
            FROM sqlite_master
            WHERE type = 'table' AND UPPER(sql) LIKE '%AUTOINCREMENT%'
        """)
        return [row[0] for row in rows]

    def auto_increment_tables(self, schema: str) -> List[str]:
        """Tables whose single primary key column is a rowid alias."""
        rows = self._fetch_all("""
            SELECT m.tbl_name
            FROM sqlite_master m, pragma_table_info(m.tbl_name) p
            WHERE m.type = 'table' AND p.pk > 0
            GROUP BY m.tbl_name
            HAVING COUNT(*) = 1 AND UPPER(MAX(p.type)) = 'INTEGER'
        """)
        return [row[0] for row in rows]

    def columns(self, schema: str, table: str) -> List[Column]:
        rows = self._fetch_all("""
            SELECT cid, name, type, "notnull", dflt_value, pk
            FROM pragma_table_info(?)
            ORDER BY cid
        """, (table,))
        return [
            Column(
                ordinal=row[0],
                name=row[1],
                data_type=row[2] or "",
                not_null=bool(row[3]) or row[5] > 0,
                default_value=row[4],
                is_primary_key=row[5] > 0,
            )
            for row in rows
        ]

    def foreign_keys(self, schema: str, table: str) -> List[ForeignKey]:
        rows = self._fetch_all("""
            SELECT id, seq, "table", "from", "to"
            FROM pragma_foreign_key_list(?)
            ORDER BY id, seq
        """, (table,))
        # SQLite foreign keys are unnamed; names are synthesized downstream
        return [
            ForeignKey(name="", column_name=row[3], ref_table_name=row[2], ref_column_name=row[4] or "")
            for row in rows
        ]

    def indexes(self, schema: str, table: str) -> List[Index]:
        rows = self._fetch_all("""
            SELECT name, "unique", origin
            FROM pragma_index_list(?)
            ORDER BY name
        """, (table,))
        return [
            Index(name=row[0], is_unique=bool(row[1]), is_primary=row[2] == "pk", origin=row[2])
            for row in rows
        ]

    def index_columns(self, schema: str, table: str, index: str) -> List[IndexColumn]:
        rows = self._fetch_all("""
            SELECT seqno, cid, name
            FROM pragma_index_info(?)
            WHERE cid >= 0
        """, (index,))
        return [IndexColumn(seq_no=row[0], cid=row[1], column_name=row[2]) for row in rows]

    def index_column_order(self, schema: str, index: str) -> str:
        rows = self._fetch_all("""
            SELECT cid
            FROM pragma_index_info(?)
            WHERE cid >= 0
            ORDER BY seqno
        """, (index,))
        return " ".join(str(row[0]) for row in rows)

    def create_view_sql(self, view: str, statement: str) -> str:
        # SQLite does not accept a parenthesized select as a view body
        return f"CREATE VIEW {view} AS {statement}"

    def view_schema(self, view: str) -> str:
        return "main"
