"""PostgreSQL backend adapter."""

import logging
import re
from typing import Any, Dict, List

from .base import BackendAdapter, Capability, RelType
from .models import Column, Enum, EnumValue, ForeignKey, Index, IndexColumn, Proc, ProcParam, Table
from .type_mappers import PostgresTypeMapper

logger = logging.getLogger(__name__)

# matches the '::type AS name' portion generated queries must not carry
_QUERY_STRIP_RE = re.compile(r"::[a-z][a-z0-9_.]+\s+AS\s+[a-z][a-z0-9_.]+", re.IGNORECASE)


def _name_json_types(columns: List[Column]):
    for column in columns:
        if column.data_type in ("json", "jsonb"):
            column.data_type = column.name


class PostgresAdapter(BackendAdapter):
    """Adapter reading the pg_catalog of a PostgreSQL database."""

    ENGINE = "postgres"
    TYPE_MAPPER = PostgresTypeMapper
    CAPABILITIES = frozenset({
        Capability.SCHEMA_DISCOVERY,
        Capability.ENUMS,
        Capability.PROCEDURES,
        Capability.SEQUENCES,
        Capability.QUERY_INTROSPECTION,
        Capability.QUERY_STRIP,
    })

    RELKINDS = {RelType.TABLE: "r", RelType.VIEW: "v"}

    def __init__(self, connection: Any, type_mapper=None, include_oids: bool = False, enable_json: bool = False):
        """Initialize PostgreSQL adapter.

        Args:
            connection: psycopg2 connection
            type_mapper: Type mapper to use
            include_oids: Include system columns (attnum <= 0) in column lists
            enable_json: Type json and jsonb columns by their column name
        """
        super().__init__(connection, type_mapper)
        self.include_oids = include_oids
        self.enable_json = enable_json

    @classmethod
    def options_from_settings(cls, settings) -> Dict[str, Any]:
        return {
            "include_oids": settings.enable_postgres_oids,
            "enable_json": settings.enable_postgres_json,
        }

    def relkind(self, rel_type: RelType) -> str:
        return self.RELKINDS[rel_type]

    def schema_name(self) -> str:
        row = self._fetch_one("SELECT current_schema()")
        return row[0] if row and row[0] else "public"

    def enums(self, schema: str) -> List[Enum]:
        rows = self._fetch_all("""
            SELECT DISTINCT t.typname
            FROM pg_type t
            JOIN ONLY pg_namespace n ON n.oid = t.typnamespace
            JOIN ONLY pg_enum e ON t.oid = e.enumtypid
            WHERE n.nspname = %s
            ORDER BY t.typname
        """, (schema,))
        return [Enum(name=row[0]) for row in rows]

    def enum_values(self, schema: str, enum: str) -> List[EnumValue]:
        rows = self._fetch_all("""
            SELECT e.enumlabel, e.enumsortorder
            FROM pg_type t
            JOIN ONLY pg_namespace n ON n.oid = t.typnamespace
            JOIN ONLY pg_enum e ON t.oid = e.enumtypid
            WHERE n.nspname = %s AND t.typname = %s
            ORDER BY e.enumsortorder
        """, (schema, enum))
        return [EnumValue(value=row[0], const_value=int(row[1])) for row in rows]

    def _function_result_supported(self) -> bool:
        """Check for pg_get_function_result, which CockroachDB lacks."""
        row = self._fetch_one("""
            SELECT COUNT(*) > 0
            FROM pg_proc
            WHERE proname = 'pg_get_function_result'
        """)
        return bool(row and row[0])

    def procedures(self, schema: str) -> List[Proc]:
        """Get procedures, or none if the catalog cannot describe their results."""
        if not self._function_result_supported():
            logger.info("pg_get_function_result is not available, skipping procedures")
            return []

        rows = self._fetch_all("""
            SELECT p.proname, pg_get_function_result(p.oid)
            FROM pg_proc p
            JOIN ONLY pg_namespace n ON p.pronamespace = n.oid
            WHERE n.nspname = %s
            ORDER BY p.proname
        """, (schema,))
        return [Proc(name=row[0], return_type=row[1] or "") for row in rows]

    def proc_params(self, schema: str, proc: str) -> List[ProcParam]:
        rows = self._fetch_all("""
            SELECT UNNEST(STRING_TO_ARRAY(oidvectortypes(p.proargtypes), ', '))
            FROM pg_proc p
            JOIN ONLY pg_namespace n ON p.pronamespace = n.oid
            WHERE n.nspname = %s AND p.proname = %s
        """, (schema, proc))
        return [ProcParam(param_type=row[0]) for row in rows if row[0]]

    def tables(self, schema: str, relkind: str) -> List[Table]:
        rows = self._fetch_all("""
            SELECT c.relkind, c.relname, COALESCE(obj_description(c.oid, 'pg_class'), '')
            FROM pg_class c
            JOIN ONLY pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s AND c.relkind = %s
            ORDER BY c.relname
        """, (schema, relkind))
        return [Table(name=row[1], type=row[0], comment=row[2]) for row in rows]

    def sequence_tables(self, schema: str) -> List[str]:
        rows = self._fetch_all("""
            SELECT DISTINCT t.relname
            FROM pg_class s
            JOIN pg_depend d ON d.objid = s.oid
            JOIN pg_class t ON d.refobjid = t.oid
            JOIN pg_namespace n ON n.oid = s.relnamespace
            WHERE n.nspname = %s AND s.relkind = 'S'
        """, (schema,))
        return [row[0] for row in rows]

    def columns(self, schema: str, table: str) -> List[Column]:
        rows = self._fetch_all("""
            SELECT
                a.attnum,
                a.attname,
                format_type(a.atttypid, a.atttypmod),
                a.attnotnull,
                pg_get_expr(ad.adbin, ad.adrelid),
                COALESCE(ct.contype = 'p', false),
                COALESCE(col_description(c.oid, a.attnum), '')
            FROM pg_attribute a
            JOIN ONLY pg_class c ON c.oid = a.attrelid
            JOIN ONLY pg_namespace n ON n.oid = c.relnamespace
            LEFT JOIN pg_constraint ct ON ct.conrelid = c.oid
                AND a.attnum = ANY(ct.conkey) AND ct.contype = 'p'
            LEFT JOIN pg_attrdef ad ON ad.adrelid = c.oid AND ad.adnum = a.attnum
            WHERE a.attisdropped = false
              AND n.nspname = %s
              AND c.relname = %s
              AND (%s OR a.attnum > 0)
            ORDER BY a.attnum
        """, (schema, table, self.include_oids))
        columns = [
            Column(
                ordinal=row[0],
                name=row[1],
                data_type=row[2],
                not_null=bool(row[3]),
                default_value=row[4],
                is_primary_key=bool(row[5]),
                comment=row[6],
            )
            for row in rows
        ]
        if self.enable_json:
            _name_json_types(columns)
        return columns

    def foreign_keys(self, schema: str, table: str) -> List[ForeignKey]:
        rows = self._fetch_all("""
            SELECT r.conname, b.attname, i.relname, f.attname
            FROM pg_constraint r
            JOIN ONLY pg_class c ON r.conrelid = c.oid
            JOIN ONLY pg_namespace n ON c.relnamespace = n.oid
            JOIN ONLY pg_attribute b ON b.attisdropped = false
                AND b.attnum = ANY(r.conkey) AND b.attrelid = r.conrelid
            JOIN ONLY pg_class i ON r.confrelid = i.oid
            JOIN ONLY pg_attribute f ON f.attisdropped = false
                AND f.attnum = ANY(r.confkey) AND f.attrelid = r.confrelid
            WHERE r.contype = 'f' AND n.nspname = %s AND c.relname = %s
            ORDER BY r.conname, b.attname
        """, (schema, table))
        return [
            ForeignKey(name=row[0], column_name=row[1], ref_table_name=row[2], ref_column_name=row[3])
            for row in rows
        ]

    def indexes(self, schema: str, table: str) -> List[Index]:
        rows = self._fetch_all("""
            SELECT DISTINCT ic.relname, i.indisunique, i.indisprimary
            FROM pg_index i
            JOIN ONLY pg_class c ON c.oid = i.indrelid
            JOIN ONLY pg_namespace n ON n.oid = c.relnamespace
            JOIN ONLY pg_class ic ON ic.oid = i.indexrelid
            WHERE i.indkey <> '0' AND n.nspname = %s AND c.relname = %s
            ORDER BY ic.relname
        """, (schema, table))
        return [Index(name=row[0], is_unique=bool(row[1]), is_primary=bool(row[2])) for row in rows]

    def index_columns(self, schema: str, table: str, index: str) -> List[IndexColumn]:
        rows = self._fetch_all("""
            SELECT (row_number() OVER ()), a.attnum, a.attname
            FROM pg_index i
            JOIN ONLY pg_class c ON c.oid = i.indrelid
            JOIN ONLY pg_namespace n ON n.oid = c.relnamespace
            JOIN ONLY pg_class ic ON ic.oid = i.indexrelid
            LEFT JOIN pg_attribute a ON i.indrelid = a.attrelid
                AND a.attnum = ANY(i.indkey) AND a.attisdropped = false
            WHERE i.indkey <> '0' AND n.nspname = %s AND ic.relname = %s
        """, (schema, index))
        return [
            IndexColumn(seq_no=row[0], cid=row[1], column_name=row[2])
            for row in rows
            if row[1] is not None
        ]

    def index_column_order(self, schema: str, index: str) -> str:
        row = self._fetch_one("""
            SELECT array_to_string(array_remove(i.indkey::int2[], 0), ' ')
            FROM pg_index i
            JOIN ONLY pg_class ic ON ic.oid = i.indexrelid
            JOIN ONLY pg_namespace n ON n.oid = ic.relnamespace
            WHERE n.nspname = %s AND ic.relname = %s
        """, (schema, index))
        return row[0] if row else ""

    def strip_query(self, lines: List[str], comments: List[str]):
        """Remove '::type AS name' casts, keeping them as line comments."""
        for i, line in enumerate(lines):
            m = _QUERY_STRIP_RE.search(line)
            if m:
                lines[i] = line[:m.start()] + line[m.end():]
                comments[i + 1] = m.group(0)
            else:
                comments[i + 1] = ""

    def introspect_query(self, statement: str) -> List[Column]:
        """Get the result columns of a query, json columns typed by name."""
        columns = super().introspect_query(statement)
        _name_json_types(columns)
        return columns

    def view_schema(self, view: str) -> str:
        row = self._fetch_one("""
            SELECT n.nspname
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relname = %s
        """, (view,))
        return row[0] if row else ""
