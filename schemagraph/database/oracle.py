"""Oracle backend adapter."""

from typing import List

from .base import BackendAdapter, Capability, RelType
from .models import Column, ForeignKey, Index, IndexColumn, Proc, ProcParam, Table
from .type_mappers import OracleTypeMapper


class OracleAdapter(BackendAdapter):
    """Adapter reading Oracle's ``ALL_*`` dictionary views.

    Oracle reports primary keys through their backing index, so no
    implicit primary key index is ever synthesized for it.
    """

    ENGINE = "oracle"
    TYPE_MAPPER = OracleTypeMapper
    CAPABILITIES = frozenset({
        Capability.SCHEMA_DISCOVERY,
        Capability.PROCEDURES,
        Capability.AUTO_INCREMENTS,
        Capability.QUERY_INTROSPECTION,
    })

    PARAM_MASK = ":%d"
    SYNTHESIZE_PRIMARY_KEY_INDEX = False
    # identifiers are limited to 30 characters before 12.2
    VIEW_ID_LENGTH = 20

    RELKINDS = {RelType.TABLE: "TABLE", RelType.VIEW: "VIEW"}

    def relkind(self, rel_type: RelType) -> str:
        return self.RELKINDS[rel_type]

    def fold_case(self, identifier: str) -> str:
        return identifier.upper()

    def schema_name(self) -> str:
        row = self._fetch_one("SELECT SYS_CONTEXT('USERENV', 'CURRENT_SCHEMA') FROM DUAL")
        return row[0] if row else ""

    def procedures(self, schema: str) -> List[Proc]:
        rows = self._fetch_all("""
            SELECT o.object_name, a.data_type
            FROM all_objects o
            LEFT JOIN all_arguments a ON a.owner = o.owner
                AND a.object_name = o.object_name
                AND a.package_name IS NULL
                AND a.position = 0
            WHERE o.owner = :1 AND o.object_type = 'FUNCTION'
            ORDER BY o.object_name
        """, (schema,))
        return [Proc(name=row[0], return_type=row[1] or "") for row in rows]

    def proc_params(self, schema: str, proc: str) -> List[ProcParam]:
        rows = self._fetch_all("""
            SELECT data_type
            FROM all_arguments
            WHERE owner = :1 AND object_name = :2
              AND package_name IS NULL AND position > 0
            ORDER BY position
        """, (schema, proc))
        return [ProcParam(param_type=row[0]) for row in rows]

    def tables(self, schema: str, relkind: str) -> List[Table]:
        rows = self._fetch_all("""
            SELECT object_type, object_name
            FROM all_objects
            WHERE owner = :1 AND object_type = :2
              AND object_name NOT LIKE 'BIN$%'
            ORDER BY object_name
        """, (schema, relkind))
        return [Table(name=row[1], type=row[0]) for row in rows]

    def auto_increment_tables(self, schema: str) -> List[str]:
        rows = self._fetch_all("""
            SELECT DISTINCT table_name
            FROM all_tab_identity_cols
            WHERE owner = :1
        """, (schema,))
        return [row[0] for row in rows]

    def columns(self, schema: str, table: str) -> List[Column]:
        rows = self._fetch_all("""
            SELECT
                c.column_id,
                c.column_name,
                CASE
                    WHEN c.data_type = 'NUMBER' AND c.data_precision IS NOT NULL
                        THEN 'NUMBER(' || c.data_precision || ',' || NVL(c.data_scale, 0) || ')'
                    WHEN c.data_type IN ('VARCHAR2', 'NVARCHAR2', 'CHAR', 'NCHAR', 'RAW')
                        THEN c.data_type || '(' || c.char_length || ')'
                    ELSE c.data_type
                END,
                c.nullable,
                CASE WHEN pk.column_name IS NULL THEN 0 ELSE 1 END
            FROM all_tab_columns c
            LEFT JOIN (
                SELECT cc.column_name
                FROM all_constraints k
                JOIN all_cons_columns cc ON cc.owner = k.owner
                    AND cc.constraint_name = k.constraint_name
                WHERE k.owner = :1 AND k.table_name = :2 AND k.constraint_type = 'P'
            ) pk ON pk.column_name = c.column_name
            WHERE c.owner = :3 AND c.table_name = :4
            ORDER BY c.column_id
        """, (schema, table, schema, table))
        return [
            Column(
                ordinal=row[0],
                name=row[1],
                data_type=row[2],
                not_null=row[3] == "N",
                is_primary_key=row[4] == 1,
            )
            for row in rows
        ]

    def foreign_keys(self, schema: str, table: str) -> List[ForeignKey]:
        rows = self._fetch_all("""
            SELECT k.constraint_name, cc.column_name, rc.table_name, rc.column_name
            FROM all_constraints k
            JOIN all_cons_columns cc ON cc.owner = k.owner
                AND cc.constraint_name = k.constraint_name
            JOIN all_cons_columns rc ON rc.owner = k.r_owner
                AND rc.constraint_name = k.r_constraint_name
                AND rc.position = cc.position
            WHERE k.owner = :1 AND k.table_name = :2 AND k.constraint_type = 'R'
            ORDER BY k.constraint_name, cc.position
        """, (schema, table))
        return [
            ForeignKey(name=row[0], column_name=row[1], ref_table_name=row[2], ref_column_name=row[3])
            for row in rows
        ]

    def indexes(self, schema: str, table: str) -> List[Index]:
        rows = self._fetch_all("""
            SELECT
                i.index_name,
                i.uniqueness,
                CASE WHEN k.constraint_name IS NULL THEN 0 ELSE 1 END
            FROM all_indexes i
            LEFT JOIN all_constraints k ON k.owner = i.table_owner
                AND k.index_name = i.index_name
                AND k.constraint_type = 'P'
            WHERE i.table_owner = :1 AND i.table_name = :2
            ORDER BY i.index_name
        """, (schema, table))
        return [
            Index(name=row[0], is_unique=row[1] == "UNIQUE", is_primary=row[2] == 1)
            for row in rows
        ]

    def index_columns(self, schema: str, table: str, index: str) -> List[IndexColumn]:
        rows = self._fetch_all("""
            SELECT ic.column_position, c.column_id, ic.column_name
            FROM all_ind_columns ic
            JOIN all_tab_columns c ON c.owner = ic.table_owner
                AND c.table_name = ic.table_name
                AND c.column_name = ic.column_name
            WHERE ic.index_owner = :1 AND ic.table_name = :2 AND ic.index_name = :3
        """, (schema, table, index))
        return [IndexColumn(seq_no=row[0], cid=row[1], column_name=row[2]) for row in rows]

    def index_column_order(self, schema: str, index: str) -> str:
        row = self._fetch_one("""
            SELECT LISTAGG(c.column_id, ' ') WITHIN GROUP (ORDER BY ic.column_position)
            FROM all_ind_columns ic
            JOIN all_tab_columns c ON c.owner = ic.table_owner
                AND c.table_name = ic.table_name
                AND c.column_name = ic.column_name
            WHERE ic.index_owner = :1 AND ic.index_name = :2
        """, (schema, index))
        return row[0] if row and row[0] else ""

    def view_schema(self, view: str) -> str:
        row = self._fetch_one("SELECT owner FROM all_views WHERE view_name = :1", (view,))
        return row[0] if row else ""
