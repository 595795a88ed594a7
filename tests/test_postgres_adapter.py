"""Tests for the server adapters with a mocked DB-API connection."""

from unittest.mock import MagicMock, patch

import pytest

from schemagraph.database.base import Capability
from schemagraph.database.cockroach import CockroachAdapter
from schemagraph.database.models import Column, Index, Proc, Table
from schemagraph.database.oracle import OracleAdapter
from schemagraph.database.postgres import PostgresAdapter
from schemagraph.graph.builder import SchemaGraphBuilder


@pytest.fixture
def connection():
    return MagicMock()


@pytest.fixture
def cursor(connection):
    return connection.cursor.return_value


class TestPostgresAdapter:
    """Tests for catalog row mapping."""

    def test_schema_name(self, connection, cursor):
        cursor.fetchall.return_value = [("sales",)]
        assert PostgresAdapter(connection).schema_name() == "sales"

    def test_schema_name_default(self, connection, cursor):
        cursor.fetchall.return_value = [(None,)]
        assert PostgresAdapter(connection).schema_name() == "public"

    def test_enum_values(self, connection, cursor):
        cursor.fetchall.return_value = [("happy", 1.0), ("sad", 2.0)]
        values = PostgresAdapter(connection).enum_values("public", "mood")

        assert [(v.value, v.const_value) for v in values] == [("happy", 1), ("sad", 2)]

    def test_procedures_unsupported_catalog(self, connection, cursor):
        """Test procedures are skipped when pg_get_function_result is missing."""
        cursor.fetchall.return_value = [(False,)]
        assert PostgresAdapter(connection).procedures("public") == []
        assert cursor.execute.call_count == 1

    def test_procedures(self, connection, cursor):
        cursor.fetchall.side_effect = [[(True,)], [("calc_total", "numeric")]]
        assert PostgresAdapter(connection).procedures("public") == [Proc(name="calc_total", return_type="numeric")]

    def test_columns_pass_oid_flag(self, connection, cursor):
        """Test system columns are only requested when enabled."""
        cursor.fetchall.return_value = [(1, "id", "integer", True, None, True, "")]
        columns = PostgresAdapter(connection, include_oids=True).columns("public", "users")

        assert cursor.execute.call_args[0][1] == ("public", "users", True)
        assert columns[0].is_primary_key
        assert columns[0].not_null

    def test_index_columns_skip_expressions(self, connection, cursor):
        """Test expression columns, which have no attribute, are skipped."""
        cursor.fetchall.return_value = [(1, 2, "email"), (2, None, None)]
        columns = PostgresAdapter(connection).index_columns("public", "users", "users_lower_email_idx")

        assert [c.column_name for c in columns] == ["email"]

    def test_index_order_skips_expressions(self, connection, cursor):
        """Test the key order leaves out expression entries, stored as 0."""
        cursor.fetchall.return_value = [("2",)]
        order = PostgresAdapter(connection).index_column_order("public", "users_email_lower_idx")

        assert order == "2"
        assert "array_remove(i.indkey::int2[], 0)" in cursor.execute.call_args[0][0]

    def test_mixed_expression_index(self, connection, settings):
        """Test an index over a column and an expression resolves to the column."""
        adapter = PostgresAdapter(connection)
        catalog = {
            "users": [
                Column(ordinal=1, name="id", data_type="integer", not_null=True, is_primary_key=True),
                Column(ordinal=2, name="email", data_type="text", not_null=True),
            ],
        }
        with patch.object(adapter, "schema_name", return_value="public"), \
                patch.object(adapter, "enums", return_value=[]), \
                patch.object(adapter, "procedures", return_value=[]), \
                patch.object(adapter, "sequence_tables", return_value=["users"]), \
                patch.object(adapter, "tables", side_effect=lambda schema, kind: (
                    [Table(name="users", type="r")] if kind == "r" else [])), \
                patch.object(adapter, "columns", side_effect=lambda schema, table: catalog[table]), \
                patch.object(adapter, "foreign_keys", return_value=[]), \
                patch.object(adapter, "indexes", return_value=[Index(name="users_email_lower_idx")]), \
                patch.object(adapter, "_fetch_all", side_effect=[[(1, 2, "email"), (2, None, None)], [("2",)]]):
            graph = SchemaGraphBuilder(adapter, settings).build()

        index = graph.relations["users"].indexes[0]
        assert [f.name for f in index.fields] == ["Email"]
        assert index.func_name == "UsersByEmail"

    def test_json_columns_named_when_enabled(self, connection, cursor):
        """Test json and jsonb columns take their column name as type."""
        cursor.fetchall.return_value = [
            (1, "settings", "json", False, None, False, ""),
            (2, "payload", "jsonb", False, None, False, ""),
            (3, "note", "text", False, None, False, ""),
        ]
        columns = PostgresAdapter(connection, enable_json=True).columns("public", "events")

        assert [c.data_type for c in columns] == ["settings", "payload", "text"]

    def test_json_columns_kept_by_default(self, connection, cursor):
        cursor.fetchall.return_value = [(1, "payload", "jsonb", False, None, False, "")]
        columns = PostgresAdapter(connection).columns("public", "events")

        assert columns[0].data_type == "jsonb"

    def test_strip_query(self, connection):
        lines = ["SELECT a::text AS name,", "b", "FROM t"]
        comments = ["", "", "", ""]
        PostgresAdapter(connection).strip_query(lines, comments)

        assert lines == ["SELECT a,", "b", "FROM t"]
        assert comments == ["", "::text AS name", "", ""]

    def test_presentation(self, connection):
        adapter = PostgresAdapter(connection)

        assert adapter.nth_param(0) == "$1"
        assert adapter.escape('we"ird') == '"we""ird"'
        assert adapter.fold_case("Users") == "Users"

    def test_cursor_closed(self, connection, cursor):
        cursor.fetchall.return_value = []
        PostgresAdapter(connection).tables("public", "r")
        cursor.close.assert_called_once()


class TestCockroachAdapter:
    def test_capabilities(self, connection):
        adapter = CockroachAdapter(connection)

        assert adapter.supports(Capability.AUTO_INCREMENTS)
        assert adapter.supports(Capability.ENUMS)
        assert adapter.ENGINE == "cockroachdb"


class TestOracleAdapter:
    def test_presentation(self, connection):
        adapter = OracleAdapter(connection)

        assert adapter.mask() == ":%d"
        assert adapter.nth_param(1) == ":2"
        assert adapter.fold_case("sg_tmp_abc") == "SG_TMP_ABC"

    def test_capabilities(self, connection):
        adapter = OracleAdapter(connection)

        assert not adapter.supports(Capability.ENUMS)
        assert not adapter.supports(Capability.SEQUENCES)
        assert adapter.supports(Capability.PROCEDURES)

    def test_columns(self, connection, cursor):
        cursor.fetchall.return_value = [(1, "ID", "NUMBER(10,0)", "N", 1), (2, "NAME", "VARCHAR2(50)", "Y", 0)]
        columns = OracleAdapter(connection).columns("SCOTT", "USERS")

        assert [(c.name, c.not_null, c.is_primary_key) for c in columns] == [
            ("ID", True, True),
            ("NAME", False, False),
        ]
