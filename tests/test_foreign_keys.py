"""Tests for foreign key resolution."""

from unittest.mock import MagicMock, patch

import pytest

from schemagraph.database.base import RelType
from schemagraph.database.cockroach import CockroachAdapter
from schemagraph.database.models import ForeignKey as ForeignKeyRow
from schemagraph.errors import ConfigurationError, ConsistencyError
from schemagraph.graph.builder import SchemaGraphBuilder
from schemagraph.graph.foreign_keys import ForeignKeyMode, ForeignKeyResolver

from conftest import FakeAdapter, col


def load_relations(adapter, settings):
    """Load and merge relations without resolving anything."""
    builder = SchemaGraphBuilder(adapter, settings)
    return builder.merge(
        builder.load_relations("public", RelType.TABLE, set()),
        builder.load_relations("public", RelType.VIEW, set()),
    )


class TestForeignKeyResolution:
    """Tests for mapping raw rows onto fields."""

    def test_explicit_reference(self, fake_adapter, settings):
        """Test a row with a referenced column resolves to that field."""
        relations = load_relations(fake_adapter, settings)
        ForeignKeyResolver(fake_adapter, "public").resolve(relations)

        fk = relations["orders"].foreign_keys[0]
        assert fk.field is relations["orders"].field_by_column("user_id")
        assert fk.ref_relation is relations["users"]
        assert fk.ref_field is relations["users"].field_by_column("id")
        assert fk.constraint_name == "orders_user_id_fkey"

    def test_primary_key_fallback(self, fake_adapter, settings):
        """Test a row without a referenced column targets the primary key."""
        relations = load_relations(fake_adapter, settings)
        ForeignKeyResolver(fake_adapter, "public").resolve(relations)

        fk = relations["orders"].foreign_keys[1]
        assert fk.ref_field is relations["users"].primary_key

    def test_synthesized_constraint_name(self, fake_adapter, shop_catalog, settings):
        """Test unnamed keys are named <table>_<column>_fkey without touching the catalog row."""
        relations = load_relations(fake_adapter, settings)
        ForeignKeyResolver(fake_adapter, "public").resolve(relations)

        assert relations["orders"].foreign_keys[1].constraint_name == "orders_approver_id_fkey"
        assert shop_catalog["foreign_keys"]["orders"][1].name == ""

    def test_global_map_keys(self, fake_adapter, settings):
        """Test global map keys carry a suffix that never reaches the key's names."""
        relations = load_relations(fake_adapter, settings)
        fk_map = ForeignKeyResolver(fake_adapter, "public").resolve(relations)

        assert len(fk_map) == 2
        for key, fk in fk_map.items():
            assert key.startswith(fk.constraint_name + "_")
            assert key != fk.constraint_name
            assert fk.constraint_name in ("orders_user_id_fkey", "orders_approver_id_fkey")

    def test_same_constraint_name_on_two_tables(self, settings):
        """Test same-named constraints on different tables are both kept."""
        catalog = {
            "tables": {
                "parents": [col(1, "id", "integer", not_null=True, pk=True)],
                "invoices": [col(1, "parent_id", "integer")],
                "payments": [col(1, "parent_id", "integer")],
            },
            "foreign_keys": {
                "invoices": [ForeignKeyRow(name="parent_fk", column_name="parent_id", ref_table_name="parents")],
                "payments": [ForeignKeyRow(name="parent_fk", column_name="parent_id", ref_table_name="parents")],
            },
        }
        adapter = FakeAdapter(catalog)
        fk_map = ForeignKeyResolver(adapter, "public").resolve(load_relations(adapter, settings))

        assert len(fk_map) == 2

    def test_missing_referenced_table(self, shop_catalog, settings):
        """Test a reference to an unknown table is a consistency error."""
        shop_catalog["foreign_keys"]["orders"].append(
            ForeignKeyRow(name="orders_coupon_fkey", column_name="user_id", ref_table_name="coupons", ref_column_name="id")
        )
        adapter = FakeAdapter(shop_catalog)
        relations = load_relations(adapter, settings)

        with pytest.raises(ConsistencyError) as exc_info:
            ForeignKeyResolver(adapter, "public").resolve(relations)

        assert "referenced table coupons" in exc_info.value.message
        assert exc_info.value.details["table"] == "orders"
        assert exc_info.value.details["schema"] == "public"

    def test_missing_referenced_column(self, shop_catalog, settings):
        """Test an explicit referenced column that does not exist is not replaced by the key."""
        shop_catalog["foreign_keys"]["orders"][0].ref_column_name = "uuid"
        adapter = FakeAdapter(shop_catalog)
        relations = load_relations(adapter, settings)

        with pytest.raises(ConsistencyError) as exc_info:
            ForeignKeyResolver(adapter, "public").resolve(relations)

        assert "users.uuid" in exc_info.value.message

    def test_referenced_table_without_primary_key(self, shop_catalog, settings):
        """Test an implicit reference to a table without a primary key fails."""
        shop_catalog["foreign_keys"]["orders"] = [
            ForeignKeyRow(name="orders_log_fkey", column_name="user_id", ref_table_name="audit_log"),
        ]
        adapter = FakeAdapter(shop_catalog)
        relations = load_relations(adapter, settings)

        with pytest.raises(ConsistencyError) as exc_info:
            ForeignKeyResolver(adapter, "public").resolve(relations)

        assert "primary key of referenced table audit_log" in exc_info.value.message


class TestAccessorNames:
    """Tests for foreign key naming modes."""

    def _names(self, adapter, settings, mode):
        relations = load_relations(adapter, settings)
        ForeignKeyResolver(adapter, "public", mode=mode).resolve(relations)
        return [fk.name for fk in relations["orders"].foreign_keys]

    def test_smart_mode_with_conflict(self, fake_adapter, settings):
        """Test smart naming uses field names when a parent is referenced twice."""
        assert self._names(fake_adapter, settings, ForeignKeyMode.SMART) == ["UserByUserID", "UserByApproverID"]

    def test_smart_mode_without_conflict(self, shop_catalog, settings):
        """Test smart naming uses the parent name for a single reference."""
        shop_catalog["foreign_keys"]["orders"].pop()
        adapter = FakeAdapter(shop_catalog)
        assert self._names(adapter, settings, ForeignKeyMode.SMART) == ["User"]

    def test_parent_mode(self, fake_adapter, settings):
        """Test parent naming."""
        assert self._names(fake_adapter, settings, ForeignKeyMode.PARENT) == ["User", "User"]

    def test_field_mode(self, fake_adapter, settings):
        """Test field naming."""
        assert self._names(fake_adapter, settings, ForeignKeyMode.FIELD) == ["UserByUserID", "UserByApproverID"]

    def test_key_mode(self, fake_adapter, settings):
        """Test key naming uses the camel cased constraint name."""
        assert self._names(fake_adapter, settings, ForeignKeyMode.KEY) == [
            "UserByOrdersUserIDFkey",
            "UserByOrdersApproverIDFkey",
        ]

    def test_invalid_mode(self, fake_adapter):
        """Test an unknown naming mode is rejected."""
        with pytest.raises(ConfigurationError):
            ForeignKeyResolver(fake_adapter, "public", mode="strict")


class TestCockroachCorrection:
    """Tests for dropping spurious CockroachDB foreign keys."""

    ROWS = [
        ForeignKeyRow(name="orders_user_id_fkey", column_name="user_id", ref_table_name="users", ref_column_name="id"),
        ForeignKeyRow(name="orders_auto_index_unique", column_name="approver_id", ref_table_name="users",
                      ref_column_name="id"),
    ]

    def test_keeps_keys_named_after_their_column(self):
        """Test only rows whose name contains their column survive."""
        adapter = CockroachAdapter(MagicMock())
        kept = adapter.correct_foreign_keys(list(self.ROWS))

        assert [fk.name for fk in kept] == ["orders_user_id_fkey"]

    def test_correction_runs_before_resolution(self, fake_adapter, settings):
        """Test the resolver applies the adapter's correction pass."""
        relations = load_relations(fake_adapter, settings)
        adapter = CockroachAdapter(MagicMock())

        def rows(schema, table):
            return list(self.ROWS) if table == "orders" else []

        with patch.object(adapter, "foreign_keys", side_effect=rows):
            fk_map = ForeignKeyResolver(adapter, "public").resolve(relations)

        assert len(fk_map) == 1
        assert [fk.constraint_name for fk in relations["orders"].foreign_keys] == ["orders_user_id_fkey"]

    def test_other_adapters_keep_all_rows(self, fake_adapter):
        """Test the default correction pass is the identity."""
        assert fake_adapter.correct_foreign_keys(list(self.ROWS)) == self.ROWS
