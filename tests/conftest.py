"""Shared pytest fixtures for schemagraph tests."""

import sqlite3
from typing import Dict, List

import pytest

from schemagraph.config import Settings
from schemagraph.database.base import BackendAdapter, Capability, RelType
from schemagraph.database.models import (
    Column,
    Enum,
    EnumValue,
    ForeignKey,
    Index,
    IndexColumn,
    Proc,
    ProcParam,
    Table,
)
from schemagraph.database.type_mappers import PostgresTypeMapper


class FakeAdapter(BackendAdapter):
    """Adapter answering catalog queries from a dict.

    catalog keys: schema, tables, views ({name: [Column]}), enums
    ({name: [label]}), procs ({name: (return type, [param types])}),
    sequences, auto_increments ([name]), foreign_keys ({table: [ForeignKey]}),
    indexes ({table: [(Index, [IndexColumn], order)]}), queries
    ({statement: [Column]}).
    """

    ENGINE = "fake"
    TYPE_MAPPER = PostgresTypeMapper
    CAPABILITIES = frozenset({
        Capability.SCHEMA_DISCOVERY,
        Capability.ENUMS,
        Capability.PROCEDURES,
        Capability.SEQUENCES,
        Capability.AUTO_INCREMENTS,
        Capability.QUERY_INTROSPECTION,
    })

    def __init__(self, catalog: Dict, capabilities=None, synthesize_pk_index: bool = True, type_mapper=None):
        super().__init__(connection=None, type_mapper=type_mapper)
        self.catalog = catalog
        if capabilities is not None:
            self.CAPABILITIES = frozenset(capabilities)
        self.SYNTHESIZE_PRIMARY_KEY_INDEX = synthesize_pk_index
        self.calls: List[str] = []

    def relkind(self, rel_type: RelType) -> str:
        return {RelType.TABLE: "r", RelType.VIEW: "v"}[rel_type]

    def schema_name(self) -> str:
        return self.catalog.get("schema", "public")

    def enums(self, schema):
        self.calls.append("enums")
        return [Enum(name=name) for name in self.catalog.get("enums", {})]

    def enum_values(self, schema, enum):
        labels = self.catalog["enums"][enum]
        return [EnumValue(value=label, const_value=i + 1) for i, label in enumerate(labels)]

    def procedures(self, schema):
        self.calls.append("procedures")
        return [Proc(name=name, return_type=ret) for name, (ret, _) in self.catalog.get("procs", {}).items()]

    def proc_params(self, schema, proc):
        return [ProcParam(param_type=t) for t in self.catalog["procs"][proc][1]]

    def sequence_tables(self, schema):
        return list(self.catalog.get("sequences", []))

    def auto_increment_tables(self, schema):
        return list(self.catalog.get("auto_increments", []))

    def tables(self, schema, relkind):
        key = "tables" if relkind == "r" else "views"
        return [Table(name=name, type=relkind) for name in self.catalog.get(key, {})]

    def columns(self, schema, table):
        for key in ("tables", "views"):
            if table in self.catalog.get(key, {}):
                return list(self.catalog[key][table])
        return []

    def foreign_keys(self, schema, table):
        return list(self.catalog.get("foreign_keys", {}).get(table, []))

    def indexes(self, schema, table):
        return [entry[0] for entry in self.catalog.get("indexes", {}).get(table, [])]

    def _index_entry(self, index):
        for entries in self.catalog.get("indexes", {}).values():
            for entry in entries:
                if entry[0].name == index:
                    return entry
        raise KeyError(index)

    def index_columns(self, schema, table, index):
        return list(self._index_entry(index)[1])

    def index_column_order(self, schema, index):
        return self._index_entry(index)[2]

    def introspect_query(self, statement):
        self.calls.append(statement)
        return list(self.catalog.get("queries", {}).get(statement, []))


def col(ordinal, name, data_type, not_null=False, pk=False):
    """Shorthand for a native column row."""
    return Column(ordinal=ordinal, name=name, data_type=data_type, not_null=not_null, is_primary_key=pk)


@pytest.fixture
def settings():
    """Settings with defaults only, ignoring the environment's .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def shop_catalog():
    """A small shop schema: users, orders referencing users twice, a view."""
    return {
        "schema": "public",
        "enums": {"moods": ["happy", "sad_mood", "mood"]},
        "procs": {"_calc_total": ("numeric", ["integer", "text"])},
        "tables": {
            "users": [
                col(1, "id", "integer", not_null=True, pk=True),
                col(2, "email", "character varying(255)", not_null=True),
                col(3, "updated_at", "timestamp with time zone"),
            ],
            "orders": [
                col(1, "id", "bigint", not_null=True, pk=True),
                col(2, "user_id", "integer", not_null=True),
                col(3, "approver_id", "integer"),
                col(4, "status", "public.mood", not_null=True),
                col(5, "tags", "character varying[]"),
            ],
            "audit_log": [
                col(1, "message", "text"),
            ],
        },
        "views": {
            "user_emails": [
                col(1, "id", "integer"),
                col(2, "email", "character varying(255)"),
            ],
        },
        "sequences": ["users"],
        "auto_increments": ["orders"],
        "foreign_keys": {
            "orders": [
                ForeignKey(name="orders_user_id_fkey", column_name="user_id",
                           ref_table_name="users", ref_column_name="id"),
                ForeignKey(name="", column_name="approver_id", ref_table_name="users"),
            ],
        },
        "indexes": {
            "users": [
                (Index(name="users_pkey", is_unique=True, is_primary=True),
                 [IndexColumn(seq_no=0, cid=1, column_name="id")], "1"),
                (Index(name="users_email_key", is_unique=True),
                 [IndexColumn(seq_no=0, cid=2, column_name="email")], "2"),
            ],
            "orders": [
                (Index(name="orders_status_user_idx"),
                 [IndexColumn(seq_no=0, cid=2, column_name="user_id"),
                  IndexColumn(seq_no=1, cid=4, column_name="status")], "4 2"),
            ],
        },
    }


@pytest.fixture
def fake_adapter(shop_catalog):
    """FakeAdapter over the shop catalog."""
    return FakeAdapter(shop_catalog)


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite database with tables, an index and a view."""
    conn = sqlite3.connect(":memory:")
    conn.executescript("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name VARCHAR(50)
        );
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            parent_user INTEGER REFERENCES users,
            total REAL,
            created_at DATETIME
        );
        CREATE INDEX orders_created_user_idx ON orders (created_at, user_id);
        CREATE TABLE tags (
            order_id INTEGER NOT NULL,
            label TEXT NOT NULL,
            PRIMARY KEY (order_id, label)
        );
        CREATE VIEW big_orders AS SELECT id, total FROM orders WHERE total > 100;
    """)
    yield conn
    conn.close()
