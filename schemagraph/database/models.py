"""Native catalog rows as reported by a backend adapter.

These are the raw, unresolved rows. Names and types are exactly what the
engine's catalog reports; resolution into the graph happens in
``schemagraph.graph``.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class Table:
    """Represents a table or view row."""
    name: str
    type: str = ""  # engine relkind string, e.g. 'r', 'v', 'BASE TABLE'
    manual_pk: bool = True
    comment: str = ""


@dataclass
class Column:
    """Represents a database column."""
    ordinal: int
    name: str
    data_type: str
    not_null: bool = False
    default_value: Optional[str] = None
    is_primary_key: bool = False
    comment: str = ""

    @property
    def is_nullable(self) -> bool:
        return not self.not_null


@dataclass
class ForeignKey:
    """Represents a foreign key row.

    ``ref_column_name`` may be empty when the engine does not report the
    referenced column (SQLite ``REFERENCES parent`` without a column list).
    """
    name: str
    column_name: str
    ref_table_name: str
    ref_column_name: str = ""


@dataclass
class Index:
    """Represents an index row."""
    name: str
    is_unique: bool = False
    is_primary: bool = False
    origin: str = ""  # sqlite: 'c', 'u' or 'pk'


@dataclass
class IndexColumn:
    """Represents a column of an index; cid matches the column ordinal."""
    seq_no: int
    cid: int
    column_name: str


@dataclass
class Enum:
    """Represents an enum type row."""
    name: str


@dataclass
class EnumValue:
    """Represents an enum label and its sort order."""
    value: str
    const_value: int = 0


@dataclass
class Proc:
    """Represents a stored procedure / function row."""
    name: str
    return_type: str


@dataclass
class ProcParam:
    """Represents a stored procedure parameter type."""
    param_type: str
