"""Resolved schema graph handed to code generation.

Relations own their fields exclusively; foreign keys and indexes refer to
fields of the relations they were resolved against. Entities compare by
identity since they form a cyclic graph.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..database.base import RelType
from ..database.models import (
    Column,
    Enum as EnumRow,
    EnumValue as EnumValueRow,
    ForeignKey as ForeignKeyRow,
    Index as IndexRow,
    Proc,
    Table,
)


@dataclass(eq=False)
class Field:
    """A column of a relation (or a parameter/return value) with its target type."""
    name: str
    type: str
    zero_value: str
    column: Column
    precision: int = 0
    comment: str = ""

    @property
    def ordinal(self) -> int:
        return self.column.ordinal

    @property
    def column_name(self) -> str:
        return self.column.name


@dataclass(eq=False)
class Relation:
    """A table or view after the merge into one namespace."""
    name: str
    schema: str
    rel_type: RelType
    table: Table
    fields: List[Field] = field(default_factory=list)
    primary_key: Optional[Field] = None
    primary_key_fields: List[Field] = field(default_factory=list)
    foreign_keys: List["ForeignKey"] = field(default_factory=list, repr=False)
    indexes: List["Index"] = field(default_factory=list, repr=False)
    manual_primary_key: bool = True
    comment: str = ""

    @property
    def table_name(self) -> str:
        return self.table.name

    def field_by_column(self, column_name: str) -> Optional[Field]:
        """Find the field loaded from a native column name."""
        for f in self.fields:
            if f.column.name == column_name:
                return f
        return None


class QueryType(Relation):
    """Synthetic relation describing the result row of an ad-hoc query."""


@dataclass
class EnumValue:
    name: str
    value: EnumValueRow
    const_name: str = ""


@dataclass
class EnumType:
    name: str
    schema: str
    enum: EnumRow
    values: List[EnumValue] = field(default_factory=list)
    reverse_const_names: bool = False


@dataclass
class Procedure:
    """A stored function with positional parameters v0, v1, ..."""
    name: str
    schema: str
    proc: Proc
    return_field: Field
    params: List[Field] = field(default_factory=list)
    proc_params: str = ""


@dataclass(eq=False)
class ForeignKey:
    """A resolved foreign key from relation.field to ref_relation.ref_field."""
    schema: str
    relation: Relation = field(repr=False)
    field: Field
    ref_relation: Relation = field(repr=False)
    ref_field: Field
    foreign_key: ForeignKeyRow
    name: str = ""

    @property
    def constraint_name(self) -> str:
        return self.foreign_key.name


@dataclass(eq=False)
class Index:
    """A resolved index with its fields in key order."""
    schema: str
    relation: Relation = field(repr=False)
    index: IndexRow
    fields: List[Field] = field(default_factory=list)
    func_name: str = ""

    @property
    def is_unique(self) -> bool:
        return self.index.is_unique

    @property
    def is_primary(self) -> bool:
        return self.index.is_primary


@dataclass
class QueryParam:
    name: str
    type: str


@dataclass
class Query:
    """An ad-hoc query and the function generated for it."""
    name: str
    lines: List[str]
    comments: List[str]
    params: List[QueryParam]
    type: QueryType
    only_one: bool = False
    comment: str = ""


@dataclass
class SchemaGraph:
    """Everything resolved from one schema.

    ``relations`` is keyed by native relation name, ``foreign_keys`` by
    constraint name plus a random suffix, ``indexes`` by
    ``<table>_<index>``.
    """
    schema: str
    enums: Dict[str, EnumType] = field(default_factory=dict)
    procedures: Dict[str, Procedure] = field(default_factory=dict)
    relations: Dict[str, Relation] = field(default_factory=dict)
    foreign_keys: Dict[str, ForeignKey] = field(default_factory=dict)
    indexes: Dict[str, Index] = field(default_factory=dict)
    queries: List[Query] = field(default_factory=list)
    known_types: Set[str] = field(default_factory=set)

    def tables(self) -> List[Relation]:
        return [r for r in self.relations.values() if r.rel_type == RelType.TABLE]

    def views(self) -> List[Relation]:
        return [r for r in self.relations.values() if r.rel_type == RelType.VIEW]
