"""Resolution of catalog rows into a cross-referenced schema graph."""

from .models import (
    EnumType,
    EnumValue,
    Field,
    ForeignKey,
    Index,
    Procedure,
    Query,
    QueryParam,
    QueryType,
    Relation,
    SchemaGraph,
)
from .foreign_keys import ForeignKeyMode, ForeignKeyResolver
from .indexes import IndexResolver
from .query import QueryIntrospector, QuerySpec, parse_query
from .builder import BuildPhase, SchemaGraphBuilder

__all__ = [
    # Graph models
    "EnumType",
    "EnumValue",
    "Field",
    "ForeignKey",
    "Index",
    "Procedure",
    "Query",
    "QueryParam",
    "QueryType",
    "Relation",
    "SchemaGraph",
    # Resolvers
    "ForeignKeyMode",
    "ForeignKeyResolver",
    "IndexResolver",
    "QueryIntrospector",
    "QuerySpec",
    "parse_query",
    # Builder
    "BuildPhase",
    "SchemaGraphBuilder",
]
