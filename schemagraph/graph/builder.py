"""Schema graph builder.

Drives an adapter through a fixed sequence of phases and returns the
resolved graph:

    INIT -> ENUMS_LOADED -> PROCS_LOADED -> TABLES_LOADED -> VIEWS_LOADED
         -> MERGED -> FOREIGN_KEYS_RESOLVED -> INDEXES_RESOLVED -> DONE

Optional phases the adapter lacks the capability for are skipped. Any error
aborts the build; the graph is only returned once DONE is reached.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, Optional, Set

from ..config import Settings
from ..database.base import BackendAdapter, Capability, RelType
from ..database.models import Column, Table
from ..naming import build_initialisms, singularize_identifier
from .foreign_keys import ForeignKeyResolver
from .indexes import IndexResolver
from .models import EnumType, EnumValue, Field, Procedure, Relation, SchemaGraph
from .query import QueryIntrospector, QuerySpec

logger = logging.getLogger(__name__)


class BuildPhase(str, Enum):
    """Build phases, in order."""
    INIT = "init"
    ENUMS_LOADED = "enums_loaded"
    PROCS_LOADED = "procs_loaded"
    TABLES_LOADED = "tables_loaded"
    VIEWS_LOADED = "views_loaded"
    MERGED = "merged"
    FOREIGN_KEYS_RESOLVED = "foreign_keys_resolved"
    INDEXES_RESOLVED = "indexes_resolved"
    DONE = "done"


class SchemaGraphBuilder:
    """Builds a SchemaGraph from one adapter.

    Usage:
        adapter = registry.create("postgres", conn, settings)
        graph = SchemaGraphBuilder(adapter, settings).build()
    """

    def __init__(self, adapter: BackendAdapter, settings: Optional[Settings] = None):
        """Initialize the builder.

        Args:
            adapter: Adapter over an open connection
            settings: Resolution settings; defaults are used when omitted
        """
        self.adapter = adapter
        self.settings = settings or Settings()
        self.initialisms = build_initialisms(self.settings.initialisms)
        self.phase = BuildPhase.INIT

        self._ignore_tables = {t.lower() for t in self.settings.ignore_tables}
        self._ignore_fields = {f.lower() for f in self.settings.ignore_fields}

    def _advance(self, phase: BuildPhase):
        self.phase = phase
        logger.info("Schema graph phase: %s", phase.value)

    def build(self, queries: Iterable[QuerySpec] = ()) -> SchemaGraph:
        """Load and resolve the whole schema.

        Args:
            queries: Ad-hoc queries to introspect after the catalog

        Returns:
            The resolved SchemaGraph
        """
        self.phase = BuildPhase.INIT
        schema = self.resolve_schema()
        self.adapter.type_mapper.schema = schema
        graph = SchemaGraph(schema=schema)

        graph.enums = self.load_enums(schema)
        graph.known_types.update(graph.enums)
        self._advance(BuildPhase.ENUMS_LOADED)

        graph.procedures = self.load_procedures(schema)
        self._advance(BuildPhase.PROCS_LOADED)

        manual = self.manual_primary_key_lookup(schema)
        tables = self.load_relations(schema, RelType.TABLE, manual)
        self._advance(BuildPhase.TABLES_LOADED)

        views = self.load_relations(schema, RelType.VIEW, manual)
        self._advance(BuildPhase.VIEWS_LOADED)

        graph.relations = self.merge(tables, views)
        self._advance(BuildPhase.MERGED)

        graph.foreign_keys = ForeignKeyResolver(
            self.adapter, schema, mode=self.settings.foreign_key_mode, initialisms=self.initialisms,
        ).resolve(graph.relations)
        self._advance(BuildPhase.FOREIGN_KEYS_RESOLVED)

        graph.indexes = IndexResolver(
            self.adapter, schema, use_index_names=self.settings.use_index_names, initialisms=self.initialisms,
        ).resolve(graph.relations)
        self._advance(BuildPhase.INDEXES_RESOLVED)

        queries = list(queries)
        if queries:
            introspector = QueryIntrospector(
                self.adapter,
                delimiter=self.settings.query_param_delimiter,
                trim=self.settings.query_trim,
                strip=self.settings.query_strip,
                allow_nulls=self.settings.query_allow_nulls,
                initialisms=self.initialisms,
            )
            graph.queries = [introspector.introspect(q) for q in queries]

        self._advance(BuildPhase.DONE)
        return graph

    def resolve_schema(self) -> str:
        """Get the schema to load: configured, else discovered, else ''."""
        if self.settings.schema_name:
            return self.settings.schema_name
        if self.adapter.supports(Capability.SCHEMA_DISCOVERY):
            return self.adapter.schema_name() or ""
        return ""

    # -- enums and procedures ---------------------------------------------

    def load_enums(self, schema: str) -> Dict[str, EnumType]:
        if not self.adapter.supports(Capability.ENUMS):
            logger.debug("%s adapter has no enums, skipping", self.adapter.ENGINE)
            return {}

        enums = {}
        for row in self.adapter.enums(schema):
            enum = EnumType(
                name=singularize_identifier(row.name, self.initialisms),
                schema=schema,
                enum=row,
                reverse_const_names=self.settings.use_reversed_enum_const_names,
            )
            for value_row in self.adapter.enum_values(schema, row.name):
                enum.values.append(self._enum_value(enum, value_row))
            enums[enum.name] = enum
        return enums

    def _enum_value(self, enum: EnumType, row) -> EnumValue:
        name = self.initialisms.snake_to_camel_identifier(row.value)
        # UserStatusActive of user_status -> Active
        if name.lower().endswith(enum.name.lower()):
            stripped = name[:len(name) - len(enum.name)]
            if stripped:
                name = stripped
        const_name = name + enum.name if enum.reverse_const_names else enum.name + name
        return EnumValue(name=name, value=row, const_name=const_name)

    def load_procedures(self, schema: str) -> Dict[str, Procedure]:
        if not self.adapter.supports(Capability.PROCEDURES):
            logger.debug("%s adapter has no procedures, skipping", self.adapter.ENGINE)
            return {}

        procedures = {}
        for row in self.adapter.procedures(schema):
            resolution = self.adapter.parse_type(row.return_type, False)
            procedure = Procedure(
                name=self.initialisms.snake_to_camel_identifier(row.name.lstrip("_")),
                schema=schema,
                proc=row,
                return_field=Field(
                    name="",
                    type=resolution.type,
                    zero_value=resolution.zero_value,
                    precision=resolution.precision,
                    column=Column(ordinal=0, name="", data_type=row.return_type, not_null=True),
                ),
            )
            signature = []
            for i, param in enumerate(self.adapter.proc_params(schema, row.name)):
                param_type = param.param_type.strip()
                resolution = self.adapter.parse_type(param_type, False)
                procedure.params.append(Field(
                    name=f"v{i}",
                    type=resolution.type,
                    zero_value=resolution.zero_value,
                    precision=resolution.precision,
                    column=Column(ordinal=i, name=f"v{i}", data_type=param_type, not_null=True),
                ))
                signature.append(param.param_type)
            procedure.proc_params = ", ".join(signature)
            procedures[row.name] = procedure
        return procedures

    # -- relations ----------------------------------------------------------

    def manual_primary_key_lookup(self, schema: str) -> Set[str]:
        """Get the names of tables whose key is generated by the database."""
        generated = set()
        if self.adapter.supports(Capability.SEQUENCES):
            generated.update(self.adapter.sequence_tables(schema))
        if self.adapter.supports(Capability.AUTO_INCREMENTS):
            generated.update(self.adapter.auto_increment_tables(schema))
        return generated

    def load_relations(self, schema: str, rel_type: RelType, generated_keys: Set[str]) -> Dict[str, Relation]:
        """Load every table or view that is not ignored, keyed by native name."""
        relations = {}
        for row in self.adapter.tables(schema, self.adapter.relkind(rel_type)):
            if row.name.lower() in self._ignore_tables:
                logger.debug("Ignoring %s %s", rel_type.value.lower(), row.name)
                continue
            row.manual_pk = row.name not in generated_keys
            relations[row.name] = self.load_relation(schema, rel_type, row)
        logger.info("Loaded %d %ss from %s", len(relations), rel_type.value.lower(), schema or "(default)")
        return relations

    def load_relation(self, schema: str, rel_type: RelType, row: Table) -> Relation:
        relation = Relation(
            name=singularize_identifier(row.name, self.initialisms),
            schema=schema,
            rel_type=rel_type,
            table=row,
            manual_primary_key=row.manual_pk,
            comment=row.comment,
        )
        for column in self.adapter.columns(schema, row.name):
            if column.name.lower() in self._ignore_fields:
                continue
            resolution = self.adapter.parse_type(column.data_type, column.is_nullable)
            f = Field(
                name=self.initialisms.snake_to_camel_identifier(column.name),
                type=resolution.type,
                zero_value=resolution.zero_value,
                precision=resolution.precision,
                column=column,
                comment=column.comment,
            )
            if column.is_primary_key:
                relation.primary_key_fields.append(f)
                if relation.primary_key is None:
                    relation.primary_key = f
            relation.fields.append(f)
        logger.debug("%s: %d fields", row.name, len(relation.fields))
        return relation

    @staticmethod
    def merge(tables: Dict[str, Relation], views: Dict[str, Relation]) -> Dict[str, Relation]:
        """Merge tables and views into one namespace.

        A view replaces a table of the same name.
        """
        merged = dict(tables)
        for name, view in views.items():
            if name in merged:
                logger.warning("View %s replaces the table of the same name", name)
            merged[name] = view
        return merged
