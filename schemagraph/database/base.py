"""Abstract base class for backend adapters.

An adapter wraps one DB-API connection and knows how to read a single
engine's catalog. It never resolves references; that is the graph builder's
job. Optional catalog features are declared in ``CAPABILITIES`` and must be
checked with :meth:`BackendAdapter.supports` before use.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Type

from ..errors import CapabilityError, ViewCleanupError
from .models import Column, Enum as EnumRow, EnumValue, ForeignKey, Index, IndexColumn, Proc, ProcParam, Table
from .type_mappers import TypeMapper, TypeResolution

logger = logging.getLogger(__name__)


class RelType(str, Enum):
    """Relation kinds loaded into the graph."""
    TABLE = "TABLE"
    VIEW = "VIEW"


class Capability(str, Enum):
    """Optional adapter capabilities."""
    SCHEMA_DISCOVERY = "schema_discovery"
    ENUMS = "enums"
    PROCEDURES = "procedures"
    SEQUENCES = "sequences"
    AUTO_INCREMENTS = "auto_increments"
    QUERY_INTROSPECTION = "query_introspection"
    QUERY_STRIP = "query_strip"


class BackendAdapter(ABC):
    """Abstract base class for database catalog adapters.

    Subclasses must implement the abstract methods to provide
    engine-specific catalog queries, and override the optional ones
    listed in ``CAPABILITIES``.
    """

    ENGINE: str = ""
    CAPABILITIES: FrozenSet[Capability] = frozenset()
    TYPE_MAPPER: Type[TypeMapper]

    # Parameter placeholder mask for generated queries
    PARAM_MASK = "$%d"

    # Backends that never report a primary key as an index get one synthesized
    SYNTHESIZE_PRIMARY_KEY_INDEX = True

    VIEW_PREFIX = "sg_tmp_"
    VIEW_ID_LENGTH = 32

    def __init__(self, connection: Any, type_mapper: Optional[TypeMapper] = None):
        """Initialize the adapter.

        Args:
            connection: Open DB-API connection, owned by the caller
            type_mapper: Type mapper, defaults to TYPE_MAPPER with std mode
        """
        self.connection = connection
        self.type_mapper = type_mapper or self.TYPE_MAPPER()

    @classmethod
    def from_settings(cls, connection: Any, settings) -> "BackendAdapter":
        """Create an adapter configured from a Settings instance."""
        from ..naming import build_initialisms

        type_mapper = cls.TYPE_MAPPER(
            mode=settings.type_mode,
            schema=settings.schema_name or "",
            int32_type=settings.int32_type,
            uint32_type=settings.uint32_type,
            initialisms=build_initialisms(settings.initialisms),
        )
        return cls(connection, type_mapper=type_mapper, **cls.options_from_settings(settings))

    @classmethod
    def options_from_settings(cls, settings) -> Dict[str, Any]:
        """Extra constructor keyword arguments taken from settings."""
        return {}

    def supports(self, capability: Capability) -> bool:
        return capability in self.CAPABILITIES

    def _unsupported(self, capability: Capability):
        raise CapabilityError(self.ENGINE, capability.value)

    # -- presentation -----------------------------------------------------

    def mask(self) -> str:
        """Return the parameter placeholder mask, e.g. '$%d'."""
        return self.PARAM_MASK

    def nth_param(self, i: int) -> str:
        """Return the placeholder for the 0-based i-th parameter."""
        mask = self.mask()
        if "%d" in mask:
            return mask % (i + 1)
        return mask

    def escape(self, identifier: str) -> str:
        """Quote an identifier."""
        return '"' + identifier.replace('"', '""') + '"'

    def fold_case(self, identifier: str) -> str:
        """Return identifier as the catalog stores an unquoted name."""
        return identifier

    @abstractmethod
    def relkind(self, rel_type: RelType) -> str:
        """Return the engine's catalog string for a relation kind."""
        pass

    def parse_type(self, data_type: str, nullable: bool) -> TypeResolution:
        """Resolve a native type through the adapter's type mapper."""
        return self.type_mapper.resolve(data_type, nullable)

    # -- driver helpers ---------------------------------------------------

    def _fetch_all(self, sql: str, params: Sequence = ()) -> List[tuple]:
        """Execute a SQL query and return all rows."""
        logger.debug("%s %s", " ".join(sql.split()), list(params))
        cursor = self.connection.cursor()
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
            return cursor.fetchall()
        finally:
            cursor.close()

    def _fetch_one(self, sql: str, params: Sequence = ()) -> Optional[tuple]:
        rows = self._fetch_all(sql, params)
        return rows[0] if rows else None

    def _execute(self, sql: str):
        """Execute a SQL statement that returns no rows."""
        logger.debug("%s", " ".join(sql.split()))
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    # -- required catalog queries -----------------------------------------

    @abstractmethod
    def tables(self, schema: str, relkind: str) -> List[Table]:
        """Get all relations of one kind in a schema."""
        pass

    @abstractmethod
    def columns(self, schema: str, table: str) -> List[Column]:
        """Get the columns of a relation, in ordinal order."""
        pass

    @abstractmethod
    def foreign_keys(self, schema: str, table: str) -> List[ForeignKey]:
        """Get the foreign keys declared on a table."""
        pass

    @abstractmethod
    def indexes(self, schema: str, table: str) -> List[Index]:
        """Get the indexes of a table."""
        pass

    @abstractmethod
    def index_columns(self, schema: str, table: str, index: str) -> List[IndexColumn]:
        """Get the (unordered) columns of an index."""
        pass

    @abstractmethod
    def index_column_order(self, schema: str, index: str) -> str:
        """Get the index's column ids in key order, space separated ('3 1')."""
        pass

    def correct_foreign_keys(self, foreign_keys: List[ForeignKey]) -> List[ForeignKey]:
        """Drop foreign key rows the engine reports spuriously."""
        return foreign_keys

    # -- optional capabilities --------------------------------------------

    def schema_name(self) -> str:
        """Get the active schema name."""
        self._unsupported(Capability.SCHEMA_DISCOVERY)

    def enums(self, schema: str) -> List[EnumRow]:
        self._unsupported(Capability.ENUMS)

    def enum_values(self, schema: str, enum: str) -> List[EnumValue]:
        self._unsupported(Capability.ENUMS)

    def procedures(self, schema: str) -> List[Proc]:
        self._unsupported(Capability.PROCEDURES)

    def proc_params(self, schema: str, proc: str) -> List[ProcParam]:
        self._unsupported(Capability.PROCEDURES)

    def sequence_tables(self, schema: str) -> List[str]:
        """Get the names of tables whose key is backed by a sequence."""
        self._unsupported(Capability.SEQUENCES)

    def auto_increment_tables(self, schema: str) -> List[str]:
        """Get the names of tables with an auto-increment key."""
        self._unsupported(Capability.AUTO_INCREMENTS)

    def strip_query(self, lines: List[str], comments: List[str]):
        """Strip engine specific syntax from query lines in place."""
        self._unsupported(Capability.QUERY_STRIP)

    def view_schema(self, view: str) -> str:
        """Get the schema a freshly created view was placed in."""
        self._unsupported(Capability.QUERY_INTROSPECTION)

    def create_view_sql(self, view: str, statement: str) -> str:
        return f"CREATE VIEW {view} AS ({statement})"

    def drop_view_sql(self, view: str) -> str:
        return f"DROP VIEW {view}"

    @contextmanager
    def ephemeral_view(self, statement: str) -> Iterator[str]:
        """Create a throwaway view over statement and drop it on exit.

        The drop is attempted on every exit path. When the body failed, a
        drop failure is only logged so the original error propagates;
        otherwise it raises ViewCleanupError.
        """
        view = self.VIEW_PREFIX + uuid.uuid4().hex[:self.VIEW_ID_LENGTH]
        self._execute(self.create_view_sql(view, statement))
        failed = False
        try:
            yield view
        except Exception:
            failed = True
            raise
        finally:
            try:
                self._execute(self.drop_view_sql(view))
            except Exception as e:
                if failed:
                    logger.warning("Failed to drop introspection view %s: %s", view, e)
                else:
                    raise ViewCleanupError(view, e) from e

    def introspect_query(self, statement: str) -> List[Column]:
        """Get the result columns of an arbitrary query."""
        if not self.supports(Capability.QUERY_INTROSPECTION):
            self._unsupported(Capability.QUERY_INTROSPECTION)

        with self.ephemeral_view(statement) as view:
            name = self.fold_case(view)
            schema = self.view_schema(name)
            return self.columns(schema, name)

    def close(self):
        """Close the underlying connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
