"""Index resolution, including the implicit primary key index."""

import logging
import re
from typing import Dict, List, Optional

from ..database.base import BackendAdapter
from ..database.models import Index as IndexRow
from ..errors import ConsistencyError
from ..naming import Initialisms, default_initialisms, pluralize
from .models import Field, Index, Relation

logger = logging.getLogger(__name__)

_INDEX_SUFFIX_RE = re.compile(r"_(ix|idx|index|pkey|ukey|key)$")


def index_accessor_suffix(index_name: str, table_name: str, initialisms: Initialisms) -> str:
    """Camel case an index name for use in accessor names.

    Common suffixes (_idx, _key, ...) and the table name prefix are removed;
    an index named after its table yields ''.
    """
    name = _INDEX_SUFFIX_RE.sub("", index_name)
    if name == table_name:
        return ""
    if name.startswith(table_name + "_"):
        name = name[len(table_name) + 1:]
    return initialisms.snake_to_camel_identifier(name)


class IndexResolver:
    """Loads each relation's indexes with their fields in key order."""

    def __init__(
        self,
        adapter: BackendAdapter,
        schema: str,
        use_index_names: bool = False,
        initialisms: Optional[Initialisms] = None,
    ):
        self.adapter = adapter
        self.schema = schema
        self.use_index_names = use_index_names
        self.initialisms = initialisms or default_initialisms

    def resolve(self, relations: Dict[str, Relation]) -> Dict[str, Index]:
        """Resolve the indexes of every relation.

        Returns:
            Map of every index keyed by '<table>_<index>'
        """
        index_map: Dict[str, Index] = {}
        for relation in relations.values():
            relation.indexes = self.resolve_relation(relation)
            for index in relation.indexes:
                index_map[f"{relation.table_name}_{index.index.name}"] = index
        logger.info("Resolved %d indexes", len(index_map))
        return index_map

    def resolve_relation(self, relation: Relation) -> List[Index]:
        indexes = []
        primary_loaded = False
        for row in self.adapter.indexes(self.schema, relation.table_name):
            fields = self.ordered_fields(relation, row.name)
            if not fields:
                # expression-only index
                logger.debug("Skipping index %s on %s, it has no columns", row.name, relation.table_name)
                continue
            primary_loaded = primary_loaded or row.is_primary or row.origin == "pk"
            index = Index(
                schema=self.schema,
                relation=relation,
                index=row,
                fields=fields,
            )
            index.func_name = self.func_name(index)
            indexes.append(index)

        if not primary_loaded and relation.primary_key is not None \
                and self.adapter.SYNTHESIZE_PRIMARY_KEY_INDEX:
            indexes.append(self._primary_key_index(relation))
        return indexes

    def ordered_fields(self, relation: Relation, index_name: str) -> List[Field]:
        """Get an index's fields ordered by the adapter's column order query.

        Raises:
            ConsistencyError: If an ordinal is not an integer, matches no
                index column, or names a column absent from the relation
        """
        table = relation.table_name
        qualified = f"{self.schema}.{table}" if self.schema else table
        details = {"schema": self.schema, "table": table, "index": index_name}

        columns = self.adapter.index_columns(self.schema, table, index_name)
        order = self.adapter.index_column_order(self.schema, index_name)

        fields = []
        for token in order.split():
            try:
                cid = int(token)
            except ValueError:
                raise ConsistencyError(
                    f"could not convert {qualified} index {index_name} column {token} to int",
                    details=dict(details, ordinal=token),
                )

            column = next((c for c in columns if c.cid == cid), None)
            if column is None:
                raise ConsistencyError(
                    f"could not find {qualified} index {index_name} column id {cid}",
                    details=dict(details, ordinal=cid),
                )

            f = relation.field_by_column(column.column_name)
            if f is None:
                raise ConsistencyError(
                    f"{qualified} index {index_name} references unknown column {column.column_name}",
                    details=dict(details, column=column.column_name),
                )
            fields.append(f)
        return fields

    def func_name(self, index: Index) -> str:
        """Build an index accessor name, e.g. UserByEmail or UsersByCreatedAt."""
        relation = index.relation
        name = relation.name if index.is_unique else pluralize(relation.name)

        suffix = ""
        if self.use_index_names:
            suffix = index_accessor_suffix(index.index.name, relation.table_name, self.initialisms)
        if not suffix:
            suffix = "".join(f.name for f in index.fields)
        return name + "By" + suffix

    def _primary_key_index(self, relation: Relation) -> Index:
        pk = relation.primary_key
        fields = relation.primary_key_fields or [pk]
        name = f"{relation.table_name}_{pk.column_name}_pkey"
        logger.debug("Synthesizing primary key index %s", name)
        return Index(
            schema=self.schema,
            relation=relation,
            index=IndexRow(name=name, is_unique=True, is_primary=True),
            fields=list(fields),
            func_name=relation.name + "By" + "".join(f.name for f in fields),
        )
