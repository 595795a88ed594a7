"""Foreign key resolution against the merged relation namespace."""

import dataclasses
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from ..database.base import BackendAdapter
from ..database.models import ForeignKey as ForeignKeyRow
from ..errors import ConfigurationError, ConsistencyError
from ..naming import Initialisms, default_initialisms
from .models import ForeignKey, Relation

logger = logging.getLogger(__name__)


class ForeignKeyMode:
    SMART = "smart"    # parent name, or <Parent>By<Field> on conflicts
    PARENT = "parent"  # <Parent>
    FIELD = "field"    # <Parent>By<Field>
    KEY = "key"        # <Parent>By<Constraint>

    ALL = (SMART, PARENT, FIELD, KEY)


class ForeignKeyResolver:
    """Maps raw foreign key rows onto fields of the relation graph."""

    def __init__(
        self,
        adapter: BackendAdapter,
        schema: str,
        mode: str = ForeignKeyMode.SMART,
        initialisms: Optional[Initialisms] = None,
    ):
        if mode not in ForeignKeyMode.ALL:
            raise ConfigurationError(
                f"invalid foreign key mode {mode!r}",
                details={"mode": mode, "valid": list(ForeignKeyMode.ALL)},
            )
        self.adapter = adapter
        self.schema = schema
        self.mode = mode
        self.initialisms = initialisms or default_initialisms

    def resolve(self, relations: Dict[str, Relation]) -> Dict[str, ForeignKey]:
        """Resolve the foreign keys of every relation.

        Each relation's ``foreign_keys`` list is filled in catalog order.

        Returns:
            Map of every foreign key, keyed by constraint name plus a random
            suffix so that same-named constraints on different tables coexist
        """
        fk_map: Dict[str, ForeignKey] = {}
        for relation in relations.values():
            rows = self.adapter.foreign_keys(self.schema, relation.table_name)
            rows = self.adapter.correct_foreign_keys(rows)
            relation.foreign_keys = self.resolve_relation(relation, relations, rows)
            for fk in relation.foreign_keys:
                fk_map[f"{fk.constraint_name}_{uuid.uuid4().hex}"] = fk

        for fk in fk_map.values():
            fk.name = self.accessor_name(fk, fk_map.values())

        logger.info("Resolved %d foreign keys", len(fk_map))
        return fk_map

    def resolve_relation(
        self,
        relation: Relation,
        relations: Dict[str, Relation],
        rows: List[ForeignKeyRow],
    ) -> List[ForeignKey]:
        """Resolve one relation's foreign key rows.

        Raises:
            ConsistencyError: If the column, referenced table or referenced
                column cannot be found
        """
        foreign_keys = []
        for row in rows:
            col = relation.field_by_column(row.column_name)
            ref = relations.get(row.ref_table_name)
            ref_col = None
            if ref is not None:
                if row.ref_column_name:
                    ref_col = ref.field_by_column(row.ref_column_name)
                else:
                    ref_col = ref.primary_key

            if col is None or ref is None or ref_col is None:
                raise self._unresolved(relation, row, col is None, ref is None)

            if not row.name:
                row = dataclasses.replace(row, name=f"{relation.table_name}_{col.column_name}_fkey")

            logger.debug(
                "%s.%s -> %s.%s (%s)",
                relation.table_name, col.column_name, ref.table_name, ref_col.column_name, row.name,
            )
            foreign_keys.append(ForeignKey(
                schema=self.schema,
                relation=relation,
                field=col,
                ref_relation=ref,
                ref_field=ref_col,
                foreign_key=row,
            ))
        return foreign_keys

    def _unresolved(self, relation: Relation, row: ForeignKeyRow, no_col: bool, no_ref: bool) -> ConsistencyError:
        qualified = f"{self.schema}.{relation.table_name}" if self.schema else relation.table_name
        if no_col:
            missing = f"column {row.column_name}"
        elif no_ref:
            missing = f"referenced table {row.ref_table_name}"
        elif row.ref_column_name:
            missing = f"referenced column {row.ref_table_name}.{row.ref_column_name}"
        else:
            missing = f"primary key of referenced table {row.ref_table_name}"
        return ConsistencyError(
            f"could not resolve foreign key {row.name or '(unnamed)'} on {qualified}: {missing} not found",
            details={
                "schema": self.schema,
                "table": relation.table_name,
                "foreign_key": row.name,
                "column": row.column_name,
                "ref_table": row.ref_table_name,
                "ref_column": row.ref_column_name,
            },
        )

    def accessor_name(self, fk: ForeignKey, all_keys: Iterable[ForeignKey], mode: Optional[str] = None) -> str:
        """Generate the accessor name of a foreign key for a naming mode."""
        mode = mode or self.mode
        if mode == ForeignKeyMode.PARENT:
            return fk.ref_relation.name
        if mode == ForeignKeyMode.FIELD:
            return fk.ref_relation.name + "By" + fk.field.name
        if mode == ForeignKeyMode.KEY:
            return fk.ref_relation.name + "By" + self.initialisms.snake_to_camel_identifier(fk.constraint_name)

        # smart: fall back to field naming when a relation references the same parent twice
        for other in all_keys:
            if other is not fk and other.relation.name == fk.relation.name \
                    and other.ref_relation.name == fk.ref_relation.name:
                return self.accessor_name(fk, all_keys, ForeignKeyMode.FIELD)
        return self.accessor_name(fk, all_keys, ForeignKeyMode.PARENT)
