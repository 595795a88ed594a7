"""CockroachDB backend adapter."""

import logging
from typing import List

from .base import Capability
from .models import ForeignKey
from .postgres import PostgresAdapter

logger = logging.getLogger(__name__)


class CockroachAdapter(PostgresAdapter):
    """Adapter for CockroachDB, which emulates the PostgreSQL catalog.

    CockroachDB has no database wide unique foreign key names, backs keys
    with ``unique_rowid()`` rather than sequences, and reports UNIQUE
    constraints spanning referencing columns as extra foreign keys.
    """

    ENGINE = "cockroachdb"
    CAPABILITIES = PostgresAdapter.CAPABILITIES | {Capability.AUTO_INCREMENTS}

    def auto_increment_tables(self, schema: str) -> List[str]:
        rows = self._fetch_all("""
            SELECT DISTINCT table_name
            FROM information_schema.columns
            WHERE table_schema = %s AND column_default = 'unique_rowid()'
        """, (schema,))
        return [row[0] for row in rows]

    def correct_foreign_keys(self, foreign_keys: List[ForeignKey]) -> List[ForeignKey]:
        """Keep only foreign keys whose name contains their own column name."""
        kept = [fk for fk in foreign_keys if fk.column_name in fk.name]
        if len(kept) != len(foreign_keys):
            logger.debug(
                "Dropped %d foreign keys derived from unique constraints",
                len(foreign_keys) - len(kept),
            )
        return kept
