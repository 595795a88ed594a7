"""Registry of backend adapters by engine name."""

from typing import Any, Dict, Iterable, List, Type

from ..errors import ConfigurationError
from .base import BackendAdapter


class AdapterRegistry:
    """Maps engine names and their aliases to adapter classes.

    Built once at startup and handed to whoever creates adapters; tests can
    build their own registry holding fakes.
    """

    def __init__(self):
        self._adapters: Dict[str, Type[BackendAdapter]] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, name: str, adapter_cls: Type[BackendAdapter], aliases: Iterable[str] = ()):
        """Register an adapter class under a name and optional aliases."""
        name = name.lower()
        self._adapters[name] = adapter_cls
        self._aliases[name] = name
        for alias in aliases:
            self._aliases[alias.lower()] = name

    def resolve_name(self, name: str) -> str:
        """Return the registered engine name for a name or alias.

        Raises:
            ConfigurationError: If the engine is unknown
        """
        key = name.lower()
        if key not in self._aliases:
            raise ConfigurationError(
                f"unknown database engine {name!r}",
                details={"engine": name, "known": sorted(self._aliases)},
            )
        return self._aliases[key]

    def get(self, name: str) -> Type[BackendAdapter]:
        return self._adapters[self.resolve_name(name)]

    def create(self, name: str, connection: Any, settings) -> BackendAdapter:
        """Create an adapter for an engine around an open connection."""
        return self.get(name).from_settings(connection, settings)

    def engines(self) -> Dict[str, List[str]]:
        """Return each engine with its aliases."""
        result = {name: [] for name in self._adapters}
        for alias, name in self._aliases.items():
            if alias != name:
                result[name].append(alias)
        return result

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._aliases


def default_registry() -> AdapterRegistry:
    """Create a registry holding the built in adapters."""
    from .cockroach import CockroachAdapter
    from .duckdb import DuckDBAdapter
    from .oracle import OracleAdapter
    from .postgres import PostgresAdapter
    from .sqlite import SQLiteAdapter

    registry = AdapterRegistry()
    registry.register("postgres", PostgresAdapter, aliases=("postgresql", "pgsql", "pg"))
    registry.register("cockroachdb", CockroachAdapter, aliases=("crdb", "cockroach"))
    registry.register("sqlite", SQLiteAdapter, aliases=("sqlite3", "file"))
    registry.register("duckdb", DuckDBAdapter)
    registry.register("oracle", OracleAdapter, aliases=("ora", "oracledb"))
    return registry
