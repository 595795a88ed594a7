"""Configuration management for schemagraph."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional

from .database.type_mappers import TypeMode
from .errors import ConfigurationError


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.schemagraph/.env
    3. Package directory (where this file is located)
    """
    # Current directory
    if os.path.exists(".env"):
        return ".env"

    # User config directory
    user_env = Path.home() / ".schemagraph" / ".env"
    if user_env.exists():
        return str(user_env)

    # Package directory
    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


FOREIGN_KEY_MODES = ("smart", "parent", "field", "key")


class Settings(BaseSettings):
    """Settings for schema introspection, loaded from SCHEMAGRAPH_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAGRAPH_",
        env_file=_find_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Catalog selection
    schema_name: Optional[str] = Field(
        default=None,
        description="Schema to introspect (default: the adapter's active schema)"
    )
    ignore_tables: List[str] = Field(
        default_factory=list,
        description="Tables to skip, matched case-insensitively"
    )
    ignore_fields: List[str] = Field(
        default_factory=list,
        description="Columns to skip in every table, matched case-insensitively"
    )

    # Type resolution
    type_mode: TypeMode = Field(
        default=TypeMode.STANDARD,
        description="Target type family: std, pgtype-full, pointer or pgtype"
    )
    int32_type: str = Field(default="int32", description="Type used for 32-bit integers")
    uint32_type: str = Field(default="uint32", description="Type used for unsigned 32-bit integers")
    initialisms: List[str] = Field(
        default_factory=list,
        description="Additional initialisms kept uppercase in identifiers"
    )

    # Naming
    foreign_key_mode: str = Field(
        default="smart",
        description="Foreign key accessor naming: smart, parent, field or key"
    )
    use_index_names: bool = Field(
        default=False,
        description="Name index accessors after the index instead of its fields"
    )
    use_reversed_enum_const_names: bool = Field(
        default=False,
        description="Name enum constants <Value><Enum> instead of <Enum><Value>"
    )

    # Ad-hoc queries
    query_param_delimiter: str = Field(default="%%", description="Delimiter around query parameters")
    query_trim: bool = Field(default=False, description="Trim whitespace from query lines")
    query_strip: bool = Field(default=False, description="Strip engine specific casts from queries")
    query_allow_nulls: bool = Field(default=False, description="Allow nullable query result fields")

    # Engine options
    enable_postgres_oids: bool = Field(
        default=False,
        description="Include PostgreSQL system columns (oid, ctid, ...)"
    )
    enable_postgres_json: bool = Field(
        default=False,
        description="Type PostgreSQL json and jsonb columns by their column name"
    )

    log_level: str = Field(default="WARNING", description="Logging level for the CLI")

    @field_validator("type_mode", mode="before")
    @classmethod
    def _parse_type_mode(cls, value):
        return TypeMode.parse(value)

    @field_validator("foreign_key_mode")
    @classmethod
    def _check_foreign_key_mode(cls, value: str) -> str:
        value = value.lower()
        if value not in FOREIGN_KEY_MODES:
            raise ConfigurationError(
                f"invalid foreign key mode {value!r}",
                details={"mode": value, "valid": list(FOREIGN_KEY_MODES)},
            )
        return value

    @field_validator("query_param_delimiter")
    @classmethod
    def _check_delimiter(cls, value: str) -> str:
        if not value:
            raise ConfigurationError("query parameter delimiter cannot be empty")
        return value


# Global settings instance
settings = Settings()
