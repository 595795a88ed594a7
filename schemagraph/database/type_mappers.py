"""Database-specific type mapping strategies.

Every engine maps its native type names onto the canonical PostgreSQL names;
the canonical name is then looked up in the table for the configured
presentation mode to produce the generated code's type and zero value.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from ..errors import ConfigurationError
from ..naming import Initialisms, default_initialisms

_PRECISION_RE = re.compile(r"\((\d+)(?:\s*,\s*(\d+))?\)$")
_INNER_PRECISION_RE = re.compile(r"\(\d+\)")

INT32 = "{int32}"
UINT32 = "{uint32}"


class TypeMode(str, Enum):
    """Target type family used for generated fields."""
    STANDARD = "std"          # plain types, sql.Null* when nullable
    FULL = "pgtype-full"      # pgtype.* everywhere
    POINTER = "pointer"       # pgtype's internal types, *T when nullable
    PGTYPE = "pgtype"         # internal types, pgtype.* when nullable

    @classmethod
    def parse(cls, value) -> "TypeMode":
        """Parse a mode string; 'default' is an alias for 'std'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "default":
            return cls.STANDARD
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(
                f"invalid type mode {value!r}",
                details={"mode": value, "valid": [m.value for m in cls] + ["default"]},
            )


class TypeResolution(NamedTuple):
    """Resolved target type of a native type descriptor."""
    type: str
    zero_value: str
    precision: int = 0


# canonical name -> ((type, zero), (nullable type, nullable zero), as_slice)
_NULL_BOOL = ("sql.NullBool", "sql.NullBool{}")
_NULL_STRING = ("sql.NullString", "sql.NullString{}")
_NULL_INT = ("sql.NullInt64", "sql.NullInt64{}")
_NULL_FLOAT = ("sql.NullFloat64", "sql.NullFloat64{}")
_NULL_TIME = ("pq.NullTime", "pq.NullTime{}")

_STANDARD_TYPES = {
    "boolean": (("bool", "false"), _NULL_BOOL, False),
    "smallint": (("int16", "0"), _NULL_INT, False),
    "integer": ((INT32, "0"), _NULL_INT, False),
    "bigint": (("int64", "0"), _NULL_INT, False),
    "smallserial": (("uint16", "0"), _NULL_INT, False),
    "serial": ((UINT32, "0"), _NULL_INT, False),
    "bigserial": (("uint64", "0"), _NULL_INT, False),
    "real": (("float32", "0.0"), _NULL_FLOAT, False),
    "interval": (("*time.Duration", "nil"), ("*time.Duration", "nil"), False),
    '"char"': (("uint8", "uint8(0)"), ("uint8", "uint8(0)"), False),
    "bit": (("uint8", "uint8(0)"), ("uint8", "uint8(0)"), False),
    "hstore": (("hstore.Hstore", "nil"), ("hstore.Hstore", "nil"), False),
    "uuid": (("uuid.UUID", "uuid.New()"), ("uuid.UUID", "uuid.New()"), False),
}
for _name in ("character", "character varying", "text", "money", "inet"):
    _STANDARD_TYPES[_name] = (("string", '""'), _NULL_STRING, False)
for _name in ("numeric", "double precision"):
    _STANDARD_TYPES[_name] = (("float64", "0.0"), _NULL_FLOAT, False)
for _name in ("date", "timestamp with time zone", "timestamp without time zone",
              "time with time zone", "time without time zone"):
    _STANDARD_TYPES[_name] = (("time.Time", "time.Time{}"), _NULL_TIME, False)
for _name in ("bytea", '"any"', "bit varying"):
    _STANDARD_TYPES[_name] = (("byte", "nil"), ("byte", "nil"), True)

# canonical name -> (type, zero, as_slice); the Go types pgtype stores internally
_INTERNAL_TYPES = {
    "boolean": ("bool", "false", False),
    "inet": ("*net.IPNet", "nil", False),
    "smallint": ("int16", "0", False),
    "smallserial": ("int16", "0", False),
    "integer": (INT32, "0", False),
    "serial": (UINT32, "0", False),
    "bigint": ("int64", "0", False),
    "bigserial": ("int64", "0", False),
    "real": ("float32", "0", False),
    "double precision": ("float64", "0", False),
    "numeric": ("float64", "0.0", False),
    "bytea": ("[]byte", "nil", False),
    # time with time zone does not store a zone, both map to microseconds
    "time with time zone": ("int64", "0", False),
    "time without time zone": ("int64", "0", False),
    "interval": ("*time.Duration", "nil", False),
    '"char"': ("int8", "0", False),
    "bit": ("uint8", "uint8(0)", False),
    "bit varying": ("byte", "nil", True),
    '"any"': ("byte", "nil", True),
    "hstore": ("hstore.Hstore", "nil", False),
    "uuid": ("[16]byte", "[16]byte{}", False),
}
for _name in ("character varying", "money", "text", "character"):
    _INTERNAL_TYPES[_name] = ("string", '""', False)
for _name in ("date", "timestamp without time zone", "timestamp with time zone"):
    _INTERNAL_TYPES[_name] = ("time.Time", "time.Time{}", False)

_PGTYPE_TYPES = {
    "boolean": "pgtype.Bool",
    "inet": "pgtype.Inet",
    "character varying": "pgtype.Varchar",
    "money": "pgtype.Text",
    "text": "pgtype.Text",
    "character": "pgtype.Text",
    "smallint": "pgtype.Int2",
    "smallserial": "pgtype.Int2",
    "integer": "pgtype.Int4",
    "serial": "pgtype.Int4",
    "bigint": "pgtype.Int8",
    "bigserial": "pgtype.Int8",
    "real": "pgtype.Float4",
    "double precision": "pgtype.Float8",
    "numeric": "pgtype.Numeric",
    "bytea": "pgtype.Bytea",
    "date": "pgtype.Date",
    "timestamp without time zone": "pgtype.Timestamp",
    "timestamp with time zone": "pgtype.Timestamptz",
    "time with time zone": "pgtype.Time",
    "time without time zone": "pgtype.Time",
    "interval": "pgtype.Interval",
    '"char"': "pgtype.QChar",
    "bit": "pgtype.Bit",
    "bit varying": "pgtype.Varbit",
    '"any"': "pgtype.Varbit",
    "hstore": "pgtype.Hstore",
    "uuid": "pgtype.UUID",
}


def parse_precision(data_type: str) -> Tuple[str, int, int]:
    """Split a trailing '(precision[, scale])' off a type name.

    Returns:
        Tuple of (type name, precision, scale); 0 when absent
    """
    m = _PRECISION_RE.search(data_type)
    if not m:
        return data_type.strip(), 0, 0
    precision = int(m.group(1))
    scale = int(m.group(2)) if m.group(2) else 0
    return data_type[:m.start()].strip(), precision, scale


class TypeMapper(ABC):
    """Abstract base class for database type mapping.

    Subclasses only translate engine type names to canonical names; the
    SETOF/array/precision handling and the mode tables are shared.
    """

    def __init__(
        self,
        mode=TypeMode.STANDARD,
        schema: str = "",
        int32_type: str = "int32",
        uint32_type: str = "uint32",
        initialisms: Optional[Initialisms] = None,
    ):
        self.mode = TypeMode.parse(mode)
        self.schema = schema
        self.int32_type = int32_type
        self.uint32_type = uint32_type
        self.initialisms = initialisms or default_initialisms

    @abstractmethod
    def canonical_name(self, data_type: str, precision: int, scale: int) -> str:
        """Convert an engine type name to its canonical PostgreSQL name."""
        pass

    def resolve(self, data_type: str, nullable: bool, mode=None) -> TypeResolution:
        """Resolve a native type descriptor to a target type.

        Args:
            data_type: Native type, e.g. 'integer', 'character varying[]'
            nullable: Whether the column/value may be NULL
            mode: Presentation mode, defaults to the mapper's mode

        Returns:
            TypeResolution of (type, zero value, precision)
        """
        mode = self.mode if mode is None else TypeMode.parse(mode)
        data_type = data_type.strip()

        if data_type.upper().startswith("SETOF "):
            element = self.resolve(data_type[len("SETOF "):], False, mode)
            return TypeResolution("[]" + element.type, "nil", 0)

        as_slice = False
        if data_type.endswith("[]"):
            data_type = data_type[:-2].strip()
            as_slice = True
            # arrays are nil-able themselves, elements are resolved as values
            nullable = False

        base, precision, scale = parse_precision(data_type)
        found = self._lookup(self.canonical_name(base, precision, scale), nullable, mode)
        if found is None:
            typ, zero = self._fallback(base)
        else:
            typ, zero, element_slice = found
            as_slice = as_slice or element_slice

        if typ == "string" and as_slice:
            return TypeResolution("StringSlice", "StringSlice{}", precision)
        if as_slice:
            return TypeResolution("[]" + typ, "nil", precision)
        return TypeResolution(typ, zero, precision)

    def _lookup(self, name: str, nullable: bool, mode: TypeMode):
        if mode == TypeMode.STANDARD:
            entry = _STANDARD_TYPES.get(name)
            if entry is None:
                return None
            plain, wrapped, as_slice = entry
            typ, zero = wrapped if nullable else plain
            return self._sized(typ), zero, as_slice

        if mode == TypeMode.FULL or (mode == TypeMode.PGTYPE and nullable):
            typ = _PGTYPE_TYPES.get(name)
            if typ is None:
                return None
            return typ, typ + "{Status: pgtype.Null}", False

        entry = _INTERNAL_TYPES.get(name)
        if entry is None:
            return None
        typ, zero, as_slice = entry
        typ = self._sized(typ)
        if mode == TypeMode.POINTER and nullable and not as_slice and not typ.startswith("*"):
            return "*" + typ, "nil", as_slice
        return typ, zero, as_slice

    def _sized(self, typ: str) -> str:
        if typ == INT32:
            return self.int32_type
        if typ == UINT32:
            return self.uint32_type
        return typ

    def _fallback(self, data_type: str) -> Tuple[str, str]:
        # unknown types are assumed to be user defined (enum or composite)
        prefix = self.schema + "." if self.schema else None
        if prefix and data_type.startswith(prefix):
            typ = self.initialisms.snake_to_camel_identifier(data_type[len(prefix):])
            return typ, typ + "(0)"
        typ = self.initialisms.snake_to_camel_identifier(data_type)
        return typ, typ + "{}"


class PostgresTypeMapper(TypeMapper):
    """Type mapper for PostgreSQL (and CockroachDB) ``format_type`` names."""

    def canonical_name(self, data_type: str, precision: int, scale: int) -> str:
        # 'timestamp(3) with time zone' carries its precision mid-name
        return " ".join(_INNER_PRECISION_RE.sub("", data_type).split())


class SQLiteTypeMapper(TypeMapper):
    """Type mapper for SQLite declared column types (affinity based)."""

    def canonical_name(self, data_type: str, precision: int, scale: int) -> str:
        type_upper = data_type.upper()

        if type_upper in ("BOOL", "BOOLEAN"):
            return "boolean"
        elif type_upper in ("TINYINT", "SMALLINT", "INT2"):
            return "smallint"
        # INTEGER columns hold 64-bit values (rowid)
        elif "INT" in type_upper:
            return "bigint"
        elif any(t in type_upper for t in ["CHAR", "CLOB", "TEXT"]) or type_upper == "":
            return "text"
        elif "BLOB" in type_upper:
            return "bytea"
        elif any(t in type_upper for t in ["REAL", "FLOA", "DOUB"]):
            return "double precision"
        elif type_upper in ("NUMERIC", "DECIMAL"):
            return "numeric"
        elif "TIMESTAMP" in type_upper or "DATETIME" in type_upper:
            return "timestamp without time zone"
        elif type_upper == "DATE":
            return "date"
        elif type_upper == "TIME":
            return "time without time zone"
        return data_type


_DUCKDB_NAMES = {
    "VARCHAR": "character varying",
    "TEXT": "text",
    "STRING": "text",
    "JSON": "text",
    "CHAR": "character",
    "BPCHAR": "character",
    "BOOLEAN": "boolean",
    "BOOL": "boolean",
    "LOGICAL": "boolean",
    "TINYINT": "smallint",
    "INT1": "smallint",
    "UTINYINT": "smallint",
    "SMALLINT": "smallint",
    "INT2": "smallint",
    "SHORT": "smallint",
    "USMALLINT": "integer",
    "INTEGER": "integer",
    "INT4": "integer",
    "INT": "integer",
    "SIGNED": "integer",
    "UINTEGER": "bigint",
    "BIGINT": "bigint",
    "INT8": "bigint",
    "LONG": "bigint",
    "UBIGINT": "numeric",
    "HUGEINT": "numeric",
    "UHUGEINT": "numeric",
    "FLOAT": "real",
    "FLOAT4": "real",
    "REAL": "real",
    "DOUBLE": "double precision",
    "FLOAT8": "double precision",
    "DECIMAL": "numeric",
    "NUMERIC": "numeric",
    "DATE": "date",
    "TIMESTAMP": "timestamp without time zone",
    "DATETIME": "timestamp without time zone",
    "TIMESTAMP_S": "timestamp without time zone",
    "TIMESTAMP_MS": "timestamp without time zone",
    "TIMESTAMP_NS": "timestamp without time zone",
    "TIMESTAMPTZ": "timestamp with time zone",
    "TIMESTAMP WITH TIME ZONE": "timestamp with time zone",
    "TIME": "time without time zone",
    "TIMETZ": "time with time zone",
    "TIME WITH TIME ZONE": "time with time zone",
    "INTERVAL": "interval",
    "BLOB": "bytea",
    "BYTEA": "bytea",
    "BINARY": "bytea",
    "VARBINARY": "bytea",
    "UUID": "uuid",
    "BIT": "bit varying",
    "BITSTRING": "bit varying",
}


class DuckDBTypeMapper(TypeMapper):
    """Type mapper for DuckDB logical type names."""

    def canonical_name(self, data_type: str, precision: int, scale: int) -> str:
        return _DUCKDB_NAMES.get(data_type.upper(), data_type)


class OracleTypeMapper(TypeMapper):
    """Type mapper for Oracle ``ALL_TAB_COLUMNS.DATA_TYPE`` names."""

    def canonical_name(self, data_type: str, precision: int, scale: int) -> str:
        type_upper = data_type.upper()

        if type_upper in ("VARCHAR2", "NVARCHAR2", "VARCHAR"):
            return "character varying"
        elif type_upper in ("CHAR", "NCHAR"):
            return "character"
        elif type_upper in ("CLOB", "NCLOB", "LONG"):
            return "text"
        elif type_upper == "NUMBER":
            if scale > 0 or precision == 0 or precision > 18:
                return "numeric"
            elif precision <= 4:
                return "smallint"
            elif precision <= 9:
                return "integer"
            return "bigint"
        elif type_upper in ("FLOAT", "BINARY_DOUBLE"):
            return "double precision"
        elif type_upper == "BINARY_FLOAT":
            return "real"
        elif type_upper == "DATE":
            return "timestamp without time zone"
        elif type_upper.startswith("TIMESTAMP"):
            if "TIME ZONE" in type_upper:
                return "timestamp with time zone"
            return "timestamp without time zone"
        elif type_upper.startswith("INTERVAL"):
            return "interval"
        elif type_upper in ("RAW", "LONG RAW", "BLOB"):
            return "bytea"
        return data_type
