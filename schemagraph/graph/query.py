"""Ad-hoc query introspection.

A query's parameters are written inline as ``%%name type%%``. The statement
is rewritten twice: once with the engine's placeholders for the generated
code, and once with NULLs so that it can back a throwaway view whose
columns describe the result row.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..database.base import BackendAdapter, Capability, RelType
from ..database.models import Column, Table
from ..errors import QueryParseError
from ..naming import Initialisms, default_initialisms, pluralize
from .models import Field, Query, QueryParam, QueryType

logger = logging.getLogger(__name__)


@dataclass
class QuerySpec:
    """An ad-hoc query to generate a type and function for."""
    statement: str
    type_name: str
    func_name: str = ""
    only_one: bool = False
    fields: str = ""  # "name type, ..." to skip introspection
    type_comment: str = ""
    func_comment: str = ""


def parse_query(statement: str, mask: str, delimiter: str = "%%") -> Tuple[str, List[QueryParam]]:
    """Replace inline parameters with placeholders.

    Args:
        statement: Query text containing '<delim>name type<delim>' markers
        mask: Placeholder, '%d' is replaced by the 1-based parameter number
        delimiter: Parameter delimiter

    Returns:
        Tuple of (rewritten statement, parameters in order)

    Raises:
        QueryParseError: If a parameter has no type or carries options
    """
    pattern = re.compile(re.escape(delimiter) + "[^" + re.escape(delimiter[0]) + "]+" + re.escape(delimiter))

    out = []
    params = []
    last = 0
    for i, m in enumerate(pattern.finditer(statement), start=1):
        body = m.group(0)[len(delimiter):-len(delimiter)]
        parts = body.strip().split(" ", 1)
        if len(parts) < 2 or not parts[1].strip():
            raise QueryParseError(
                f"query parameter {body!r} has no type",
                details={"parameter": body},
            )
        name, typ = parts[0], parts[1].strip()
        if "," in typ:
            raise QueryParseError(
                f"unknown option on query parameter {name!r}: {typ.split(',', 1)[1].strip()}",
                details={"parameter": body},
            )

        out.append(statement[last:m.start()])
        out.append(mask % i if "%d" in mask else mask)
        params.append(QueryParam(name=name, type=typ))
        last = m.end()
    out.append(statement[last:])
    return "".join(out), params


def _trim_lines(lines: List[str]) -> List[str]:
    trimmed = [line.strip() for line in lines]
    return [line + " " for line in trimmed[:-1]] + trimmed[-1:]


class QueryIntrospector:
    """Builds a Query and its result type from a QuerySpec."""

    def __init__(
        self,
        adapter: BackendAdapter,
        delimiter: str = "%%",
        trim: bool = False,
        strip: bool = False,
        allow_nulls: bool = False,
        initialisms: Optional[Initialisms] = None,
    ):
        self.adapter = adapter
        self.delimiter = delimiter
        self.trim = trim
        self.strip = strip
        self.allow_nulls = allow_nulls
        self.initialisms = initialisms or default_initialisms

    def introspect(self, spec: QuerySpec) -> Query:
        query_str, params = parse_query(spec.statement, self.adapter.mask(), self.delimiter)
        inspect_str, _ = parse_query(spec.statement, "NULL", self.delimiter)

        lines = query_str.split("\n")
        inspect = inspect_str.split("\n")
        comments = [""] * (len(lines) + 1)

        if self.trim:
            lines = _trim_lines(lines)
            inspect = _trim_lines(inspect)

        if self.strip and self.adapter.supports(Capability.QUERY_STRIP):
            self.adapter.strip_query(lines, comments)

        query_type = QueryType(
            name=spec.type_name,
            schema="",
            rel_type=RelType.TABLE,
            table=Table(name=f"[custom {self.initialisms.camel_to_snake(spec.type_name)}]"),
            comment=spec.type_comment,
        )
        if spec.fields:
            query_type.fields = self._declared_fields(spec.fields)
        else:
            query_type.fields = self._introspected_fields("\n".join(inspect))

        logger.debug("Query type %s has %d fields", spec.type_name, len(query_type.fields))
        return Query(
            name=spec.func_name or self.func_name(spec, params),
            lines=lines,
            comments=comments,
            params=params,
            type=query_type,
            only_one=spec.only_one,
            comment=spec.func_comment,
        )

    def _declared_fields(self, declared: str) -> List[Field]:
        fields = []
        for i, part in enumerate(declared.split(",")):
            part = part.strip()
            name, _, typ = part.partition(" ")
            typ = typ.strip() or "string"
            fields.append(Field(
                name=name,
                type=typ,
                zero_value="",
                column=Column(ordinal=i, name=self.initialisms.camel_to_snake(name), data_type=typ),
            ))
        return fields

    def _introspected_fields(self, statement: str) -> List[Field]:
        fields = []
        for column in self.adapter.introspect_query(statement):
            resolution = self.adapter.parse_type(column.data_type, self.allow_nulls and not column.not_null)
            fields.append(Field(
                name=self.initialisms.snake_to_camel_identifier(column.name),
                type=resolution.type,
                zero_value=resolution.zero_value,
                precision=resolution.precision,
                column=column,
            ))
        return fields

    @staticmethod
    def func_name(spec: QuerySpec, params: List[QueryParam]) -> str:
        """Name the query function after its type and parameters.

        GetUsers without parameters, UserByID for an only-one query with an
        ``ID`` parameter.
        """
        name = spec.type_name if spec.only_one else pluralize(spec.type_name)
        if not params:
            return "Get" + name
        return name + "By" + "".join(p.name[:1].upper() + p.name[1:] for p in params)
