"""Database dialects: table layout, constraints and value conversion."""

from __future__ import annotations

import dataclasses
import datetime
import ipaddress
import json
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any

from cqprovider.schema.column import Column, ColumnList, ValueType
from cqprovider.schema.resource import (
    CQ_FETCH_DATE_COLUMN,
    CQ_ID_COLUMN,
    CQ_META_COLUMN,
    Resource,
)
from cqprovider.schema.table import Table

_PARENT_ID_RESOLVER_NAME = "schema.resolvers.parent_id_resolver"
_MAX_PK_CONSTRAINT_NAME = 60


class DialectType(str, Enum):
    """The supported database dialects."""

    POSTGRES = "postgres"
    TSDB = "timescale"

    def migration_directory(self) -> str:
        """Directory holding this dialect's migrations."""
        return self.value


class Dialect(ABC):
    """Describes how tables and values map onto a database."""

    @abstractmethod
    def primary_keys(self, table: Table) -> list[str]:
        """Return the primary keys of ``table``."""

    @abstractmethod
    def columns(self, table: Table) -> ColumnList:
        """Return all columns of ``table``, including internal ones."""

    @abstractmethod
    def constraints(self, table: Table, parent: Table | None) -> list[str]:
        """Return the constraint definitions of ``table``."""

    @abstractmethod
    def extra(self, table: Table, parent: Table | None) -> list[str]:
        """Return statements to run outside the CREATE TABLE statement."""

    @abstractmethod
    def db_type_from_type(self, value_type: ValueType) -> str:
        """Return the lowercase database type for ``value_type``."""

    def get_resource_values(self, resource: Resource) -> list[Any]:
        """Return the resource's column values ready for insertion."""
        values = []
        for column in self.columns(resource.table):
            value = resource.get(column.name)
            column.validate_type(value)
            values.append(_json_value(value) if column.type is ValueType.JSON else value)
        return values

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


_DB_TYPES = {
    ValueType.BOOL: "boolean",
    ValueType.INT: "integer",
    ValueType.BIG_INT: "bigint",
    ValueType.SMALL_INT: "smallint",
    ValueType.FLOAT: "float",
    ValueType.UUID: "uuid",
    ValueType.STRING: "text",
    ValueType.JSON: "jsonb",
    ValueType.INT_ARRAY: "integer[]",
    ValueType.STRING_ARRAY: "text[]",
    ValueType.TIMESTAMP: "timestamp without time zone",
    ValueType.BYTE_ARRAY: "bytea",
    ValueType.INVALID: "inet",
    ValueType.INET: "inet",
    ValueType.MAC_ADDR: "mac",
    ValueType.INET_ARRAY: "inet[]",
    ValueType.MAC_ADDR_ARRAY: "mac[]",
    ValueType.CIDR: "cidr",
    ValueType.CIDR_ARRAY: "cidr[]",
}


class PostgresDialect(Dialect):
    """Plain PostgreSQL."""

    def primary_keys(self, table: Table) -> list[str]:
        return list(table.options.primary_keys) or [CQ_ID_COLUMN.name]

    def columns(self, table: Table) -> ColumnList:
        return ColumnList([CQ_ID_COLUMN, CQ_META_COLUMN, *table.columns])

    def constraints(self, table: Table, parent: Table | None) -> list[str]:
        result = [_pk_constraint(table, self.primary_keys(table))]
        result.extend(
            f"UNIQUE({c.name})" for c in self.columns(table) if c.creation_options.unique
        )
        if parent is not None:
            parent_column = _find_parent_id_column(table)
            if parent_column is not None:
                result.append(
                    f"FOREIGN KEY ({parent_column.name}) REFERENCES "
                    f"{parent.name}({CQ_ID_COLUMN.name}) ON DELETE CASCADE"
                )
        return result

    def extra(self, table: Table, parent: Table | None) -> list[str]:
        return []

    def db_type_from_type(self, value_type: ValueType) -> str:
        try:
            return _DB_TYPES[value_type]
        except KeyError:
            raise ValueError("invalid type") from None


class TSDBDialect(PostgresDialect):
    """TimescaleDB, partitioning every table by fetch date."""

    def primary_keys(self, table: Table) -> list[str]:
        return [CQ_FETCH_DATE_COLUMN.name, *super().primary_keys(table)]

    def columns(self, table: Table) -> ColumnList:
        return ColumnList([CQ_ID_COLUMN, CQ_META_COLUMN, CQ_FETCH_DATE_COLUMN, *table.columns])

    def constraints(self, table: Table, parent: Table | None) -> list[str]:
        result = [_pk_constraint(table, self.primary_keys(table))]
        result.extend(
            f"UNIQUE({CQ_FETCH_DATE_COLUMN.name},{c.name})"
            for c in self.columns(table)
            if c.creation_options.unique
        )
        return result

    def extra(self, table: Table, parent: Table | None) -> list[str]:
        parent_column = _find_parent_id_column(table)
        if parent is None or parent_column is None:
            return [f"SELECT setup_tsdb_parent('{table.name}');"]
        return [
            f"CREATE INDEX ON {table.name} ({CQ_FETCH_DATE_COLUMN.name}, {parent_column.name});",
            f"SELECT setup_tsdb_child('{table.name}', '{parent_column.name}', "
            f"'{parent.name}', '{CQ_ID_COLUMN.name}');",
        ]


def get_dialect(dialect_type: DialectType | str) -> Dialect:
    """Return the dialect for ``dialect_type``; raise ValueError if unknown."""
    try:
        kind = DialectType(dialect_type)
    except ValueError:
        raise ValueError(f"unknown dialect {str(dialect_type)!r}") from None
    return TSDBDialect() if kind is DialectType.TSDB else PostgresDialect()


def _pk_constraint(table: Table, primary_keys: list[str]) -> str:
    name = table.name[:_MAX_PK_CONSTRAINT_NAME]
    return f"CONSTRAINT {name}_pk PRIMARY KEY({','.join(primary_keys)})"


def _find_parent_id_column(table: Table) -> Column | None:
    for column in table.columns:
        resolver = column.meta().resolver
        if resolver is not None and resolver.name == _PARENT_ID_RESOLVER_NAME:
            return column
    return None


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("latin-1")
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(
        value,
        (uuid.UUID, ipaddress.IPv4Address, ipaddress.IPv6Address,
         ipaddress.IPv4Network, ipaddress.IPv6Network),
    ):
        return str(value)
    raise TypeError(f"value of type {type(value).__name__} is not JSON serializable")


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, Mapping):
        return value
    if isinstance(value, str):
        decoded = json.loads(value)
        if not isinstance(decoded, dict):
            raise ValueError(f"expected a JSON object, got {value!r}")
        return decoded
    if isinstance(value, (bytes, bytearray)):
        return json.loads(value)
    return json.loads(json.dumps(value, default=_jsonable))