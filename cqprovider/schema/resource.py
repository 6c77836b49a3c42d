"""Resources (rows of a table) and the columns the SDK adds to every table."""

from __future__ import annotations

import dataclasses
import datetime
import hashlib
import ipaddress
import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from cqprovider.schema.column import Column, ColumnCreationOptions, ColumnList, ValueType
from cqprovider.schema.table import Table

_log = logging.getLogger(__name__)


class _Dialect(Protocol):
    def primary_keys(self, table: Table) -> list[str]: ...

    def columns(self, table: Table) -> ColumnList: ...


@dataclass(frozen=True)
class Meta:
    """Fetch information stored in the ``cq_meta`` column."""

    last_update: datetime.datetime
    fetch_id: str = ""

    def to_json(self) -> bytes:
        """Encode as JSON, leaving out an empty fetch id."""
        stamp = self.last_update.astimezone(datetime.timezone.utc).isoformat()
        payload: dict[str, Any] = {"last_updated": stamp.replace("+00:00", "Z")}
        if self.fetch_id:
            payload["fetch_id"] = self.fetch_id
        return json.dumps(payload, separators=(",", ":")).encode()


def _resolve_cq_meta(meta: Any, resource: Resource, column: Column) -> None:
    fetch_id = resource.metadata.get("cq_fetch_id")
    info = Meta(
        last_update=datetime.datetime.now(datetime.timezone.utc),
        fetch_id=fetch_id if isinstance(fetch_id, str) else "",
    )
    resource.set(column.name, info.to_json())


def _resolve_cq_id(meta: Any, resource: Resource, column: Column) -> None:
    try:
        resource.generate_cq_id()
    except ValueError:
        if resource.parent is None:
            raise
        _log.debug("one of the table pk is nil table=%s", resource.table_name)
    resource.set(column.name, resource.id)


def _resolve_cq_fetch_date(meta: Any, resource: Resource, column: Column) -> None:
    if "cq_fetch_date" in resource.metadata:
        value = resource.metadata["cq_fetch_date"]
    else:
        value = resource.execution_start
    if value is None:
        raise ValueError("zero cq_fetch date")
    resource.set(column.name, value)


CQ_META_COLUMN = Column(
    name="cq_meta",
    type=ValueType.JSON,
    description="Meta column holds fetch information",
    resolver=_resolve_cq_meta,
    internal=True,
)
CQ_ID_COLUMN = Column(
    name="cq_id",
    type=ValueType.UUID,
    description="Unique CloudQuery Id added to every resource",
    resolver=_resolve_cq_id,
    creation_options=ColumnCreationOptions(unique=True, not_null=True),
    internal=True,
)
CQ_FETCH_DATE_COLUMN = Column(
    name="cq_fetch_date",
    type=ValueType.TIMESTAMP,
    description="Time of fetch for this resource",
    resolver=_resolve_cq_fetch_date,
    creation_options=ColumnCreationOptions(not_null=True),
    internal=True,
)


class Resource:
    """A row of a table, holding the original item and the resolved column values."""

    def __init__(
        self,
        dialect: _Dialect,
        table: Table,
        parent: Resource | None = None,
        item: Any = None,
        metadata: Mapping[str, Any] | None = None,
        execution_start: datetime.datetime | None = None,
    ) -> None:
        self.item = item
        self.parent = parent
        self.table = table
        self.dialect = dialect
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.execution_start = execution_start
        self.columns: list[str] = dialect.columns(table).names()
        self._data: dict[str, Any] = {}
        self._cq_id = uuid.uuid4()

    def __repr__(self) -> str:
        return f"Resource(table={self.table_name!r}, id={self._cq_id})"

    @property
    def id(self) -> uuid.UUID:
        """The resource's cq_id."""
        return self._cq_id

    @property
    def table_name(self) -> str:
        """Name of the resource's table, or an empty string."""
        return "" if self.table is None else self.table.name

    def primary_key_values(self) -> list[str]:
        """Return the set primary key values as strings."""
        values = (self.get(pk) for pk in self.dialect.primary_keys(self.table))
        return [str(value) for value in values if value is not None]

    def get(self, key: str) -> Any:
        """Return the value of column ``key``, or None."""
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set column ``key``; raise KeyError if the table has no such column."""
        if key not in self.columns:
            raise KeyError(f"column {key} does not exist")
        self._data[key] = value

    def values(self) -> list[Any]:
        """Return the column values in dialect order, validating each one."""
        result = []
        for column in self.dialect.columns(self.table):
            value = self.get(column.name)
            column.validate_type(value)
            result.append(value)
        return result

    def generate_cq_id(self) -> None:
        """Derive the cq_id from the primary key values, if the table has any."""
        if not self.table.options.primary_keys:
            return
        columns = self.dialect.columns(self.table)
        key_values = []
        for pk in self.dialect.primary_keys(self.table):
            column = columns.get(pk)
            if column is None:
                raise ValueError(
                    f"failed to generate cq_id for {self.table.name}, pk column missing {pk}"
                )
            if column.internal:
                continue
            value = self.get(pk)
            if value is None:
                raise ValueError(
                    f"failed to generate cq_id for {self.table.name}, pk field missing {pk}"
                )
            key_values.append(value)
        self._cq_id = _hash_uuid(key_values)


class Resources(list):
    """A list of resources of one table."""

    def get_ids(self) -> list[uuid.UUID]:
        """Return the ids of all resources in order."""
        return [resource.id for resource in self]

    def table_name(self) -> str:
        """Return the table name of the first resource, or an empty string."""
        return self[0].table.name if self else ""

    def column_names(self) -> list[str]:
        """Return the column names of the first resource, or an empty list."""
        return list(self[0].columns) if self else []


def _stable_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(
        value,
        (uuid.UUID, ipaddress.IPv4Address, ipaddress.IPv6Address,
         ipaddress.IPv4Network, ipaddress.IPv6Network),
    ):
        return str(value)
    raise TypeError(f"cannot hash value of type {type(value).__name__}")


def _hash_uuid(values: list[Any]) -> uuid.UUID:
    encoded = json.dumps(
        values, sort_keys=True, separators=(",", ":"), default=_stable_default
    ).encode()
    digest = hashlib.sha1(encoded).digest()
    name_hash = hashlib.sha1(uuid.UUID(int=0).bytes + digest).digest()
    return uuid.UUID(bytes=name_hash[:16], version=5)