"""Column definitions, value types and runtime type validation."""

from __future__ import annotations

import dataclasses
import datetime
import ipaddress
import string
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

_PACKAGE_PREFIX = __name__.split(".")[0] + "."
_CQ_ID_COLUMN_NAME = "cq_id"


class ValueType(IntEnum):
    """The type of value a column holds."""

    INVALID = 0
    BOOL = 1
    SMALL_INT = 2
    INT = 3
    BIG_INT = 4
    FLOAT = 5
    UUID = 6
    STRING = 7
    BYTE_ARRAY = 8
    STRING_ARRAY = 9
    INT_ARRAY = 10
    TIMESTAMP = 11
    JSON = 12
    UUID_ARRAY = 13
    INET = 14
    INET_ARRAY = 15
    CIDR = 16
    CIDR_ARRAY = 17
    MAC_ADDR = 18
    MAC_ADDR_ARRAY = 19

    def __str__(self) -> str:
        return _DISPLAY_NAMES.get(self, "TypeInvalid")


_DISPLAY_NAMES = {
    ValueType.INVALID: "TypeInvalid",
    ValueType.BOOL: "TypeBool",
    ValueType.SMALL_INT: "TypeSmallInt",
    ValueType.INT: "TypeInt",
    ValueType.BIG_INT: "TypeBigInt",
    ValueType.FLOAT: "TypeFloat",
    ValueType.UUID: "TypeUUID",
    ValueType.STRING: "TypeString",
    ValueType.BYTE_ARRAY: "TypeByteArray",
    ValueType.STRING_ARRAY: "TypeStringArray",
    ValueType.INT_ARRAY: "TypeIntArray",
    ValueType.TIMESTAMP: "TypeTimestamp",
    ValueType.JSON: "TypeJSON",
    ValueType.UUID_ARRAY: "TypeUUIDArray",
    ValueType.INET: "TypeInet",
    ValueType.INET_ARRAY: "TypeInetArray",
    ValueType.CIDR: "TypeCIDR",
    ValueType.CIDR_ARRAY: "TypeCIDRArray",
    ValueType.MAC_ADDR: "TypeMacAddr",
    ValueType.MAC_ADDR_ARRAY: "TypeMacAddrArray",
}

_NAMES_TO_TYPES = {
    "bool": ValueType.BOOL,
    "int": ValueType.INT,
    "bigint": ValueType.BIG_INT,
    "smallint": ValueType.SMALL_INT,
    "float": ValueType.FLOAT,
    "uuid": ValueType.UUID,
    "string": ValueType.STRING,
    "json": ValueType.JSON,
    "intarray": ValueType.INT_ARRAY,
    "stringarray": ValueType.STRING_ARRAY,
    "bytearray": ValueType.BYTE_ARRAY,
    "timestamp": ValueType.TIMESTAMP,
    "uuidarray": ValueType.UUID_ARRAY,
    "inet": ValueType.INET,
    "inetrarray": ValueType.INET_ARRAY,
    "macaddr": ValueType.MAC_ADDR,
    "macaddrarray": ValueType.MAC_ADDR_ARRAY,
    "cidr": ValueType.CIDR,
    "cidrarray": ValueType.CIDR_ARRAY,
    "invalid": ValueType.INVALID,
}


def value_type_from_string(s: str) -> ValueType:
    """Return the value type named by ``s`` (case-insensitive), or INVALID."""
    return _NAMES_TO_TYPES.get(s.lower(), ValueType.INVALID)


class HardwareAddr(bytes):
    """A hardware (MAC) address."""

    @classmethod
    def from_string(cls, text: str) -> HardwareAddr:
        """Parse an EUI-48, EUI-64 or 20-octet address.

        Accepts ``aa:bb:cc:dd:ee:ff``, ``aa-bb-cc-dd-ee-ff`` and ``aabb.ccdd.eeff``.
        """
        error = ValueError(f"address {text}: invalid MAC address")
        if len(text) < 14:
            raise error
        if text[2] in ":-":
            if (len(text) + 1) % 3:
                raise error
            count = (len(text) + 1) // 3
            groups = text.split(text[2])
            width = 2
        elif text[4] == ".":
            if (len(text) + 1) % 5:
                raise error
            count = 2 * (len(text) + 1) // 5
            groups = text.split(".")
            width = 4
        else:
            raise error
        if count not in (6, 8, 20) or len(groups) * width // 2 != count:
            raise error
        if any(len(g) != width or not all(c in string.hexdigits for c in g) for g in groups):
            raise error
        return cls(bytes.fromhex("".join(groups)))

    def __str__(self) -> str:
        return ":".join(f"{b:02x}" for b in self)

    def __repr__(self) -> str:
        return f"HardwareAddr('{self}')"


@dataclass(frozen=True)
class ColumnCreationOptions:
    """How a column is declared when its table is created."""

    unique: bool = False
    not_null: bool = False


@dataclass(frozen=True)
class ResolverMeta:
    """Serializable description of a column resolver."""

    name: str
    builtin: bool


@dataclass(frozen=True)
class ColumnMeta:
    """Serializable information about a column's resolver and functions."""

    resolver: ResolverMeta | None
    ignore_exists: bool


_IP_ADDRESS_TYPES = (ipaddress.IPv4Address, ipaddress.IPv6Address)
_IP_NETWORK_TYPES = (ipaddress.IPv4Network, ipaddress.IPv6Network)
_INT_BITS = {ValueType.SMALL_INT: 16, ValueType.INT: 32, ValueType.BIG_INT: 64}
_ARRAY_TYPES = frozenset(
    {
        ValueType.STRING_ARRAY,
        ValueType.INT_ARRAY,
        ValueType.UUID_ARRAY,
        ValueType.INET_ARRAY,
        ValueType.CIDR_ARRAY,
        ValueType.MAC_ADDR_ARRAY,
    }
)


def _callable_name(fn: Callable[..., Any]) -> str:
    module = getattr(fn, "__module__", None) or type(fn).__module__
    qualname = getattr(fn, "__qualname__", None) or type(fn).__qualname__
    return f"{module}.{qualname}"


@dataclass(frozen=True)
class Column:
    """Definition of a table column.

    ``resolver`` is called as ``resolver(meta, resource, column)`` for every row.
    """

    name: str = ""
    type: ValueType = ValueType.INVALID
    description: str = ""
    default: Any = None
    resolver: Callable[..., Any] | None = field(default=None, compare=False)
    ignore_error: Callable[[Exception], bool] | None = field(default=None, compare=False)
    creation_options: ColumnCreationOptions = field(default_factory=ColumnCreationOptions)
    ignore_in_tests: bool = False
    internal: bool = False
    _meta: ColumnMeta | None = field(default=None, repr=False, compare=False)

    def validate_type(self, value: Any) -> None:
        """Raise TypeError if ``value`` cannot be stored in this column.

        Integers are accepted by the integer types whose width can hold them.
        """
        if not self._check_type(value):
            raise TypeError(
                f"column {self.name} expected {self.type} got {type(value).__name__}"
            )

    def _check_type(self, value: Any) -> bool:
        t = self.type
        if value is None:
            return True
        if isinstance(value, bool):
            return t is ValueType.BOOL
        if isinstance(value, HardwareAddr):
            return t is ValueType.MAC_ADDR
        if isinstance(value, (bytes, bytearray)):
            return t in (ValueType.BYTE_ARRAY, ValueType.JSON)
        if isinstance(value, int):
            bits = _INT_BITS.get(t)
            return bits is not None and -(1 << (bits - 1)) <= value < (1 << (bits - 1))
        if isinstance(value, float):
            return t is ValueType.FLOAT
        if isinstance(value, str):
            if t is ValueType.UUID:
                try:
                    uuid.UUID(value)
                    return True
                except ValueError:
                    return False
            return t in (ValueType.JSON, ValueType.STRING)
        if isinstance(value, datetime.datetime):
            return t is ValueType.TIMESTAMP
        if isinstance(value, uuid.UUID):
            return t is ValueType.UUID
        if isinstance(value, _IP_ADDRESS_TYPES):
            return t is ValueType.INET
        if isinstance(value, _IP_NETWORK_TYPES):
            return t is ValueType.CIDR
        if isinstance(value, Mapping):
            return t is ValueType.JSON
        if isinstance(value, Sequence):
            return self._check_sequence(value)
        if dataclasses.is_dataclass(value):
            return t is ValueType.JSON
        return False

    def _check_sequence(self, items: Sequence[Any]) -> bool:
        t = self.type
        present = [item for item in items if item is not None]
        if not present:
            return t in _ARRAY_TYPES or t is ValueType.JSON

        def all_of(*types: type) -> bool:
            return all(isinstance(item, types) for item in present)

        if all_of(HardwareAddr):
            return t is ValueType.MAC_ADDR_ARRAY
        if all_of(*_IP_ADDRESS_TYPES):
            return t is ValueType.INET_ARRAY
        if all_of(*_IP_NETWORK_TYPES):
            return t is ValueType.CIDR_ARRAY
        if all_of(uuid.UUID):
            return t is ValueType.UUID_ARRAY
        if all_of(str):
            return t in (ValueType.STRING_ARRAY, ValueType.JSON)
        if all_of(int) and not any(isinstance(item, bool) for item in present):
            return t in (ValueType.INT_ARRAY, ValueType.JSON)
        return t is ValueType.JSON

    def meta(self) -> ColumnMeta:
        """Describe the column's resolver; an explicitly set meta wins."""
        if self._meta is not None:
            return self._meta
        ignore_exists = self.ignore_error is not None
        if self.resolver is None:
            return ColumnMeta(resolver=None, ignore_exists=ignore_exists)
        full_name = _callable_name(self.resolver)
        return ColumnMeta(
            resolver=ResolverMeta(
                name=full_name.removeprefix(_PACKAGE_PREFIX),
                builtin=full_name.startswith(_PACKAGE_PREFIX),
            ),
            ignore_exists=ignore_exists,
        )


def set_column_meta(column: Column, meta: ColumnMeta | None) -> Column:
    """Return a copy of ``column`` carrying ``meta``."""
    return dataclasses.replace(column, _meta=meta)


class ColumnList(list):
    """A list of columns with lookup helpers."""

    def sift(self) -> tuple[ColumnList, ColumnList]:
        """Split into provider columns and internal columns, with cq_id last."""
        provider_cols = ColumnList(c for c in self if not c.internal)
        internal_cols = ColumnList(c for c in self if c.internal)
        cq_id_index = next(
            (i for i, c in enumerate(internal_cols) if c.name == _CQ_ID_COLUMN_NAME), None
        )
        last = len(internal_cols) - 1
        if cq_id_index is not None and cq_id_index != last:
            internal_cols[cq_id_index], internal_cols[last] = (
                internal_cols[last],
                internal_cols[cq_id_index],
            )
        return provider_cols, internal_cols

    def names(self) -> list[str]:
        """Return the column names in order."""
        return [c.name for c in self]

    def get(self, name: str) -> Column | None:
        """Return the first column called ``name``, or None."""
        return next((c for c in self if c.name == name), None)