"""Column resolvers that fill resource values from the fetched item."""

from __future__ import annotations

import datetime
import ipaddress
import math
import re
import uuid
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from cqprovider.schema.column import Column, HardwareAddr
from cqprovider.schema.resource import Resource

ColumnResolver = Callable[[Any, Resource, Column], None]

RFC3339 = "2006-01-02T15:04:05Z07:00"
RFC822 = "02 Jan 06 15:04 MST"

_MAX_INT = (1 << 63) - 1
_MIN_INT = -(1 << 63)
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?(Z|[+-][0-9]{2}:[0-9]{2})"
)
_RFC822_RE = re.compile(r"([0-9]{2}) ([A-Z][a-z]{2}) ([0-9]{2}) ([0-9]{2}):([0-9]{2}) ([A-Z]{3,5})")
_ZERO_DECIMAL_RE = re.compile(r"\.0+$")


def _get_field(value: Any, name: str) -> Any:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get(name)
    if isinstance(value, (list, tuple)):
        return [_get_field(item, name) for item in value]
    if name.startswith("_"):
        return None
    return getattr(value, name, None)


def _get_path(item: Any, path: str) -> Any:
    value = item
    for part in path.split("."):
        value = _get_field(value, part)
    return value


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = repr(value)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    if type(value).__str__ is not object.__str__:
        return str(value)
    raise TypeError(f"unable to cast {value!r} of type {type(value).__name__} to string")


def _to_string_lenient(value: Any) -> str:
    try:
        return _to_string(value)
    except (TypeError, UnicodeDecodeError):
        return ""


def _to_string_slice(value: Any) -> list[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [_to_string_lenient(item) for item in value]
    if value is None:
        raise TypeError("unable to cast None to []string")
    return [_to_string(value)]


def _parse_int(text: str) -> int:
    error = ValueError(f'unable to cast "{text}" of type string to int')
    body = _ZERO_DECIMAL_RE.sub("", text, count=1)
    if not body or body != body.strip():
        raise error
    digits = body.lstrip("+-")
    if len(body) - len(digits) > 1:
        raise error
    try:
        if len(digits) > 1 and digits[0] == "0" and (digits[1].isdigit() or digits[1] == "_"):
            number = int(digits, 8)
            number = -number if body.startswith("-") else number
        else:
            number = int(body, 0)
    except ValueError:
        raise error from None
    if not _MIN_INT <= number <= _MAX_INT:
        raise error
    return number


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return _parse_int(value)
    raise TypeError(f"unable to cast {value!r} of type {type(value).__name__} to int")


def _parse_rfc3339(text: str) -> datetime.datetime:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        raise ValueError(f'cannot parse "{text}" as RFC3339')
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    microsecond = int(((match.group(7) or "") + "000000")[:6])
    zone = match.group(8)
    if zone == "Z":
        tz = datetime.timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        offset = datetime.timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        tz = datetime.timezone(sign * offset)
    return datetime.datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


def _parse_rfc822(text: str) -> datetime.datetime:
    match = _RFC822_RE.fullmatch(text)
    if match is None or match.group(2) not in _MONTHS:
        raise ValueError(f'cannot parse "{text}" as RFC822')
    day, month_name, yy, hour, minute, zone = match.groups()
    year = int(yy)
    year += 1900 if year >= 69 else 2000
    if zone in ("UTC", "GMT"):
        tz = datetime.timezone.utc
    else:
        tz = datetime.timezone(datetime.timedelta(0), zone)
    return datetime.datetime(
        year, _MONTHS.index(month_name) + 1, int(day), int(hour), int(minute), tzinfo=tz
    )


def _parse_with(text: str, fmt: str) -> datetime.datetime:
    if fmt == RFC3339:
        return _parse_rfc3339(text)
    if fmt == RFC822:
        return _parse_rfc822(text)
    parsed = datetime.datetime.strptime(text, fmt)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _parse_date(text: str, formats: tuple[str, ...]) -> datetime.datetime | None:
    if text == "":
        return None
    for fmt in formats or (RFC3339,):
        try:
            return _parse_with(text, fmt)
        except ValueError:
            continue
    raise ValueError(f'parsing time "{text}" failed for all formats')


def _parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if text == "":
        return None
    try:
        if "%" in text:
            raise ValueError(text)
        ip = ipaddress.ip_address(text)
    except ValueError:
        raise ValueError(f"failed to parse IP from {text}") from None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def path_resolver(path: str) -> ColumnResolver:
    """Resolve the field at dotted ``path`` of the resource item."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _get_path(resource.item, path))

    return resolve


def parent_id_resolver(meta: Any, resource: Resource, column: Column) -> None:
    """Resolve the parent resource's cq_id."""
    resource.set(column.name, resource.parent.id)


def parent_resource_field_resolver(name: str) -> ColumnResolver:
    """Resolve the value of column ``name`` of the parent resource."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, resource.parent.get(name))

    return resolve


def parent_path_resolver(path: str) -> ColumnResolver:
    """Resolve the field at dotted ``path`` of the parent's item."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _get_path(resource.parent.item, path))

    return resolve


def date_utc_resolver(path: str, *args: str) -> ColumnResolver:
    """Like date_resolver, converting the parsed date to UTC."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        date = _parse_date(_to_string(_get_path(resource.item, path)), args)
        resource.set(column.name, None if date is None else date.astimezone(datetime.timezone.utc))

    return resolve


def date_resolver(path: str, *args: str) -> ColumnResolver:
    """Parse the string at ``path`` with each format in turn; RFC3339 by default.

    Formats are RFC3339, RFC822 or strptime patterns; dates without a zone are UTC.
    """

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _parse_date(_to_string(_get_path(resource.item, path)), args))

    return resolve


def ip_address_resolver(path: str) -> ColumnResolver:
    """Parse the string at ``path`` as an IP address; IPv4-mapped becomes IPv4."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _parse_ip(_to_string(_get_path(resource.item, path))))

    return resolve


def ip_addresses_resolver(path: str) -> ColumnResolver:
    """Parse the strings at ``path`` as a list of IP addresses."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        texts = _to_string_slice(_get_path(resource.item, path))
        resource.set(column.name, [_parse_ip(text) for text in texts])

    return resolve


def mac_address_resolver(path: str) -> ColumnResolver:
    """Parse the string at ``path`` as a hardware address."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        text = _to_string(_get_path(resource.item, path))
        resource.set(column.name, HardwareAddr.from_string(text))

    return resolve


def ip_net_resolver(path: str) -> ColumnResolver:
    """Parse the CIDR string at ``path`` as a network, masking host bits."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        text = _to_string(_get_path(resource.item, path))
        try:
            if "/" not in text or "%" in text:
                raise ValueError(text)
            network = ipaddress.ip_network(text, strict=False)
        except ValueError:
            raise ValueError(f"invalid CIDR address: {text}") from None
        resource.set(column.name, network)

    return resolve


def uuid_resolver(path: str) -> ColumnResolver:
    """Parse the string at ``path`` as a UUID."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        text = _to_string(_get_path(resource.item, path))
        try:
            value = uuid.UUID(text)
        except ValueError:
            raise ValueError(f"uuid: incorrect UUID format {text}") from None
        resource.set(column.name, value)

    return resolve


def string_resolver(path: str) -> ColumnResolver:
    """Cast the value at ``path`` to a string."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _to_string(_get_path(resource.item, path)))

    return resolve


def int_resolver(path: str) -> ColumnResolver:
    """Cast the value at ``path`` to an integer."""

    def resolve(meta: Any, resource: Resource, column: Column) -> None:
        resource.set(column.name, _to_int(_get_path(resource.item, path)))

    return resolve