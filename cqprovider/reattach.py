"""Reading and writing the reattach configuration of debug-mode providers."""

from __future__ import annotations

import ipaddress
import json
import os
import socket
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ReattachConfigAddr:
    """A network address: its network (``unix`` or ``tcp``) and its string form."""

    network: str = ""
    string: str = ""


@dataclass(frozen=True)
class ReattachConfig:
    """What is needed to attach to a running provider process."""

    protocol: str = ""
    pid: int = 0
    test: bool = False
    addr: ReattachConfigAddr = field(default_factory=ReattachConfigAddr)


def _format_error(detail: str) -> ValueError:
    return ValueError(f"invalid format for CQ_REATTACH_PROVIDERS: {detail}")


def _field(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if key.lower() == lowered:
            return value
    return None


def _typed(obj: dict[str, Any], name: str, kind: type, default: Any) -> Any:
    value = _field(obj, name)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise _format_error(f"field {name} expects {kind.__name__}, got {value!r}")
    return value


def _decode_object(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _format_error(f"{what} must be an object, got {value!r}")
    return value


def _decode_config(raw: Any) -> ReattachConfig:
    obj = _decode_object(raw, "provider entry")
    addr = _decode_object(_field(obj, "Addr"), "Addr")
    return ReattachConfig(
        protocol=_typed(obj, "Protocol", str, ""),
        pid=_typed(obj, "Pid", int, 0),
        test=_typed(obj, "Test", bool, False),
        addr=ReattachConfigAddr(
            network=_typed(addr, "Network", str, ""),
            string=_typed(addr, "String", str, ""),
        ),
    )


def _check_tcp_address(text: str) -> None:
    host, sep, port = text.rpartition(":")
    if not sep:
        raise ValueError(f"address {text}: missing port in address")
    if host.startswith("["):
        if not host.endswith("]"):
            raise ValueError(f"address {text}: missing ']' in address")
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"address {text}: too many colons in address")
    if port.isdigit():
        if int(port) > 65535:
            raise ValueError(f"address {text}: invalid port")
    elif port:
        try:
            socket.getservbyname(port, "tcp")
        except OSError:
            raise ValueError(f"lookup tcp/{port}: unknown port") from None
    if host:
        try:
            ipaddress.ip_address(host)
        except ValueError:
            try:
                socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
            except OSError as exc:
                raise ValueError(f"lookup {host}: {exc}") from None


def _check_address(name: str, addr: ReattachConfigAddr) -> None:
    if addr.network == "unix":
        return
    if addr.network == "tcp":
        try:
            _check_tcp_address(addr.string)
        except ValueError as exc:
            raise ValueError(
                f'invalid TCP address "{addr.string}" for "{name}": {exc}'
            ) from None
        return
    raise ValueError(f'unknown address type "{addr.network}" for "{name}"')


def parse_reattach_providers(reattach_path: str) -> dict[str, ReattachConfig]:
    """Read the JSON reattach file at ``reattach_path``; an empty path gives ``{}``.

    Raises OSError if the file cannot be read and ValueError if it is invalid.
    """
    if reattach_path == "":
        return {}
    with open(reattach_path, "rb") as handle:
        data = handle.read()
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _format_error(str(exc)) from None
    entries = {
        name: _decode_config(raw)
        for name, raw in _decode_object(document, "reattach config").items()
    }
    for name, config in entries.items():
        _check_address(name, config.addr)
    return entries


def save_provider_reattach(path: str | os.PathLike[str], data: bytes | str) -> None:
    """Write ``data`` to ``path``, creating or truncating the file."""
    payload = data.encode() if isinstance(data, str) else data
    fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o644)
    with os.fdopen(fd, "wb") as handle:
        try:
            handle.write(payload)
        except OSError as exc:
            raise OSError(f"failed to write CQ_REATTACH_PROVIDERS={path}: {exc}") from exc