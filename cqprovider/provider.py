"""Provider helpers: debug mode, resource selection and table name checks."""

from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping, Sequence

from cqprovider.schema.table import Table

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})


def is_debug() -> bool:
    """Return True if CQ_PROVIDER_DEBUG is set to a true value."""
    return os.environ.get("CQ_PROVIDER_DEBUG", "") in _TRUE_VALUES


def interpolate_all_resources(
    requested: Sequence[str], resource_map: Mapping[str, Table]
) -> list[str]:
    """Expand a lone ``"*"`` into every resource; reject ``"*"`` among others."""
    if len(requested) != 1:
        if "*" in requested:
            raise ValueError('invalid "*" resource, with explicit resources')
        return list(requested)
    if requested[0] != "*":
        return list(requested)
    return list(resource_map)


def find_table_duplicates(
    resource: str, table: Table, table_names: MutableMapping[str, str]
) -> None:
    """Record the names of ``table`` and its relations under ``resource``.

    Raises ValueError if a table name was already recorded.
    """
    for relation in table.relations:
        find_table_duplicates(resource, relation, table_names)
    if table.name in table_names:
        raise ValueError(
            f"table name {table.name} used more than once, duplicates are in "
            f"{table_names[table.name]} and {resource}"
        )
    table_names[table.name] = resource