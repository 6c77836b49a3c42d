"""Table definitions, table validators and delete filters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from cqprovider.schema.column import Column, ColumnList

MAX_TABLE_NAME = 63
MAX_COLUMN_NAME = 63


@dataclass
class TableCreationOptions:
    """How a table is created. Without primary keys a random id is generated."""

    primary_keys: list[str] = field(default_factory=list)


@dataclass(eq=False)
class Table:
    """Definition of a table, its columns and its related tables.

    ``resolver`` is called as ``resolver(meta, parent, results)`` and puts the
    fetched items on ``results``.
    """

    name: str = ""
    description: str = ""
    columns: ColumnList = field(default_factory=ColumnList)
    relations: list[Table] = field(default_factory=list)
    resolver: Callable[..., Any] | None = None
    ignore_error: Callable[[Exception], bool] | None = None
    multiplex: Callable[[Any], list[Any]] | None = None
    delete_filter: Callable[[Any, Any], list[Any] | None] | None = None
    post_resource_resolver: Callable[..., Any] | None = None
    options: TableCreationOptions = field(default_factory=TableCreationOptions)
    always_delete: bool = False
    ignore_in_tests: bool = False
    is_global: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.columns, ColumnList):
            self.columns = ColumnList(self.columns)

    def column(self, name: str) -> Column | None:
        """Return the column called ``name``, or None."""
        return self.columns.get(name)


class TableValidator(ABC):
    """Checks a table definition, raising ValueError when it is invalid."""

    @abstractmethod
    def validate(self, table: Table) -> None:
        """Raise ValueError if ``table`` is invalid."""


class LengthTableValidator(TableValidator):
    """Checks that table and column names fit the database identifier limit."""

    def validate(self, table: Table) -> None:
        if len(table.name.encode()) > MAX_TABLE_NAME:
            raise ValueError("table name has exceeded max length")
        for name in table.columns.names():
            if len(name.encode()) > MAX_COLUMN_NAME:
                raise ValueError(f"column name {name} has exceeded max length")
        for relation in table.relations:
            self.validate(relation)


DEFAULT_VALIDATORS: tuple[TableValidator, ...] = (LengthTableValidator(),)


def validate_table(table: Table) -> None:
    """Run the default validators on ``table``."""
    for validator in DEFAULT_VALIDATORS:
        validator.validate(table)


def delete_parent_id_filter(id_column: str) -> Callable[[Any, Any], list[Any] | None]:
    """Build a delete filter matching rows whose ``id_column`` is the parent's id."""

    def delete_filter(meta: Any, parent: Any) -> list[Any] | None:
        if parent is None:
            return None
        return [id_column, parent.id]

    return delete_filter