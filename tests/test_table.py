import uuid
from types import SimpleNamespace

import pytest

from cqprovider.schema.column import Column, ColumnList, ValueType
from cqprovider.schema.table import (
    LengthTableValidator,
    Table,
    TableCreationOptions,
    delete_parent_id_filter,
    validate_table,
)


def make_validator_table():
    return Table(
        name="test_table_validator",
        columns=[
            Column(name="zero_bool", type=ValueType.BOOL),
            Column(name="zero_int", type=ValueType.BIG_INT),
            Column(name="not_zero_bool", type=ValueType.BOOL),
        ],
    )


def test_valid_table_passes():
    assert validate_table(make_validator_table()) is None


def test_long_table_name_rejected():
    table = make_validator_table()
    table.name = "WithLongNametableWithLongNametableWithLongNametableWithLongNamet"
    with pytest.raises(ValueError, match="table name has exceeded max length"):
        validate_table(table)


def test_table_name_at_limit_accepted():
    table = make_validator_table()
    table.name = "t" * 63
    assert LengthTableValidator().validate(table) is None


def test_long_column_name_rejected():
    table = make_validator_table()
    long_name = "tableWithLongColumnNametableWithLongColumnNametableWithLongColumnName"
    table.columns[0] = Column(name=long_name, type=ValueType.BOOL)
    with pytest.raises(ValueError, match=f"column name {long_name} has exceeded max length"):
        validate_table(table)


def test_long_relation_name_rejected():
    table = make_validator_table()
    table.relations.append(Table(name="r" * 64))
    with pytest.raises(ValueError, match="table name"):
        validate_table(table)


def test_columns_converted_to_column_list():
    table = Table(
        name="simple_table_with_id",
        columns=[
            Column(name="some_string", type=ValueType.STRING),
            Column(name="some_int", type=ValueType.INT),
        ],
    )
    assert isinstance(table.columns, ColumnList)
    assert table.columns.names() == ["some_string", "some_int"]


def test_column_lookup():
    table = Table(
        name="multi_embedded_table",
        columns=[
            Column(name="some_int", type=ValueType.INT),
            Column(name="embedded_some_string", type=ValueType.STRING),
        ],
    )
    assert table.column("embedded_some_string").type is ValueType.STRING
    assert table.column("nope") is None


def test_default_options_have_no_primary_keys():
    assert Table(name="t").options.primary_keys == []
    table = Table(name="t", options=TableCreationOptions(primary_keys=["id"]))
    assert table.options.primary_keys == ["id"]


def test_delete_parent_id_filter():
    delete_filter = delete_parent_id_filter("name")
    parent_id = uuid.uuid4()
    parent = SimpleNamespace(id=parent_id)
    assert delete_filter(None, parent) == ["name", parent_id]
    assert delete_filter(None, None) is None