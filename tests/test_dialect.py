import json
from dataclasses import dataclass

import pytest

from cqprovider.schema.column import (
    Column,
    ColumnCreationOptions,
    ColumnMeta,
    ResolverMeta,
    ValueType,
    set_column_meta,
)
from cqprovider.schema.dialect import (
    DialectType,
    PostgresDialect,
    TSDBDialect,
    get_dialect,
)
from cqprovider.schema.resource import Resource
from cqprovider.schema.table import Table, TableCreationOptions


@dataclass
class JsonTestType:
    name: str
    description: str
    version: int


def make_json_table():
    return Table(
        name="test_table_validator",
        columns=[Column(name="test", type=ValueType.JSON)],
    )


def make_resource(data):
    r = Resource(PostgresDialect(), make_json_table())
    for key, value in data.items():
        r.set(key, value)
    return r


STRING_JSON = '{"test":true}'


@pytest.mark.parametrize(
    "data, expected",
    [
        ({"test": STRING_JSON, "cq_meta": {}}, {"test": True}),
        ({"test": {"test": 1, "test1": {"test": 1}}}, {"test": 1, "test1": {"test": 1}}),
        (
            {"test": [{"test": 1, "test1": True}, {"test": 1, "test1": True}]},
            [{"test": 1, "test1": True}, {"test": 1, "test1": True}],
        ),
        ({"test": None}, None),
        ({"test": [None]}, [None]),
        ({"test": '{"hello":123}'}, {"hello": 123}),
        (
            {"test": JsonTestType(name="test", description="test1", version=10)},
            {"name": "test", "description": "test1", "version": 10},
        ),
        ({"test": b'{"a": [1, 2]}'}, {"a": [1, 2]}),
    ],
)
def test_json_column(data, expected):
    values = PostgresDialect().get_resource_values(make_resource(data))
    assert len(values) == 3
    assert values[2] == expected


def test_json_column_cq_meta_map_passes_through():
    values = PostgresDialect().get_resource_values(
        make_resource({"test": STRING_JSON, "cq_meta": {}})
    )
    assert values[1] == {}


@pytest.mark.parametrize(
    "value, error",
    [
        (True, TypeError),
        (10.1, TypeError),
        ("true_test", ValueError),
        ('{"hello":123}1', ValueError),
        ("true", ValueError),
    ],
)
def test_json_column_failures(value, error):
    with pytest.raises(error):
        PostgresDialect().get_resource_values(make_resource({"test": value}))


def test_get_resource_values_non_json_columns():
    table = Table(name="t", columns=[Column(name="n", type=ValueType.STRING)])
    r = Resource(PostgresDialect(), table)
    r.set("n", "abc")
    assert PostgresDialect().get_resource_values(r) == [None, None, "abc"]


def test_get_dialect():
    assert get_dialect(DialectType.POSTGRES) == PostgresDialect()
    tsdb = get_dialect("timescale")
    assert tsdb == TSDBDialect()
    assert tsdb.columns(Table(name="t")).names() == ["cq_id", "cq_meta", "cq_fetch_date"]


def test_get_dialect_unknown():
    with pytest.raises(ValueError, match="unknown dialect 'mysql'"):
        get_dialect("mysql")


def test_migration_directory():
    assert DialectType.POSTGRES.migration_directory() == "postgres"
    assert DialectType.TSDB.migration_directory() == "timescale"


@pytest.mark.parametrize(
    "columns, expected",
    [
        ([Column(name="some_string", type=ValueType.STRING)], ["cq_id", "cq_meta", "some_string"]),
        (
            [
                Column(name="some_string", type=ValueType.STRING),
                Column(name="some_int", type=ValueType.INT),
            ],
            ["cq_id", "cq_meta", "some_string", "some_int"],
        ),
    ],
)
def test_postgres_columns(columns, expected):
    assert PostgresDialect().columns(Table(name="t", columns=columns)).names() == expected


def test_postgres_primary_keys():
    d = PostgresDialect()
    assert d.primary_keys(Table(name="t")) == ["cq_id"]
    table = Table(name="t", options=TableCreationOptions(primary_keys=["a", "b"]))
    assert d.primary_keys(table) == ["a", "b"]


def test_tsdb_primary_keys():
    d = TSDBDialect()
    assert d.primary_keys(Table(name="t")) == ["cq_fetch_date", "cq_id"]
    table = Table(name="t", options=TableCreationOptions(primary_keys=["a"]))
    assert d.primary_keys(table) == ["cq_fetch_date", "a"]


def parent_id_column():
    column = Column(name="parent_cq_id", type=ValueType.UUID)
    return set_column_meta(
        column,
        ColumnMeta(
            resolver=ResolverMeta(name="schema.resolvers.parent_id_resolver", builtin=True),
            ignore_exists=False,
        ),
    )


def test_postgres_constraints_without_parent():
    table = Table(
        name="t",
        columns=[
            Column(name="a", type=ValueType.STRING, creation_options=ColumnCreationOptions(unique=True))
        ],
    )
    assert PostgresDialect().constraints(table, None) == [
        "CONSTRAINT t_pk PRIMARY KEY(cq_id)",
        "UNIQUE(cq_id)",
        "UNIQUE(a)",
    ]


def test_postgres_constraints_with_parent():
    parent = Table(name="p")
    child = Table(name="c", columns=[parent_id_column()])
    assert PostgresDialect().constraints(child, parent) == [
        "CONSTRAINT c_pk PRIMARY KEY(cq_id)",
        "UNIQUE(cq_id)",
        "FOREIGN KEY (parent_cq_id) REFERENCES p(cq_id) ON DELETE CASCADE",
    ]


def test_postgres_constraints_parent_without_parent_column():
    parent = Table(name="p")
    child = Table(name="c", columns=[Column(name="x", type=ValueType.STRING)])
    assert PostgresDialect().constraints(child, parent) == [
        "CONSTRAINT c_pk PRIMARY KEY(cq_id)",
        "UNIQUE(cq_id)",
    ]


def test_pk_constraint_name_is_truncated():
    name = "a" * 70
    constraints = PostgresDialect().constraints(Table(name=name), None)
    assert constraints[0] == f"CONSTRAINT {'a' * 60}_pk PRIMARY KEY(cq_id)"


def test_postgres_extra_is_empty():
    assert PostgresDialect().extra(Table(name="t"), None) == []


def test_tsdb_constraints():
    assert TSDBDialect().constraints(Table(name="t"), None) == [
        "CONSTRAINT t_pk PRIMARY KEY(cq_fetch_date,cq_id)",
        "UNIQUE(cq_fetch_date,cq_id)",
    ]


def test_tsdb_extra_without_parent():
    assert TSDBDialect().extra(Table(name="t"), None) == ["SELECT setup_tsdb_parent('t');"]


def test_tsdb_extra_with_parent():
    parent = Table(name="p")
    child = Table(name="c", columns=[parent_id_column()])
    assert TSDBDialect().extra(child, parent) == [
        "CREATE INDEX ON c (cq_fetch_date, parent_cq_id);",
        "SELECT setup_tsdb_child('c', 'parent_cq_id', 'p', 'cq_id');",
    ]


@pytest.mark.parametrize(
    "value_type, expected",
    [
        (ValueType.BOOL, "boolean"),
        (ValueType.INT, "integer"),
        (ValueType.BIG_INT, "bigint"),
        (ValueType.JSON, "jsonb"),
        (ValueType.TIMESTAMP, "timestamp without time zone"),
        (ValueType.INVALID, "inet"),
        (ValueType.MAC_ADDR_ARRAY, "mac[]"),
        (ValueType.CIDR, "cidr"),
    ],
)
def test_db_type_from_type(value_type, expected):
    assert PostgresDialect().db_type_from_type(value_type) == expected
    assert TSDBDialect().db_type_from_type(value_type) == expected


def test_db_type_from_type_unsupported():
    with pytest.raises(ValueError, match="invalid type"):
        PostgresDialect().db_type_from_type(ValueType.UUID_ARRAY)


def test_json_round_trip_of_string_value():
    values = PostgresDialect().get_resource_values(make_resource({"test": '{"k": [1, "x"]}'}))
    assert json.dumps(values[2]) == '{"k": [1, "x"]}'