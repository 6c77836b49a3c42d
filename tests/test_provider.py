import pytest

from cqprovider.provider import find_table_duplicates, interpolate_all_resources, is_debug
from cqprovider.schema.table import Table


def provider_resources():
    return {
        "test": Table(
            name="sdk_test",
            relations=[
                Table(name="sdk_test_test1", relations=[Table(name="sdk_test_test1_test")]),
            ],
        ),
        "test1": Table(name="sdk_test1", relations=[]),
    }


def fail_resources():
    return {
        "test": Table(name="sdk_test", relations=[Table(name="sdk_test1")]),
        "test1": Table(name="sdk_test1"),
    }


def test_interpolate_explicit():
    resources = provider_resources()
    assert interpolate_all_resources(["test"], resources) == ["test"]
    assert sorted(interpolate_all_resources(["test", "test1"], resources)) == ["test", "test1"]


def test_interpolate_star_with_explicit_fails():
    with pytest.raises(ValueError, match="invalid"):
        interpolate_all_resources(["test", "test1", "*"], provider_resources())


def test_interpolate_star_expands():
    assert sorted(interpolate_all_resources(["*"], provider_resources())) == ["test", "test1"]


def test_table_duplicates_ok():
    tables = {}
    for name, table in provider_resources().items():
        find_table_duplicates(name, table, tables)
    assert tables == {
        "sdk_test_test1_test": "test",
        "sdk_test_test1": "test",
        "sdk_test": "test",
        "sdk_test1": "test1",
    }


def test_table_duplicates_fail():
    tables = {}
    with pytest.raises(ValueError) as info:
        for name, table in fail_resources().items():
            find_table_duplicates(name, table, tables)
    assert str(info.value) == (
        "table name sdk_test1 used more than once, duplicates are in test and test1"
    )


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("true", True), ("T", True), ("0", False), ("false", False), ("yes", False)],
)
def test_is_debug(monkeypatch, value, expected):
    monkeypatch.setenv("CQ_PROVIDER_DEBUG", value)
    assert is_debug() is expected


def test_is_debug_unset(monkeypatch):
    monkeypatch.delenv("CQ_PROVIDER_DEBUG", raising=False)
    assert is_debug() is False