# cqprovider

A small toolkit for writing data-fetching providers. You describe what you
fetch as tables and columns. Column resolvers turn each fetched item into a
row. The package then works out the column values, row ids and SQL table
definitions for PostgreSQL or TimescaleDB.

It has no dependencies outside the standard library.

## Installation

```
pip install cqprovider
```

## Defining a table

```python
from cqprovider.schema.column import Column, ValueType
from cqprovider.schema.table import Table, TableCreationOptions, validate_table
from cqprovider.schema.resolvers import path_resolver, ip_address_resolver

instances = Table(
    name="example_instances",
    columns=[
        Column(name="id", type=ValueType.STRING, resolver=path_resolver("Id")),
        Column(name="address", type=ValueType.INET, resolver=ip_address_resolver("Address")),
    ],
    options=TableCreationOptions(primary_keys=["id"]),
)

validate_table(instances)
```

`validate_table` raises `ValueError` when a table name or a column name is
longer than 63 bytes. It checks related tables in `Table.relations` as well.

`Column.validate_type` raises `TypeError` when a value does not fit the
column's `ValueType`. For example, an integer fits a `SMALL_INT`, `INT` or
`BIG_INT` column only when it is within that type's width.
`value_type_from_string` maps names such as `"bigint"` or `"json"` to a
`ValueType`. The lookup ignores case, and unknown names give
`ValueType.INVALID`.

MAC addresses are represented by `cqprovider.schema.column.HardwareAddr`.

## Resources and dialects

A `Resource` is one row of a table. You build it from the item that your
table resolver fetched.

- `Resource.set` stores a column value. It raises `KeyError` for a column the table does not have.
- `Resource.get` reads a value back.
- `Resource.generate_cq_id` derives a stable UUID from the primary key values. It raises `ValueError` when a primary key value is missing.

`Resources` is a list of resources with the helpers `get_ids`, `table_name`
and `column_names`.

```python
from cqprovider.schema.dialect import DialectType, get_dialect
from cqprovider.schema.resource import Resource

dialect = get_dialect(DialectType.POSTGRES)
print(dialect.columns(instances).names())  # ['cq_id', 'cq_meta', 'id', 'address']
print(dialect.constraints(instances, None))

resource = Resource(dialect, instances, item={"Id": "i-1", "Address": "192.0.2.10"})
provider_columns, internal_columns = dialect.columns(instances).sift()
for column in [*provider_columns, *internal_columns]:
    column.resolver(None, resource, column)

print(dialect.get_resource_values(resource))
```

`ColumnList.sift` splits the columns into your own columns and the internal
ones. It places `cq_id` last, so the id is computed after the primary keys are
resolved.

Two dialects are available:

- `PostgresDialect` is for plain PostgreSQL.
- `TSDBDialect` is for TimescaleDB. It adds a `cq_fetch_date` column and puts that column first in the primary key and in every unique constraint. Its `extra` method returns the `setup_tsdb_parent` or `setup_tsdb_child` statements.

Both dialects provide the following methods:

- `primary_keys`
- `columns`
- `constraints`
- `extra`
- `db_type_from_type`
- `get_resource_values`

`get_resource_values` validates every value. It also turns JSON columns into
decoded JSON data. A JSON string given for a JSON column must decode to an
object.

## Resolvers

The `cqprovider.schema.resolvers` module provides the resolvers below. Each
resolver is called as `resolver(meta, resource, column)`. A dotted path
reaches into nested mappings and object attributes.

- `path_resolver`
- `parent_id_resolver`
- `parent_resource_field_resolver`
- `parent_path_resolver`
- `date_resolver`: RFC3339 by default. You can also give the `RFC3339` or `RFC822` constants or `strptime` patterns.
- `date_utc_resolver`
- `ip_address_resolver`
- `ip_addresses_resolver`
- `mac_address_resolver`
- `ip_net_resolver`
- `uuid_resolver`
- `string_resolver`
- `int_resolver`

## Provider helpers

The `cqprovider.provider` module has three helpers:

- `interpolate_all_resources` expands a `["*"]` request into every resource name. It rejects `"*"` when other resource names are given with it.
- `find_table_duplicates` records the names of a table and its relations. It raises `ValueError` when a name is used twice.
- `is_debug` reports whether `CQ_PROVIDER_DEBUG` is set to a true value, such as `1`, `t` or `true`.

## Reattach files and test logging

`cqprovider.reattach.parse_reattach_providers` reads a JSON reattach file into
a dictionary of `ReattachConfig` objects. An empty path gives `{}`. It raises
`ValueError` when the file is malformed or an address is invalid. Only `unix`
and `tcp` addresses are accepted.

`save_provider_reattach` writes the file with mode `0644`.

`cqprovider.testlog.CaptureLogger` is a levelled logger for tests. It keeps
each line in `lines` and can also pass each line to a sink callable.

## What this package does not do

This package only defines schemas, resolves rows and generates SQL text.
It does not do any of the following:

- serve a provider as a plugin process or in debug mode;
- connect to a database, create tables or insert rows;
- read provider configuration files;
- run table resolvers concurrently to fetch data.