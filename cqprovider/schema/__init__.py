"""Table schemas, columns, resources, resolvers and SQL dialects."""