[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cqprovider"
version = "0.1.0"
description = "Building blocks for data-fetching providers: table schemas, column resolvers, resources and SQL dialects"
requires-python = ">=3.10"
dependencies = []
keywords = ["provider", "schema", "resolver", "postgres", "timescale", "sdk"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cqprovider"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
