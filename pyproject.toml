[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hbasekit"
version = "0.1.0"
description = "Client-side building blocks for HBase: filters, comparators, snappy cell-block compression and region caches"
requires-python = ">=3.10"
keywords = ["hbase", "filter", "comparator", "snappy", "region", "cache", "protobuf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
    "Topic :: System :: Archiving :: Compression",
]
dependencies = [
    "sortedcontainers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hbasekit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
