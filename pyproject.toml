[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "warehouse_store"
version = "0.1.0"
description = "Repository layer for a warehouse service: batches, boxes, racks, markers, product aliases, inbound shipments, users, sessions and audit history over a SQL querier."
requires-python = ">=3.10"
dependencies = []
keywords = ["warehouse", "inventory", "repository", "postgresql", "audit"]
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
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["warehouse_store"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
