[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wooridb"
version = "0.1.0"
description = "Entity store core: append-only transaction log, point-in-time reads, history, uniqueness, encrypted keys and where-clause filtering"
requires-python = ">=3.11"
keywords = ["database", "transaction-log", "append-only", "history", "entity", "query"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = [
    "bcrypt",
    "zstandard",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["wooridb"]

[tool.pytest.ini_options]
addopts = "-ra"
