[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "samsa"
version = "0.1.8"
description = "Kafka/Redpanda wire protocol encoding and parsing, with record-batch compression codecs."
requires-python = ">=3.10"
keywords = ["kafka", "redpanda", "protocol", "wire-format", "compression"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Networking",
]
dependencies = [
    "lz4",
    "zstandard",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["samsa"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
