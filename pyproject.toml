[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evmos"
version = "0.4.1"
description = "Time-based epochs, genesis handling, transaction-rate counting and testnet helpers for an EVM-compatible application chain"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "epochs", "genesis", "testnet", "evm", "bech32"]
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
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evmos"]

[tool.hatch.build.targets.sdist]
include = ["evmos", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
