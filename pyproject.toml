[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tradesim"
version = "0.1.0"
description = "A simulated order-book exchange served over HTTP with live server-sent event streams"
requires-python = ">=3.10"
dependencies = [
    "aiohttp",
]
keywords = [
    "trading",
    "exchange",
    "order book",
    "matching engine",
    "simulation",
    "server-sent events",
    "postgres",
    "scram",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Office/Business :: Financial :: Investment",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
tradesim = "tradesim.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tradesim"]

[tool.hatch.build.targets.sdist]
include = [
    "tradesim",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
