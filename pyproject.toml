[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rogchain"
version = "0.1.0"
description = "Deterministic roguelike dungeon engine and move validation against an SQLite game state"
requires-python = ">=3.10"
dependencies = []
keywords = ["roguelike", "dungeon", "game", "deterministic", "mt19937", "fnv-1a"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["rogchain"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
