[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sqlinspect"
version = "0.1.0"
description = "Static analysis of MySQL statements: comments, limits, structure, DML risk and index suggestions"
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "mysql", "analysis", "parser", "index", "limit"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sqlinspect"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
