[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "accessvault"
version = "0.1.0"
description = "MongoDB-backed storage of users and roles, with audit record models, for an access-control service"
requires-python = ">=3.10"
keywords = ["authorization", "rbac", "roles", "users", "audit", "mongodb"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
    "Topic :: System :: Systems Administration :: Authentication/Directory",
]
dependencies = [
    "pymongo>=4.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["accessvault"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
