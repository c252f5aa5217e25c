[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chatserver"
version = "0.1.0"
description = "A small asyncio WebSocket chat server with private and group messages stored in SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "websocket", "sqlite", "server", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
chatserver = "chatserver.server:main"

[tool.hatch.build.targets.wheel]
packages = ["chatserver"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
