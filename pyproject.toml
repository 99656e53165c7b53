[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ramd"
version = "0.1.0"
description = "A node daemon that stores live objects and serves them over JSON-RPC"
requires-python = ">=3.11"
keywords = ["node", "daemon", "json-rpc", "live-object", "wasm", "key-value"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "aiohttp",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
ramd = "ramd.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ramd"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
