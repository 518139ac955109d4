[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "whooshgate"
version = "0.1.0a0"
description = "Core pieces of an API gateway: WebSocket frame handling, header and query transformers, and per-frame extension hooks."
requires-python = ">=3.10"
dependencies = []
keywords = ["api-gateway", "proxy", "websocket", "transformer", "http"]
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
    "Topic :: Internet :: Proxy Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["whooshgate"]

[tool.pytest.ini_options]
addopts = "-ra"
