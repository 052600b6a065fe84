[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "nblmclient"
version = "0.1.0"
description = "Client library for the NotebookLM batchexecute RPC protocol: payload builders, response parsers, API calls and downloads"
requires-python = ">=3.10"
dependencies = []
keywords = ["notebooklm", "batchexecute", "rpc", "client", "podcast", "flashcards"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools]
packages = ["nblmclient"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
