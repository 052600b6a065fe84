"""Client library for the NotebookLM batchexecute RPC protocol: payloads, parsers, RPC calls, uploads and downloads."""

__version__ = "0.1.0"

__all__ = [
    "api",
    "constants",
    "download",
    "envelope",
    "parsers",
    "payload",
    "proxyconfig",
    "rpcconfig",
    "sessionstatus",
    "sources",
]