"""Configuration paths and on-disk RPC identifier overrides."""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Mapping

_lock = threading.Lock()
_home_override = ""
_rpc_ids_path_override = ""
_cached_overrides: dict[str, str] | None = None


def home_dir() -> str:
    """Return the configuration directory.

    An explicit override wins, then the NOTEBOOKLM_HOME environment variable,
    then ``~/.notebooklm``.
    """
    if _home_override:
        return _home_override
    env = os.environ.get("NOTEBOOKLM_HOME", "")
    if env:
        return env
    return os.path.join(os.path.expanduser("~"), ".notebooklm")


def set_home_dir(path: str) -> None:
    """Override the configuration directory; an empty string clears it."""
    global _home_override
    _home_override = path or ""


def session_path() -> str:
    return os.path.join(home_dir(), "session.json")


def profile_dir() -> str:
    return os.path.join(home_dir(), "chrome-profile")


def rpc_ids_path() -> str:
    return os.path.join(home_dir(), "rpc-ids.json")


def set_rpc_ids_path(path: str) -> None:
    """Override the RPC-id override file location and drop the cached overrides."""
    global _rpc_ids_path_override, _cached_overrides
    with _lock:
        _rpc_ids_path_override = path or ""
        _cached_overrides = None


def get_rpc_ids_path() -> str:
    return _rpc_ids_path_override or rpc_ids_path()


def _load_from_disk() -> dict[str, str]:
    try:
        with open(get_rpc_ids_path(), "rb") as handle:
            data = json.loads(handle.read())
    except (OSError, ValueError):
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict) or not all(
        isinstance(value, str) for value in data.values()
    ):
        return {}
    return dict(data)


def load_rpc_id_overrides() -> dict[str, str]:
    """Return the RPC-id overrides, reading the file only on first use."""
    global _cached_overrides
    with _lock:
        if _cached_overrides is None:
            _cached_overrides = _load_from_disk()
        return dict(_cached_overrides)


def reload_rpc_id_overrides() -> dict[str, str]:
    """Re-read the RPC-id overrides from disk."""
    global _cached_overrides
    with _lock:
        _cached_overrides = _load_from_disk()
        return dict(_cached_overrides)


def resolve_rpc_id(static_id: str, overrides: Mapping[str, str] | None) -> str:
    """Return the override for ``static_id`` if one exists, else ``static_id``."""
    if overrides is not None and static_id in overrides:
        return overrides[static_id]
    return static_id