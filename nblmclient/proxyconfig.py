"""Choosing the proxy URL from explicit settings or the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping

ENV_PROXY_KEYS: tuple[str, ...] = (
    "SOCKS5_PROXY",
    "socks5_proxy",
    "HTTP_PROXY",
    "http_proxy",
    "HTTPS_PROXY",
    "https_proxy",
    "ALL_PROXY",
    "all_proxy",
)
"""Environment variables consulted, in order, when no proxy is given explicitly."""


def normalize_proxy_url(value: str, scheme: str) -> str:
    """Prefix ``value`` with ``scheme://`` unless it already names a scheme."""
    if "://" in value:
        return value
    return f"{scheme}://{value}"


def resolve_proxy(
    socks5_proxy: str = "",
    http_proxy: str = "",
    https_proxy: str = "",
    proxy: str = "",
    environ: Mapping[str, str] | None = None,
) -> str:
    """Return the proxy URL to use, or an empty string for none.

    Explicit settings win in the order SOCKS5, HTTP, HTTPS, generic; then the
    first non-empty variable of ``ENV_PROXY_KEYS`` in ``environ`` (default
    ``os.environ``).
    """
    if socks5_proxy:
        return normalize_proxy_url(socks5_proxy, "socks5")
    if http_proxy:
        return normalize_proxy_url(http_proxy, "http")
    if https_proxy:
        return normalize_proxy_url(https_proxy, "https")
    if proxy:
        return proxy
    env = os.environ if environ is None else environ
    for key in ENV_PROXY_KEYS:
        value = env.get(key, "")
        if value:
            return value
    return ""