"""Importing saved sessions and reporting on their cookie lifetimes."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, TextIO

CRITICAL_COOKIES: tuple[str, ...] = (
    "__Secure-1PSID",
    "__Secure-3PSID",
    "__Secure-1PSIDTS",
    "__Secure-3PSIDTS",
    "__Secure-1PSIDCC",
    "__Secure-3PSIDCC",
    "SID",
    "HSID",
    "SSID",
    "APISID",
    "SAPISID",
    "SIDCC",
    "NID",
)
"""Cookies most relevant for keeping a session alive, in display order."""

_TOKEN_PREVIEW = 24
_TABLE_PADDING = 2
_EXPIRES_FORMAT = "%Y-%m-%d %H:%M:%S"

_SESSION_FIELDS = {
    "at": "at",
    "bl": "bl",
    "fsid": "fsid",
    "cookies": "cookies",
    "userAgent": "user_agent",
    "language": "language",
}
_COOKIE_STR_FIELDS = {"name": "name", "value": "value", "domain": "domain", "path": "path"}
_COOKIE_BOOL_FIELDS = {"secure": "secure", "httpOnly": "http_only", "session": "session"}
_FRACTION_RE = re.compile(r"\.(\d+)")


class SessionImportError(ValueError):
    """Raised when imported session data is malformed or lacks its ``at`` token."""


@dataclass
class SessionCookie:
    name: str
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: datetime | None = None
    secure: bool = False
    http_only: bool = False
    session: bool = False


@dataclass
class RpcSession:
    at: str = ""
    bl: str = ""
    fsid: str = ""
    cookies: str = ""
    user_agent: str = ""
    language: str = ""
    cookie_jar: list[SessionCookie] = field(default_factory=list)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_time(value: str) -> datetime:
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    return _as_utc(datetime.fromisoformat(text))


def _cookie_from_mapping(data: Any) -> SessionCookie:
    if not isinstance(data, dict):
        raise ValueError("cookie entry must be a JSON object")
    kwargs: dict[str, Any] = {}
    for key, attr in _COOKIE_STR_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"cookie field {key!r} must be a string")
        kwargs[attr] = value
    for key, attr in _COOKIE_BOOL_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, bool):
            raise ValueError(f"cookie field {key!r} must be a boolean")
        kwargs[attr] = value
    expires = data.get("expires")
    if expires is not None:
        if not isinstance(expires, str):
            raise ValueError("cookie field 'expires' must be a timestamp string")
        kwargs["expires"] = _parse_time(expires)
    kwargs.setdefault("name", "")
    return SessionCookie(**kwargs)


def _session_from_mapping(data: Any) -> RpcSession:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    kwargs: dict[str, Any] = {}
    for key, attr in _SESSION_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"field {key!r} must be a string")
        kwargs[attr] = value
    jar = data.get("cookieJar")
    if jar is not None:
        if not isinstance(jar, list):
            raise ValueError("field 'cookieJar' must be a list")
        kwargs["cookie_jar"] = [_cookie_from_mapping(entry) for entry in jar]
    return RpcSession(**kwargs)


def parse_imported_session(data: str | bytes) -> RpcSession:
    """Decode a session from either the wrapped ``{"version", "session"}`` form or a bare session.

    The wrapped form is accepted only when its inner session carries an ``at`` token.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        decoded = json.loads(text)
    except ValueError as exc:
        raise SessionImportError(f"invalid session JSON: {exc}") from exc

    if isinstance(decoded, dict) and isinstance(decoded.get("session"), dict):
        try:
            stored = _session_from_mapping(decoded["session"])
        except ValueError:
            stored = None
        if stored is not None and stored.at:
            return stored

    try:
        sess = _session_from_mapping(decoded)
    except ValueError as exc:
        raise SessionImportError(f"invalid session JSON: {exc}") from exc
    if not sess.at:
        raise SessionImportError("session missing 'at' token")
    return sess


def truncate(s: str, n: int) -> str:
    """Cut ``s`` to ``n`` characters, marking a cut with ``...``."""
    if len(s) <= n:
        return s
    return s[:n] + "..."


def human_duration(delta: timedelta) -> str:
    """Render a positive duration compactly: ``30s``, ``5m``, ``2h30m``, ``3d0h``, ``~2mo0d``."""
    seconds = delta.total_seconds()
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds / 60)}m"
    if seconds < 86400:
        hours = int(seconds / 3600)
        minutes = int(seconds / 60) - hours * 60
        return f"{hours}h{minutes}m"
    days = int(seconds / 3600 / 24)
    hours = int(seconds / 3600) - days * 24
    if days < 30:
        return f"{days}d{hours}h"
    months = days // 30
    return f"~{months}mo{days - months * 30}d"


def _cookie_cells(cookie: SessionCookie, now: datetime) -> list[str]:
    if cookie.session:
        expires, remaining = "(session)", "until browser exit"
    elif cookie.expires is None:
        expires, remaining = "(unknown)", "legacy session"
    else:
        moment = _as_utc(cookie.expires)
        expires = moment.strftime(_EXPIRES_FORMAT)
        left = moment - _as_utc(now)
        remaining = "EXPIRED" if left <= timedelta(0) else human_duration(left)
    return [cookie.name, cookie.domain, expires, remaining]


def format_cookie_row(cookie: SessionCookie, now: datetime) -> str:
    """Return the tab-separated status row of one cookie."""
    return "\t".join(_cookie_cells(cookie, now))


def _write_table(out: TextIO, rows: list[list[str]]) -> None:
    widths: dict[int, int] = {}
    for row in rows:
        for index, cell in enumerate(row[:-1]):
            widths[index] = max(widths.get(index, 0), len(cell))
    for row in rows:
        padded = [cell.ljust(widths[index] + _TABLE_PADDING) for index, cell in enumerate(row[:-1])]
        out.write("".join(padded) + (row[-1] if row else "") + "\n")


def print_session_status(
    out: TextIO,
    sess: RpcSession,
    all_cookies: bool = False,
    now: datetime | None = None,
) -> None:
    """Write the session's tokens and a table of cookie expirations to ``out``."""
    now = now if now is not None else datetime.now(timezone.utc)

    out.write("Tokens:\n")
    out.write(f"  at   : {truncate(sess.at, _TOKEN_PREVIEW)}\n")
    out.write(f"  bl   : {truncate(sess.bl, _TOKEN_PREVIEW)}\n")
    out.write(f"  fsid : {truncate(sess.fsid, _TOKEN_PREVIEW)}\n")
    out.write("\n")

    if not sess.cookie_jar:
        out.write(
            "No structured cookies stored (legacy session). "
            "Re-run export-session to capture expiration data.\n"
        )
        return

    by_name: dict[str, SessionCookie] = {}
    for cookie in sess.cookie_jar:
        by_name.setdefault(cookie.name, cookie)

    rows = [["COOKIE", "DOMAIN", "EXPIRES (UTC)", "REMAINING"]]
    shown: set[str] = set()
    any_missing = False
    for name in CRITICAL_COOKIES:
        cookie = by_name.get(name)
        if cookie is None:
            rows.append([name, "-", "(not present)", "-"])
            any_missing = True
            continue
        rows.append(_cookie_cells(cookie, now))
        shown.add(name)

    if all_cookies:
        others = sorted(
            (cookie for cookie in sess.cookie_jar if cookie.name not in shown),
            key=lambda cookie: cookie.name,
        )
        rows.extend(_cookie_cells(cookie, now) for cookie in others)
    _write_table(out, rows)

    if any_missing:
        out.write("\n")
        out.write(
            "Note: one or more critical cookies are missing. "
            "If refresh-session fails, re-run export-session.\n"
        )
    if not all_cookies:
        out.write("\n")
        out.write("Pass --all to list every cookie in the session.\n")