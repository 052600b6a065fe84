"""Adding, removing and inspecting notebook sources, including file uploads."""

from __future__ import annotations

import json
import os
import stat
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from nblmclient import constants
from nblmclient.api import ApiError, RpcCaller
from nblmclient.constants import platform_web
from nblmclient.parsers import parse_add_source, parse_source_summary

_UPLOAD_ORIGIN = constants.BASE_URL
_UPLOAD_REFERER = constants.BASE_URL + "/"
_UPLOAD_ERROR_SNIPPET = 200


class SourceError(ApiError):
    """Raised when a source operation or file upload fails."""


def _lower_headers(headers: Any) -> dict[str, str]:
    if headers is None:
        return {}
    return {str(key).lower(): value for key, value in headers.items()}


@dataclass
class SessionCredentials:
    """Cookies and user agent of a logged-in session, used for direct HTTP requests.

    ``opener`` is any object with an ``open(request)`` method returning a response
    (an ``urllib.request.OpenerDirector`` by default, built with ``proxy`` if set).
    """

    cookies: str = ""
    user_agent: str = ""
    proxy: str = ""
    opener: Any = field(default=None, repr=False, compare=False)

    def _default_opener(self) -> Any:
        if self.proxy:
            handler = urllib.request.ProxyHandler({"http": self.proxy, "https": self.proxy})
            return urllib.request.build_opener(handler)
        return urllib.request.build_opener()

    def _send(self, request: urllib.request.Request) -> tuple[int, dict[str, str], bytes]:
        """Perform ``request``; return ``(status, lower-cased headers, body)``.

        HTTP error statuses are returned, not raised; transport failures raise OSError.
        """
        opener = self.opener or self._default_opener()
        try:
            with opener.open(request) as response:
                return response.status, _lower_headers(response.headers), response.read()
        except urllib.error.HTTPError as exc:
            body = exc.read() if exc.fp is not None else b""
            return exc.code, _lower_headers(exc.headers), body


def _notebook_path(notebook_id: str) -> str:
    return "/notebook/" + notebook_id


def _add_options() -> list[Any]:
    return [1, None, None, None, None, None, None, None, None, None, [1]]


def _invoke(call: RpcCaller, operation: str, rpc_id: str, payload: list[Any], source_path: str) -> str:
    try:
        return call(rpc_id, payload, source_path)
    except Exception as exc:
        raise SourceError(f"{operation}: {exc}") from exc


def add_url_source(call: RpcCaller, notebook_id: str, url: str) -> tuple[str, str]:
    """Add a web page as a source; return ``(source_id, title)``."""
    raw = _invoke(
        call,
        "add url source",
        constants.ADD_SOURCE,
        [
            [[None, None, [url], None, None, None, None, None, None, None, 1]],
            notebook_id,
            platform_web(),
            _add_options(),
        ],
        _notebook_path(notebook_id),
    )
    return parse_add_source(raw)


def add_text_source(call: RpcCaller, notebook_id: str, title: str, content: str) -> tuple[str, str]:
    """Add pasted text as a source; return ``(source_id, title)``."""
    raw = _invoke(
        call,
        "add text source",
        constants.ADD_SOURCE,
        [
            [[None, [title, content], None, 2, None, None, None, None, None, None, 1]],
            notebook_id,
            platform_web(),
            _add_options(),
        ],
        _notebook_path(notebook_id),
    )
    return parse_add_source(raw)


def _upload_headers(credentials: SessionCredentials) -> dict[str, str]:
    headers = {
        "Accept": "*/*",
        "Origin": _UPLOAD_ORIGIN,
        "Referer": _UPLOAD_REFERER,
        "x-goog-authuser": "0",
    }
    if credentials.cookies:
        headers["Cookie"] = credentials.cookies
    if credentials.user_agent:
        headers["User-Agent"] = credentials.user_agent
    return headers


def _upload(
    credentials: SessionCredentials,
    notebook_id: str,
    file_name: str,
    source_id: str,
    file_size: int,
    data: bytes,
) -> None:
    base = _upload_headers(credentials)
    init_body = json.dumps(
        {"PROJECT_ID": notebook_id, "SOURCE_NAME": file_name, "SOURCE_ID": source_id},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    init_request = urllib.request.Request(
        constants.UPLOAD_URL + "?authuser=0",
        data=init_body,
        method="POST",
        headers={
            **base,
            "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
            "x-goog-upload-command": "start",
            "x-goog-upload-header-content-length": str(file_size),
            "x-goog-upload-protocol": "resumable",
        },
    )
    try:
        status, headers, _ = credentials._send(init_request)
    except OSError as exc:
        raise SourceError(f"upload init: {exc}") from exc

    upload_url = headers.get("x-goog-upload-url", "")
    if not upload_url:
        raise SourceError(
            f"upload session initiation failed (HTTP {status}): no x-goog-upload-url"
        )

    upload_request = urllib.request.Request(
        upload_url,
        data=data,
        method="POST",
        headers={
            **base,
            "Content-Type": "application/x-www-form-urlencoded;charset=utf-8",
            "x-goog-upload-command": "upload, finalize",
            "x-goog-upload-offset": "0",
        },
    )
    try:
        status, _, body = credentials._send(upload_request)
    except OSError as exc:
        raise SourceError(f"upload bytes: {exc}") from exc

    if not 200 <= status < 300:
        snippet = body[:_UPLOAD_ERROR_SNIPPET].decode("utf-8", errors="replace")
        raise SourceError(f"file upload failed (HTTP {status}): {snippet}")


def add_file_source(
    call: RpcCaller,
    credentials: SessionCredentials,
    notebook_id: str,
    file_path: str | os.PathLike[str],
) -> tuple[str, str]:
    """Register a local file as a source and upload its bytes.

    Returns ``(source_id, file_name)``.
    """
    abs_path = os.path.abspath(file_path)
    try:
        info = os.stat(abs_path)
    except OSError as exc:
        raise SourceError(f"add file source: {exc}") from exc
    if stat.S_ISDIR(info.st_mode):
        raise SourceError(f"not a file: {abs_path}")
    file_name = os.path.basename(abs_path)

    raw = _invoke(
        call,
        "add file source register",
        constants.ADD_SOURCE_FILE,
        [[[file_name]], notebook_id, platform_web(), _add_options()],
        _notebook_path(notebook_id),
    )
    source_id, _ = parse_add_source(raw)
    if not source_id:
        raise SourceError("failed to register file source — no sourceId returned")

    try:
        with open(abs_path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise SourceError(f"add file source: read file: {exc}") from exc

    try:
        _upload(credentials, notebook_id, file_name, source_id, info.st_size, data)
    except (SourceError, OSError) as exc:
        raise SourceError(f"add file source: upload: {exc}") from exc
    return source_id, file_name


def delete_source(call: RpcCaller, source_id: str) -> None:
    _invoke(call, "delete source", constants.DELETE_SOURCE, [[[source_id]], platform_web()], "")


def get_source_summary(call: RpcCaller, source_id: str) -> str:
    """Return the generated summary of a source."""
    raw = _invoke(call, "get source summary", constants.GET_SOURCE_SUMMARY, [[[[source_id]]]], "")
    _, summary = parse_source_summary(raw)
    return summary


def rename_source(call: RpcCaller, notebook_id: str, source_id: str, new_title: str) -> None:
    _invoke(
        call,
        "rename source",
        constants.UPDATE_SOURCE,
        [None, [source_id], [[[new_title]]]],
        _notebook_path(notebook_id),
    )


def refresh_source_data(call: RpcCaller, notebook_id: str, source_id: str) -> None:
    _invoke(
        call,
        "refresh source",
        constants.REFRESH_SOURCE,
        [None, [source_id], platform_web()],
        _notebook_path(notebook_id),
    )


__all__: Mapping[str, Any] | list[str] = [
    "SourceError",
    "SessionCredentials",
    "add_url_source",
    "add_text_source",
    "add_file_source",
    "delete_source",
    "get_source_summary",
    "rename_source",
    "refresh_source_data",
]