"""Downloading generated artifacts and saving them to disk."""

from __future__ import annotations

import logging
import math
import os
import time
import urllib.request
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from nblmclient import constants
from nblmclient.envelope import parse_envelopes
from nblmclient.sources import SessionCredentials

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
MAX_DOWNLOAD_ATTEMPTS = 10
METADATA_POLL_INTERVAL = 5.0
DEFAULT_METADATA_ATTEMPTS = 30

DownloadFn = Callable[[str, str, str], str]
"""Called as ``download(url, output_dir, filename)``; returns the written path."""


class DownloadError(RuntimeError):
    """Raised when an artifact cannot be fetched or saved."""


def _is_html_response(body: bytes) -> bool:
    head = body[:500].lower()
    return b"<!doctype" in head or b"<html" in head


def _is_auth_failure(body: bytes) -> bool:
    lower = body.lower()
    return b"accounts.google" in lower or b"servicelogin" in lower


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _write_output(output_dir: str, filename: str, data: bytes) -> str:
    os.makedirs(output_dir, exist_ok=True)
    out_path = os.path.join(output_dir, filename)
    with open(out_path, "wb") as handle:
        handle.write(data)
    return out_path


def download_file_http(
    download_url: str,
    output_dir: str,
    filename: str,
    credentials: SessionCredentials | None = None,
) -> str:
    """Fetch ``download_url`` into ``output_dir/filename`` and return the path.

    Not-found and HTML responses are retried while the CDN catches up; a login
    page fails at once.
    """
    creds = credentials or SessionCredentials()
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as exc:
        raise DownloadError(f"create output dir: {exc}") from exc
    out_path = os.path.join(output_dir, filename)

    headers = {"User-Agent": creds.user_agent or DEFAULT_USER_AGENT, "Accept": "*/*"}
    if creds.cookies:
        headers["Cookie"] = creds.cookies

    for attempt in range(1, MAX_DOWNLOAD_ATTEMPTS + 1):
        request = urllib.request.Request(download_url, headers=headers, method="GET")
        try:
            status, _, body = creds._send(request)
        except OSError as exc:
            if attempt < MAX_DOWNLOAD_ATTEMPTS:
                time.sleep(attempt * 10)
                continue
            raise DownloadError(f"download: {exc}") from exc

        if status == 404 or _is_html_response(body):
            if _is_auth_failure(body):
                raise DownloadError(
                    "download auth failure: login page returned (cookies may be expired)"
                )
            if attempt < MAX_DOWNLOAD_ATTEMPTS:
                logger.info(
                    "NotebookLM: CDN not ready (attempt %d/%d), retrying...",
                    attempt,
                    MAX_DOWNLOAD_ATTEMPTS,
                )
                time.sleep(attempt * 10)
                continue
            raise DownloadError(
                f"download failed after {MAX_DOWNLOAD_ATTEMPTS} retries (CDN propagation)"
            )

        if not 200 <= status < 300:
            raise DownloadError(f"download HTTP {status}")

        try:
            with open(out_path, "wb") as handle:
                handle.write(body)
        except OSError as exc:
            raise DownloadError(f"write file: {exc}") from exc
        return out_path
    raise DownloadError("download failed: exhausted retries")


def get_artifact_metadata(call: Callable[[str, list, str], str], artifact_id: str) -> list[Any] | None:
    """Fetch the raw metadata list of one artifact, or ``None`` if the response is empty."""
    try:
        raw = call(
            constants.GET_ARTIFACTS_FILTERED,
            [constants.default_user_config(), None, f'artifact.id = "{artifact_id}"'],
            "",
        )
    except Exception as exc:
        raise DownloadError(f"get artifact metadata: {exc}") from exc
    envelopes = parse_envelopes(raw)
    if not envelopes:
        return None
    first = envelopes[0]
    if first and isinstance(first[0], list):
        listed = first[0]
        if listed and isinstance(listed[0], list):
            return listed[0]
        return listed
    return first


def poll_artifact_metadata(
    call: Callable[[str, list, str], str],
    artifact_id: str,
    is_ready: Callable[[list[Any]], bool],
    max_attempts: int = DEFAULT_METADATA_ATTEMPTS,
) -> list[Any]:
    """Fetch metadata until ``is_ready`` accepts it; 0 attempts means 30."""
    if not max_attempts:
        max_attempts = DEFAULT_METADATA_ATTEMPTS
    for _ in range(max_attempts):
        meta = get_artifact_metadata(call, artifact_id)
        if meta is not None and is_ready(meta):
            return meta
        time.sleep(METADATA_POLL_INTERVAL)
    raise DownloadError(f"artifact metadata poll timed out after {max_attempts} attempts")


def save_quiz_html(
    get_html: Callable[[str], str], artifact_id: str, output_dir: str, prefix: str
) -> str:
    """Save the interactive HTML of a quiz or flashcard set; return the path."""
    try:
        html = get_html(artifact_id)
    except Exception as exc:
        raise DownloadError(f"get interactive html: {exc}") from exc
    if not html:
        raise DownloadError(f"no HTML content returned for artifact {artifact_id}")
    return _write_output(output_dir, f"{prefix}_{_timestamp_ms()}.html", html.encode("utf-8"))


def _report_markdown(meta: list[Any]) -> str | None:
    if len(meta) > 7:
        content = meta[7]
        if isinstance(content, list) and content and isinstance(content[0], str):
            return content[0]
    return None


def save_report(call: Callable[[str, list, str], str], artifact_id: str, output_dir: str) -> str:
    """Wait for a report's markdown and save it; return the path."""
    try:
        meta = poll_artifact_metadata(
            call, artifact_id, lambda m: _report_markdown(m) is not None, 30
        )
    except DownloadError as exc:
        raise DownloadError(f"save report: {exc}") from exc
    markdown = _report_markdown(meta) or ""
    return _write_output(output_dir, f"report_{_timestamp_ms()}.md", markdown.encode("utf-8"))


def _slide_urls(meta: list[Any]) -> list[Any] | None:
    if len(meta) > 16 and isinstance(meta[16], list):
        return meta[16]
    return None


def save_slide_deck(
    call: Callable[[str, list, str], str],
    download: DownloadFn,
    artifact_id: str,
    output_dir: str,
) -> tuple[str, str]:
    """Download a slide deck's PPTX and PDF; return ``(pptx_path, pdf_path)``.

    A file that fails to download leaves its path empty.
    """
    try:
        meta = poll_artifact_metadata(call, artifact_id, lambda m: bool(_slide_urls(m)), 60)
    except DownloadError as exc:
        raise DownloadError(f"save slide deck: {exc}") from exc

    pptx_path = pdf_path = ""
    for item in _slide_urls(meta) or []:
        url = item if isinstance(item, str) else ""
        if not url and isinstance(item, list) and item and isinstance(item[0], str):
            url = item[0]
        if not url:
            continue
        if "pptx" in url:
            pptx_path = _try_download(download, url, output_dir, f"slides_{_timestamp_ms()}.pptx")
        elif "pdf" in url:
            pdf_path = _try_download(download, url, output_dir, f"slides_{_timestamp_ms()}.pdf")
    return pptx_path, pdf_path


def _try_download(download: DownloadFn, url: str, output_dir: str, filename: str) -> str:
    try:
        return download(url, output_dir, filename)
    except Exception as exc:
        logger.warning("NotebookLM: download of %s failed: %s", url, exc)
        return ""


def _infographic_ready(meta: list[Any]) -> bool:
    if len(meta) <= 14:
        return False
    value = meta[14]
    return (isinstance(value, str) and value != "") or (isinstance(value, list) and bool(value))


def save_infographic(
    call: Callable[[str, list, str], str],
    download: DownloadFn,
    artifact_id: str,
    output_dir: str,
) -> str:
    """Download an infographic image; return the path."""
    try:
        meta = poll_artifact_metadata(call, artifact_id, _infographic_ready, 60)
    except DownloadError as exc:
        raise DownloadError(f"save infographic: {exc}") from exc

    image_url = ""
    if len(meta) > 14:
        value = meta[14]
        if isinstance(value, str):
            image_url = value
        elif isinstance(value, list) and value and isinstance(value[0], str):
            image_url = value[0]
    if not image_url:
        raise DownloadError("no infographic image URL found")
    return download(image_url, output_dir, f"infographic_{_timestamp_ms()}.png")


def save_data_table(call: Callable[[str, list, str], str], artifact_id: str, output_dir: str) -> str:
    """Wait for a data table and save it as CSV; return the path."""
    try:
        meta = poll_artifact_metadata(call, artifact_id, is_data_table_ready, 30)
    except DownloadError as exc:
        raise DownloadError(f"save data table: {exc}") from exc
    csv_text = extract_data_table_csv(meta)
    if not csv_text:
        raise DownloadError("no CSV data found for data table")
    return _write_output(output_dir, f"datatable_{_timestamp_ms()}.csv", csv_text.encode("utf-8"))


def is_data_table_ready(meta: list[Any]) -> bool:
    return len(meta) > 18 and isinstance(meta[18], list) and bool(meta[18])


def _csv_cell(cell: str) -> str:
    if any(ch in cell for ch in ',"\n'):
        return '"' + cell.replace('"', '""') + '"'
    return cell


def extract_data_table_csv(meta: list[Any]) -> str:
    """Render the table rows of a data-table artifact as CSV text."""
    rows = extract_table_rows(meta)
    return "".join(",".join(_csv_cell(cell) for cell in row) + "\n" for row in rows)


def _format_number(value: float) -> str:
    """Shortest float text, switching to exponent form outside 1e-4 .. 1e6."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, value) < 0 else ""
    if value == 0:
        return sign + "0"
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0") or "0"
    point = len("".join(map(str, digit_tuple))) + exponent
    exp = point - 1
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{sign}{mantissa}e{'-' if exp < 0 else '+'}{abs(exp):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return sign + digits + "0" * (point - len(digits))
    return f"{sign}{digits[:point]}.{digits[point:]}"


def _format_cell(cell: Any) -> str:
    if isinstance(cell, str):
        return cell
    if cell is None:
        return "<nil>"
    if isinstance(cell, bool):
        return "true" if cell else "false"
    if isinstance(cell, (int, float)):
        return _format_number(float(cell))
    if isinstance(cell, list):
        return "[" + " ".join(_format_cell(item) for item in cell) + "]"
    if isinstance(cell, dict):
        inner = " ".join(f"{key}:{_format_cell(value)}" for key, value in sorted(cell.items()))
        return f"map[{inner}]"
    return str(cell)


def extract_table_rows(meta: list[Any]) -> list[list[str]]:
    """Return the table of a data-table artifact as rows of strings."""
    if len(meta) <= 18 or not isinstance(meta[18], list):
        return []
    return [
        [_format_cell(cell) for cell in row]
        for row in meta[18]
        if isinstance(row, list)
    ]