"""Parsers that turn decoded RPC envelopes into typed results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from nblmclient.envelope import extract_all_inner, extract_inner, get_path

_UUID_PREFIX_RE = re.compile(r"[0-9a-f]{8}-")
_MEDIA_URL_MARKER = "googleusercontent.com/notebooklm/"
_MAX_MEDIA_DEPTH = 12


class ParseError(ValueError):
    """Raised when a response lacks a value that the caller requires."""


@dataclass
class AccountInfo:
    plan_type: int = 0
    notebook_limit: int = 0
    source_limit: int = 0
    source_word_limit: int = 0
    is_plus: bool = False


@dataclass
class ArtifactInfo:
    id: str
    title: str = ""
    type: int = 0
    source_ids: list[str] = field(default_factory=list)
    download_url: str = ""
    stream_url: str = ""
    hls_url: str = ""
    dash_url: str = ""
    duration_seconds: int | None = None
    duration_nanos: int | None = None


@dataclass
class NotebookInfo:
    id: str
    title: str = ""
    source_count: int | None = None


@dataclass
class SourceInfo:
    id: str
    title: str = ""
    word_count: int | None = None
    url: str = ""


@dataclass
class ResearchResult:
    url: str
    title: str = ""
    description: str = ""


@dataclass
class ResearchParseResult:
    status: int = 0
    results: list[ResearchResult] = field(default_factory=list)
    report: str = ""


@dataclass
class StudioAudioType:
    id: int = 0
    name: str = ""
    description: str = ""


@dataclass
class StudioDocType:
    name: str = ""
    description: str = ""


@dataclass
class StudioConfig:
    audio_types: list[StudioAudioType] = field(default_factory=list)
    explainer_types: list[StudioAudioType] = field(default_factory=list)
    slide_types: list[StudioAudioType] = field(default_factory=list)
    doc_types: list[StudioDocType] = field(default_factory=list)


def _number(value: Any) -> float | None:
    """Return ``value`` as a number if it is a JSON number, else ``None``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _str_at(items: list[Any], index: int) -> str:
    value = get_path(items, index)
    return value if isinstance(value, str) else ""


def _list_at(data: Any, *path: int) -> list[Any] | None:
    value = get_path(data, *path)
    return value if isinstance(value, list) else None


def _unwrap_first(items: list[Any]) -> list[Any]:
    """Return ``items[0]`` when it is a list, otherwise ``items``."""
    if items and isinstance(items[0], list):
        return items[0]
    return items


def parse_account_info(raw: str) -> AccountInfo:
    """Extract plan type, limits and the Plus flag from an account-info response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return AccountInfo()

    entry = inner
    if inner and isinstance(inner[0], list) and (len(inner) < 2 or inner[1] is None):
        entry = inner[0]

    info = AccountInfo()
    limits = _list_at(entry, 1)
    if limits is not None:
        names = ("plan_type", "notebook_limit", "source_limit", "source_word_limit")
        for name, value in zip(names, limits):
            number = _number(value)
            if number is not None:
                setattr(info, name, int(number))
    flags = _list_at(entry, 4)
    if flags:
        info.is_plus = flags[0] if isinstance(flags[0], bool) else False
    return info


def parse_generate_artifact(raw: str) -> tuple[str, str]:
    """Return ``(artifact_id, title)`` from a generate-artifact response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return "", ""
    entry = _unwrap_first(inner)
    return _str_at(entry, 0), _str_at(entry, 1)


@dataclass
class _MediaUrls:
    download: str = ""
    stream: str = ""
    hls: str = ""
    dash: str = ""
    duration_seconds: int = 0
    duration_nanos: int = 0

    def merge(self, other: _MediaUrls) -> None:
        for name in ("download", "stream", "hls", "dash"):
            value = getattr(other, name)
            if value:
                setattr(self, name, value)
        if other.duration_seconds > 0:
            self.duration_seconds = other.duration_seconds
        if other.duration_nanos > 0:
            self.duration_nanos = other.duration_nanos


def _classify_variants(variants: list[Any]) -> _MediaUrls:
    result = _MediaUrls()
    for variant in variants:
        if not isinstance(variant, list) or not variant or not isinstance(variant[0], str):
            continue
        url = variant[0]
        code = _number(variant[1]) if len(variant) > 1 else None
        type_code = int(code) if code is not None else 0
        if "=m140-dv" in url or type_code == 4:
            result.download = url
        elif "=m140" in url or type_code == 1:
            result.stream = url
        elif "=mm,hls" in url or type_code == 2:
            result.hls = url
        elif "=mm,dash" in url or type_code == 3:
            result.dash = url
    return result


def _find_media_urls(data: Any, depth: int = 0) -> _MediaUrls:
    if depth > _MAX_MEDIA_DEPTH or not isinstance(data, list):
        return _MediaUrls()

    if len(data) == 2:
        seconds, nanos = _number(data[0]), _number(data[1])
        if seconds is not None and nanos is not None and 10 < seconds < 100000 and nanos > 1000000:
            return _MediaUrls(duration_seconds=int(seconds), duration_nanos=int(nanos))

    if len(data) >= 2:
        first = data[0]
        if (
            isinstance(first, list)
            and first
            and isinstance(first[0], str)
            and _MEDIA_URL_MARKER in first[0]
        ):
            return _classify_variants(data)

    merged = _MediaUrls()
    for item in data:
        merged.merge(_find_media_urls(item, depth + 1))
    return merged


def _source_ids(entry: list[Any]) -> list[str]:
    ids: list[str] = []
    for sid in _list_at(entry, 3) or []:
        if not isinstance(sid, list) or not sid:
            continue
        head = sid[0]
        if isinstance(head, list):
            if head and isinstance(head[0], str):
                ids.append(head[0])
        elif isinstance(head, str):
            ids.append(head)
    return ids


def parse_artifacts(raw: str) -> list[ArtifactInfo]:
    """Return every artifact listed in a get-artifacts response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return []

    entries = inner
    if len(entries) == 1 and isinstance(entries[0], list):
        entries = entries[0]

    artifacts: list[ArtifactInfo] = []
    for raw_entry in entries:
        if not isinstance(raw_entry, list):
            continue
        entry = raw_entry
        if len(raw_entry) == 1 and isinstance(raw_entry[0], list):
            entry = raw_entry[0]

        artifact_id = _str_at(entry, 0)
        if not artifact_id:
            continue
        type_code = _number(get_path(entry, 2))
        media = _find_media_urls(entry)
        artifacts.append(
            ArtifactInfo(
                id=artifact_id,
                title=_str_at(entry, 1),
                type=int(type_code) if type_code is not None else 0,
                source_ids=_source_ids(entry),
                download_url=media.download,
                stream_url=media.stream,
                hls_url=media.hls,
                dash_url=media.dash,
                duration_seconds=media.duration_seconds or None,
                duration_nanos=media.duration_nanos or None,
            )
        )
    return artifacts


def find_artifact_download_url(raw: str, artifact_id: str) -> str:
    """Return the download URL of ``artifact_id`` or an empty string."""
    for artifact in parse_artifacts(raw):
        if artifact.id == artifact_id and artifact.download_url:
            return artifact.download_url
    return ""


def parse_chat_stream(raw: str) -> tuple[str, str, str]:
    """Return ``(text, thread_id, response_id)``, keeping the last non-empty values."""
    text = thread_id = response_id = ""
    for inner in extract_all_inner(raw):
        if not isinstance(inner, list):
            continue
        payload = _unwrap_first(inner)
        value = _str_at(payload, 0)
        if value:
            text = value
        meta = _list_at(payload, 2)
        if meta is not None:
            thread_id = _str_at(meta, 0) or thread_id
            response_id = _str_at(meta, 1) or response_id
    return text, thread_id, response_id


def parse_create_notebook(raw: str) -> str:
    """Return the new notebook's id; raise ParseError if it is missing."""
    notebook_id = get_path(extract_inner(raw), 2)
    if not isinstance(notebook_id, str) or not notebook_id:
        raise ParseError("failed to parse notebook ID from create response")
    return notebook_id


def parse_list_notebooks(raw: str) -> list[NotebookInfo]:
    """Return the notebooks listed in a list-notebooks response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return []

    notebooks: list[NotebookInfo] = []
    for entry in _unwrap_first(inner):
        if not isinstance(entry, list):
            continue
        notebook_id = _str_at(entry, 2)
        if not notebook_id or not _UUID_PREFIX_RE.match(notebook_id):
            continue
        sources = _list_at(entry, 1)
        notebooks.append(
            NotebookInfo(
                id=notebook_id,
                title=_str_at(entry, 0),
                source_count=len(sources) if sources is not None else None,
            )
        )
    return notebooks


def _parse_source_entry(src: list[Any]) -> SourceInfo | None:
    id_list = _list_at(src, 0)
    source_id = _str_at(id_list, 0) if id_list else ""
    if not source_id:
        return None
    info = SourceInfo(id=source_id, title=_str_at(src, 1))
    meta = _list_at(src, 2)
    if meta is not None:
        word_count = _number(get_path(meta, 1))
        if word_count is not None:
            info.word_count = int(word_count)
        url_field = get_path(meta, 7)
        if isinstance(url_field, list):
            if url_field:
                info.url = _str_at(url_field, 0)
        elif isinstance(url_field, str):
            info.url = url_field
    return info


def parse_notebook_detail(raw: str) -> tuple[str, list[SourceInfo]]:
    """Return ``(title, sources)`` from a get-notebook response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return "", []

    entry = _unwrap_first(inner)
    sources: list[SourceInfo] = []
    for src in _list_at(entry, 1) or []:
        if not isinstance(src, list):
            continue
        info = _parse_source_entry(src)
        if info is not None:
            sources.append(info)
    return _str_at(entry, 0), sources


def _research_entry(inner: list[Any]) -> list[Any] | None:
    outer = _list_at(inner, 0)
    if outer is None:
        return None
    wrapper = outer[0] if outer and isinstance(outer[0], list) else outer
    if not wrapper:
        return None
    head = wrapper[0]
    if isinstance(head, str):
        return wrapper
    if isinstance(head, list) and head and isinstance(head[0], str):
        return head
    return None


def _research_items(sources_and_summary: list[Any]) -> list[Any]:
    if not sources_and_summary:
        return []
    first = sources_and_summary[0]
    if isinstance(first, list) and first and isinstance(first[0], list):
        return first
    return sources_and_summary


def parse_research_results(raw: str) -> ResearchParseResult:
    """Return the status, sources and report from a research poll response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return ResearchParseResult()
    entry = _research_entry(inner)
    if entry is None:
        return ResearchParseResult()
    task_info = _list_at(entry, 1)
    if task_info is None:
        return ResearchParseResult()

    status_code = 0
    code = _number(get_path(task_info, 4))
    if code is not None:
        status_code = int(code)
    if status_code == 0:
        code = _number(get_path(task_info, 2))
        if code is not None:
            status_code = int(code)

    result = ResearchParseResult(status=2 if status_code in (2, 6) else status_code)

    sources_and_summary = _list_at(task_info, 3)
    if sources_and_summary is None:
        return result

    for item in _research_items(sources_and_summary):
        if not isinstance(item, list) or not item:
            continue

        if len(item) > 1 and item[0] is None:
            pair = item[1]
            if (
                isinstance(pair, list)
                and len(pair) >= 2
                and isinstance(pair[0], str)
                and isinstance(pair[1], str)
                and not result.report
            ):
                result.report = pair[1]
                continue
            if len(item) > 6 and isinstance(item[1], str):
                chunks = item[6]
                if isinstance(chunks, list) and not result.report:
                    parts = [chunk for chunk in chunks if isinstance(chunk, str)]
                    if parts:
                        result.report = "\n\n".join(parts)
            continue

        url = item[0] if isinstance(item[0], str) else ""
        if not url:
            continue
        result.results.append(
            ResearchResult(url=url, title=_str_at(item, 1), description=_str_at(item, 2))
        )
    return result


def parse_add_source(raw: str) -> tuple[str, str]:
    """Return ``(source_id, title)`` from an add-source response."""
    entry = _list_at(extract_inner(raw), 0, 0)
    if entry is None:
        return "", ""
    id_list = _list_at(entry, 0)
    source_id = _str_at(id_list, 0) if id_list else ""
    return source_id, _str_at(entry, 1)


def parse_source_content(raw: str) -> tuple[str, str, int]:
    """Return ``(source_id, title, word_count)`` from a source-content response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return "", "", 0
    id_list = _list_at(inner, 0)
    source_id = _str_at(id_list, 0) if id_list else ""
    word_count = 0
    meta = _list_at(inner, 2)
    if meta is not None and len(meta) > 1:
        number = _number(meta[1])
        if number is not None:
            word_count = int(number)
    return source_id, _str_at(inner, 1), word_count


def parse_source_summary(raw: str) -> tuple[str, str]:
    """Return ``(source_id, summary)`` from a source-summary response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return "", ""
    source_id = get_path(inner, 0, 0, 0, 0)
    return (source_id if isinstance(source_id, str) else ""), _str_at(inner, 1)


def _section_items(section: Any) -> list[Any]:
    if not isinstance(section, list) or not section:
        return []
    items = section[0]
    return items if isinstance(items, list) else []


def _parse_typed_section(section: Any) -> list[StudioAudioType]:
    result: list[StudioAudioType] = []
    for item in _section_items(section):
        if not isinstance(item, list):
            continue
        type_id = _number(get_path(item, 0))
        result.append(
            StudioAudioType(
                id=int(type_id) if type_id is not None else 0,
                name=_str_at(item, 1),
                description=_str_at(item, 2),
            )
        )
    return result


def _parse_doc_section(section: Any) -> list[StudioDocType]:
    return [
        StudioDocType(name=_str_at(item, 0), description=_str_at(item, 1))
        for item in _section_items(section)
        if isinstance(item, list)
    ]


def parse_studio_config(raw: str) -> StudioConfig:
    """Return the studio configuration sections from a studio-config response."""
    inner = extract_inner(raw)
    if not isinstance(inner, list):
        return StudioConfig()
    sections = _unwrap_first(inner)
    return StudioConfig(
        audio_types=_parse_typed_section(get_path(sections, 0)),
        explainer_types=_parse_typed_section(get_path(sections, 1)),
        slide_types=_parse_typed_section(get_path(sections, 2)),
        doc_types=_parse_doc_section(get_path(sections, 3)),
    )