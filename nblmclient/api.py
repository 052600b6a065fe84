"""High-level NotebookLM operations built on an RPC caller."""

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from nblmclient import constants
from nblmclient.constants import default_user_config, platform_web
from nblmclient.envelope import get_path, parse_envelopes
from nblmclient.parsers import (
    AccountInfo,
    ArtifactInfo,
    NotebookInfo,
    ResearchResult,
    SourceInfo,
    StudioConfig,
    parse_account_info,
    parse_artifacts,
    parse_chat_stream,
    parse_create_notebook,
    parse_generate_artifact,
    parse_list_notebooks,
    parse_notebook_detail,
    parse_research_results,
    parse_studio_config,
)
from nblmclient.payload import (
    ArtifactOptions,
    AudioArtifactOptions,
    ReportArtifactOptions,
    VideoArtifactOptions,
    build_artifact_payload,
)

logger = logging.getLogger(__name__)

RpcCaller = Callable[[str, list, str], str]
"""Called as ``call(rpc_id, payload, source_path)``; returns the raw response body."""

ChatStreamCaller = Callable[[str, str, Sequence[str]], str]
"""Called as ``call_chat(notebook_id, message, source_ids)``; returns the raw stream."""

DEFAULT_RESEARCH_TIMEOUT = 120.0
RESEARCH_POLL_INTERVAL = 5.0
_INTERACTIVE_HTML_MIN_LENGTH = 200
_DEFAULT_NOTE_TITLE = "New Note"
_CREATE_OPTIONS: list[Any] = [1, None, None, None, None, None, None, None, None, None, [1]]


class ApiError(RuntimeError):
    """Raised when an RPC call made on behalf of an operation fails."""


class ResearchMode(str, enum.Enum):
    FAST = "fast"
    DEEP = "deep"


@dataclass
class Note:
    id: str
    title: str = ""
    content: str = ""


def _notebook_path(notebook_id: str) -> str:
    return "/notebook/" + notebook_id


def _invoke(call: RpcCaller, operation: str, rpc_id: str, payload: list[Any], source_path: str) -> str:
    try:
        return call(rpc_id, payload, source_path)
    except Exception as exc:
        raise ApiError(f"{operation}: {exc}") from exc


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# Notebooks


def create_notebook(call: RpcCaller) -> str:
    """Create an empty notebook and return its id."""
    raw = _invoke(
        call,
        "create notebook",
        constants.CREATE_NOTEBOOK,
        ["", None, None, platform_web(), list(_CREATE_OPTIONS)],
        "/",
    )
    return parse_create_notebook(raw)


def list_notebooks(call: RpcCaller) -> list[NotebookInfo]:
    raw = _invoke(call, "list notebooks", constants.LIST_NOTEBOOKS, [None, 1, None, platform_web()], "/")
    return parse_list_notebooks(raw)


def get_notebook_detail(call: RpcCaller, notebook_id: str) -> tuple[str, list[SourceInfo]]:
    """Return ``(title, sources)`` of a notebook."""
    raw = _invoke(
        call,
        "get notebook detail",
        constants.GET_NOTEBOOK,
        [notebook_id, None, platform_web(), None, 1],
        _notebook_path(notebook_id),
    )
    return parse_notebook_detail(raw)


def delete_notebook(call: RpcCaller, notebook_id: str) -> None:
    _invoke(call, "delete notebook", constants.DELETE_NOTEBOOK, [[notebook_id], platform_web()], "/")


def rename_notebook(call: RpcCaller, notebook_id: str, new_title: str) -> None:
    _invoke(
        call,
        "rename notebook",
        constants.RENAME_NOTEBOOK,
        [notebook_id, [[None, None, None, [None, new_title]]]],
        "/",
    )


# Notes


def _note_from_entry(item: Any) -> Note | None:
    if not isinstance(item, list) or not item:
        return None
    note_id = item[0] if isinstance(item[0], str) else ""
    if not note_id:
        return None
    # Mind map entries carry a null body and a type code of 2.
    if len(item) > 2 and _is_number(item[2]) and item[2] == 2 and item[1] is None:
        return None
    body = item[1] if len(item) > 1 else None
    content = ""
    if isinstance(body, str):
        content = body
    elif isinstance(body, list) and len(body) > 1 and isinstance(body[1], str):
        content = body[1]
    if content and ('"children":' in content or '"nodes":' in content):
        return None
    title = ""
    if isinstance(body, list) and len(body) > 4 and isinstance(body[4], str):
        title = body[4]
    return Note(id=note_id, title=title, content=content)


def list_notes(call: RpcCaller, notebook_id: str) -> list[Note]:
    """Return the plain notes of a notebook, skipping mind maps."""
    raw = _invoke(call, "list notes", constants.GET_NOTES, [notebook_id], _notebook_path(notebook_id))
    envelopes = parse_envelopes(raw)
    if not envelopes:
        return []
    items = get_path(envelopes[0], 0)
    if not isinstance(items, list):
        return []
    return [note for note in map(_note_from_entry, items) if note is not None]


def create_note(call: RpcCaller, notebook_id: str, title: str, content: str) -> str:
    """Create a note, fill in its title and content if given, and return its id."""
    title = title or _DEFAULT_NOTE_TITLE
    raw = _invoke(
        call,
        "create note",
        constants.CREATE_NOTE,
        [notebook_id, "", [1], None, _DEFAULT_NOTE_TITLE],
        _notebook_path(notebook_id),
    )
    note_id = ""
    envelopes = parse_envelopes(raw)
    if envelopes and envelopes[0]:
        head = envelopes[0][0]
        if isinstance(head, list) and head:
            note_id = head[0] if isinstance(head[0], str) else ""
        elif isinstance(head, str):
            note_id = head
    if note_id and (title != _DEFAULT_NOTE_TITLE or content):
        update_note(call, notebook_id, note_id, content, title)
    return note_id


def update_note(call: RpcCaller, notebook_id: str, note_id: str, content: str, title: str) -> None:
    _invoke(
        call,
        "update note",
        constants.UPDATE_NOTE,
        [notebook_id, note_id, [[[content, title, [], 0]]]],
        _notebook_path(notebook_id),
    )


def delete_note(call: RpcCaller, notebook_id: str, note_id: str) -> None:
    _invoke(
        call,
        "delete note",
        constants.DELETE_NOTE,
        [notebook_id, None, [note_id]],
        _notebook_path(notebook_id),
    )


# Research


def create_web_search(
    call: RpcCaller, notebook_id: str, query: str, mode: ResearchMode | str = ResearchMode.FAST
) -> tuple[str, str]:
    """Start a web research task and return ``(research_id, artifact_id)``."""
    if mode == ResearchMode.DEEP:
        raw = _invoke(
            call,
            "create deep research",
            constants.CREATE_DEEP_RESEARCH,
            [None, [1], [query, 1], 5, notebook_id],
            _notebook_path(notebook_id),
        )
        envelopes = parse_envelopes(raw)
        if not envelopes:
            return "", ""
        first = envelopes[0]
        research_id = get_path(first, 0)
        artifact_id = get_path(first, 1)
        return (
            research_id if isinstance(research_id, str) else "",
            artifact_id if isinstance(artifact_id, str) else "",
        )

    raw = _invoke(
        call,
        "create web search",
        constants.CREATE_WEB_SEARCH,
        [[query, 1], None, 1, notebook_id],
        _notebook_path(notebook_id),
    )
    envelopes = parse_envelopes(raw)
    research_id = get_path(envelopes[0], 0) if envelopes else None
    return (research_id if isinstance(research_id, str) else ""), ""


def poll_research_results(
    call: RpcCaller, notebook_id: str, timeout: float | None = None
) -> tuple[list[ResearchResult], str]:
    """Poll until research completes; return ``(results, report)``.

    A timeout of ``None`` or 0 means 120 seconds. On timeout empty results are returned.
    """
    if not timeout:
        timeout = DEFAULT_RESEARCH_TIMEOUT
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        raw = _invoke(
            call,
            "poll research",
            constants.POLL_RESEARCH,
            [None, None, notebook_id],
            _notebook_path(notebook_id),
        )
        parsed = parse_research_results(raw)
        if parsed.status >= 2:
            logger.info("NotebookLM: Research completed — %d sources", len(parsed.results))
            return parsed.results, parsed.report
        time.sleep(RESEARCH_POLL_INTERVAL)
    logger.info("NotebookLM: Research poll timed out")
    return [], ""


def import_research(
    call: RpcCaller,
    notebook_id: str,
    research_id: str,
    results: Iterable[ResearchResult],
    report: str,
) -> None:
    """Add a research report and result URLs to a notebook as sources."""
    sources: list[Any] = []
    if report:
        sources.append(
            [None, ["Deep Research Report", report], None, 3, None, None, None, None, None, None, 3]
        )
    sources.extend(
        [None, None, [r.url, r.title], None, None, None, None, None, None, None, 2] for r in results
    )
    if not sources:
        return
    _invoke(
        call,
        "import research",
        constants.IMPORT_RESEARCH,
        [None, [1], research_id, notebook_id, sources],
        _notebook_path(notebook_id),
    )
    logger.info("NotebookLM: Imported %d research sources", len(sources))


# Settings


def get_output_language(call: RpcCaller) -> str:
    raw = _invoke(
        call,
        "get output language",
        constants.GET_ACCOUNT_INFO,
        [None, list(_CREATE_OPTIONS)],
        "/",
    )
    envelopes = parse_envelopes(raw)
    if not envelopes:
        return ""
    outer = get_path(envelopes[0], 0)
    if not isinstance(outer, list) or len(outer) < 3:
        return ""
    settings = outer[2]
    if not isinstance(settings, list) or len(settings) < 5:
        return ""
    lang_list = settings[4]
    if not isinstance(lang_list, list) or not lang_list:
        return ""
    return lang_list[0] if isinstance(lang_list[0], str) else ""


def set_output_language(call: RpcCaller, language: str) -> None:
    _invoke(
        call,
        "set output language",
        constants.SET_USER_SETTINGS,
        [[[None, [[None, None, None, None, [language]]]]]],
        "/",
    )


def get_studio_config(call: RpcCaller, notebook_id: str) -> StudioConfig:
    raw = _invoke(
        call,
        "get studio config",
        constants.GET_STUDIO_CONFIG,
        [default_user_config(), notebook_id],
        _notebook_path(notebook_id),
    )
    return parse_studio_config(raw)


def get_account_info(call: RpcCaller) -> AccountInfo:
    raw = _invoke(call, "get account info", constants.GET_ACCOUNT_INFO, [default_user_config()], "/")
    return parse_account_info(raw)


# Sharing


def get_share_status(call: RpcCaller, notebook_id: str) -> list[Any] | None:
    """Return the raw share-status payload, or ``None`` if the response had none."""
    raw = _invoke(
        call,
        "get share status",
        constants.GET_SHARE_STATUS,
        [notebook_id, platform_web()],
        _notebook_path(notebook_id),
    )
    envelopes = parse_envelopes(raw)
    return envelopes[0] if envelopes else None


def share_notebook(call: RpcCaller, notebook_id: str, is_public: bool) -> None:
    access = 1 if is_public else 0
    _invoke(
        call,
        "share notebook",
        constants.SHARE_NOTEBOOK,
        [[[notebook_id, None, [access], [access, ""]]], 1, None, platform_web()],
        _notebook_path(notebook_id),
    )


def share_notebook_with_user(
    call: RpcCaller,
    notebook_id: str,
    email: str,
    permission: str = "viewer",
    notify: bool = True,
    message: str = "",
) -> None:
    """Share a notebook with one user as ``viewer`` (default) or ``editor``."""
    permission = permission or "viewer"
    perm_code = 2 if permission == "editor" else 3
    notify_code = 1 if notify else 0
    msg_flag = 0 if message else 1
    _invoke(
        call,
        "share notebook with user",
        constants.SHARE_NOTEBOOK,
        [
            [[notebook_id, [[email, None, perm_code]], None, [msg_flag, message]]],
            notify_code,
            None,
            platform_web(),
        ],
        _notebook_path(notebook_id),
    )


# Chat


def send_chat(
    call_chat: ChatStreamCaller, notebook_id: str, message: str, source_ids: Sequence[str]
) -> tuple[str, str]:
    """Ask a question in a notebook; return ``(answer_text, thread_id)``."""
    try:
        raw = call_chat(notebook_id, message, list(source_ids))
    except Exception as exc:
        raise ApiError(f"send chat: {exc}") from exc
    text, thread_id, _ = parse_chat_stream(raw)
    return text, thread_id


def delete_chat_thread(call: RpcCaller, thread_id: str) -> None:
    _invoke(call, "delete chat thread", constants.DELETE_CHAT_THREAD, [[], thread_id, None, 1], "")


# Artifacts


def _with_language(opts: ArtifactOptions | None, session_lang: str) -> ArtifactOptions:
    if opts is None:
        return AudioArtifactOptions(language=session_lang)
    if isinstance(opts, (AudioArtifactOptions, ReportArtifactOptions, VideoArtifactOptions)):
        if not opts.language:
            return dataclasses.replace(opts, language=session_lang)
    return opts


def generate_artifact(
    call: RpcCaller,
    notebook_id: str,
    source_ids: Sequence[str],
    session_lang: str,
    opts: ArtifactOptions | None = None,
) -> tuple[str, str]:
    """Start generating an artifact; return ``(artifact_id, title)``.

    Without options an audio overview is generated. Audio, report and video
    options without a language take ``session_lang``.
    """
    sids_triple = [[[sid]] for sid in source_ids]
    sids_double = [[sid] for sid in source_ids]
    inner = build_artifact_payload(sids_triple, sids_double, _with_language(opts, session_lang))
    raw = _invoke(
        call,
        "generate artifact",
        constants.GENERATE_ARTIFACT,
        [default_user_config(), notebook_id, inner],
        _notebook_path(notebook_id),
    )
    return parse_generate_artifact(raw)


def get_artifacts(call: RpcCaller, notebook_id: str) -> list[ArtifactInfo]:
    raw = _invoke(
        call,
        "get artifacts",
        constants.GET_ARTIFACTS_FILTERED,
        [default_user_config(), notebook_id, 'NOT artifact.status = "ARTIFACT_STATUS_SUGGESTED"'],
        _notebook_path(notebook_id),
    )
    return parse_artifacts(raw)


def delete_artifact(call: RpcCaller, artifact_id: str) -> None:
    _invoke(call, "delete artifact", constants.DELETE_ARTIFACT, [default_user_config(), artifact_id], "")


def rename_artifact(call: RpcCaller, artifact_id: str, new_title: str) -> None:
    _invoke(call, "rename artifact", constants.RENAME_ARTIFACT, [artifact_id, new_title], "")


def _long_html(value: Any) -> str | None:
    if isinstance(value, str) and len(value) > _INTERACTIVE_HTML_MIN_LENGTH:
        return value
    return None


def get_interactive_html(call: RpcCaller, artifact_id: str) -> str:
    """Return the HTML of an interactive artifact (quiz, flashcards) or an empty string."""
    raw = _invoke(call, "get interactive html", constants.GET_INTERACTIVE_HTML, [artifact_id], "")
    envelopes = parse_envelopes(raw)
    if not envelopes or not envelopes[0]:
        return ""
    head = envelopes[0][0]
    if isinstance(head, str):
        return head
    if isinstance(head, list):
        for element in head:
            found = _long_html(element)
            if found is None and isinstance(element, list) and element:
                found = _long_html(element[0])
            if found is not None:
                return found
    return ""