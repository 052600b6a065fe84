# nblmclient

A pure-Python library for talking to NotebookLM over its `batchexecute`
RPC protocol. It builds request payloads, decodes the `)]}'`-prefixed
chunked responses, and wraps the individual RPCs (notebooks, sources,
notes, research, artifacts, chat, sharing, settings) as plain functions.
It has no third-party runtime dependencies.

## Design

The RPC functions do not own a network transport. Each one takes a
*caller*: a callable you supply, invoked as
`call(rpc_id, payload, source_path)`, that sends one RPC and returns the
raw response body as a string. Chat uses a separate caller invoked as
`call_chat(notebook_id, message, source_ids)`. This keeps the protocol
logic testable and lets you plug in your own HTTP stack and authentication.

File uploads and media downloads are the exception: they make direct HTTP
requests with `urllib`, using a `sources.SessionCredentials` object
(`cookies`, `user_agent`, `proxy`, and an optional `opener` with an
`open(request)` method).

## Modules

| Module | Purpose |
| --- | --- |
| `nblmclient.constants` | RPC identifiers, artifact type codes, endpoint URLs, `default_user_config()`, `platform_web()` |
| `nblmclient.rpcconfig` | Config directory (`home_dir()`, `set_home_dir()`, `session_path()`, `profile_dir()`, `rpc_ids_path()`) and RPC id overrides (`load_rpc_id_overrides()`, `reload_rpc_id_overrides()`, `resolve_rpc_id()`) |
| `nblmclient.envelope` | `strip_safety_prefix()`, `extract_json_chunks()`, `parse_envelopes()`, `get_path()`, `extract_inner()`, `extract_all_inner()` |
| `nblmclient.payload` | Option dataclasses (`AudioArtifactOptions`, `ReportArtifactOptions`, `VideoArtifactOptions`, `QuizArtifactOptions`, `FlashcardsArtifactOptions`, `InfographicArtifactOptions`, `SlideDeckArtifactOptions`, `DataTableArtifactOptions`) and `build_*_payload()` / `build_artifact_payload()` |
| `nblmclient.parsers` | Response parsers returning dataclasses such as `NotebookInfo`, `SourceInfo`, `ArtifactInfo`, `ResearchParseResult`, `AccountInfo`, `StudioConfig`; `parse_create_notebook()` raises `ParseError` when no id is found |
| `nblmclient.api` | One function per RPC: `create_notebook()`, `list_notebooks()`, `get_notebook_detail()`, `list_notes()`, `create_note()`, `create_web_search()`, `poll_research_results()`, `import_research()`, `generate_artifact()`, `get_artifacts()`, `get_interactive_html()`, `send_chat()`, `share_notebook()`, `get_output_language()`, … |
| `nblmclient.sources` | `add_url_source()`, `add_text_source()`, `add_file_source()` (register plus resumable upload), `delete_source()`, `get_source_summary()`, `rename_source()`, `refresh_source_data()` |
| `nblmclient.download` | `download_file_http()` with retries while the CDN catches up, metadata polling, and `save_report()`, `save_quiz_html()`, `save_slide_deck()`, `save_infographic()`, `save_data_table()` |
| `nblmclient.sessionstatus` | `RpcSession`, `SessionCookie`, `parse_imported_session()`, `print_session_status()`, `format_cookie_row()`, `human_duration()`, `truncate()` |
| `nblmclient.proxyconfig` | `normalize_proxy_url()` and `resolve_proxy()` (explicit settings, then proxy environment variables) |

## Examples

Decoding a raw response:

```python
from nblmclient.envelope import parse_envelopes

raw = ')]}\'\n\n[["wrb.fr","wXbhsf","[[\\"x\\"]]",null,null,null,"generic"]]'
print(parse_envelopes(raw))   # [[['x']]]
```

Listing notebooks through your own caller:

```python
from nblmclient import api

def call(rpc_id, payload, source_path):
    ...  # send the batchexecute request, return the response body

for notebook in api.list_notebooks(call):
    print(notebook.id, notebook.title)
```

Generating a report:

```python
from nblmclient import api
from nblmclient.payload import ReportArtifactOptions

artifact_id, title = api.generate_artifact(
    call, notebook_id, source_ids, "en", ReportArtifactOptions(template="study_guide")
)
```

Proxy and duration helpers:

```python
from datetime import timedelta
from nblmclient.proxyconfig import normalize_proxy_url
from nblmclient.sessionstatus import human_duration

normalize_proxy_url("127.0.0.1:1080", "socks5")   # 'socks5://127.0.0.1:1080'
human_duration(timedelta(hours=2, minutes=30))     # '2h30m'
```

## Errors

- An exception raised by a caller surfaces as `api.ApiError`, with the
  failing operation named in the message.
- Source operations raise `sources.SourceError` (a subclass of `ApiError`).
- Download and save functions raise `download.DownloadError`.
- `sessionstatus.parse_imported_session()` raises `SessionImportError` for
  malformed JSON or a session without an `at` token.

## Configuration

The configuration directory defaults to `~/.notebooklm` and can be changed
with the `NOTEBOOKLM_HOME` environment variable or `rpcconfig.set_home_dir()`.
An optional `rpc-ids.json` in that directory maps built-in RPC ids to
replacements, for when the service renames an endpoint; pass the result of
`load_rpc_id_overrides()` to `resolve_rpc_id()`.

## What this package does not do

- It has no command-line program.
- It does not send `batchexecute` or chat requests itself: it does not encode
  the `f.req` form body, add the `at`/`bl`/`f.sid` parameters, or retry on
  expired tokens. Your caller does that.
- It does not log in, read cookies from browsers, refresh session tokens,
  or save sessions to disk. `sessionstatus` only decodes session JSON you
  already have and reports on its cookies.
- It does not run the end-to-end workflows (create a notebook, add a source,
  wait, generate and download) as single calls; compose them from the
  functions above.

## Tests

The test suite uses pytest and is available through the `test` extra.