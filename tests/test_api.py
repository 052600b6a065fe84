import json
import time
from unittest import mock

import pytest

from nblmclient import api, constants
from nblmclient.parsers import ResearchResult
from nblmclient.payload import QuizArtifactOptions, ReportArtifactOptions


def wrap(rpc_id, inner):
    """Build a raw batchexecute body holding one envelope."""
    return ")]}'\n" + json.dumps([["wrb.fr", rpc_id, json.dumps(inner)]])


class FakeCaller:
    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.calls = []

    def __call__(self, rpc_id, payload, source_path):
        self.calls.append((rpc_id, payload, source_path))
        if self.error is not None:
            raise self.error
        response = self.responses.get(rpc_id, "")
        if isinstance(response, list):
            return response.pop(0)
        return response


def test_create_notebook_returns_id_and_sends_payload():
    call = FakeCaller({constants.CREATE_NOTEBOOK: wrap(constants.CREATE_NOTEBOOK, ["", None, "nb-1"])})
    assert api.create_notebook(call) == "nb-1"
    rpc_id, payload, path = call.calls[0]
    assert rpc_id == constants.CREATE_NOTEBOOK
    assert path == "/"
    assert payload[3] == constants.platform_web()


def test_create_notebook_wraps_call_failure():
    call = FakeCaller(error=OSError("boom"))
    with pytest.raises(api.ApiError, match="create notebook: boom"):
        api.create_notebook(call)


def test_list_notebooks_parses_entries():
    inner = [[["Title", [["a"], ["b"]], "abcdef12-3456"], ["Skip", [], "not-a-uuid"]]]
    call = FakeCaller({constants.LIST_NOTEBOOKS: wrap(constants.LIST_NOTEBOOKS, inner)})
    notebooks = api.list_notebooks(call)
    assert [(n.id, n.title, n.source_count) for n in notebooks] == [("abcdef12-3456", "Title", 2)]


def test_get_notebook_detail_uses_notebook_path():
    inner = [["My Book", [[["src-1"], "Doc", [None, 42]]]]]
    call = FakeCaller({constants.GET_NOTEBOOK: wrap(constants.GET_NOTEBOOK, inner)})
    title, sources = api.get_notebook_detail(call, "nb-9")
    assert title == "My Book"
    assert [(s.id, s.title, s.word_count) for s in sources] == [("src-1", "Doc", 42)]
    assert call.calls[0][2] == "/notebook/nb-9"


def test_delete_and_rename_notebook_payloads():
    call = FakeCaller()
    api.delete_notebook(call, "nb-1")
    api.rename_notebook(call, "nb-1", "New")
    assert call.calls[0] == (constants.DELETE_NOTEBOOK, [["nb-1"], [2]], "/")
    assert call.calls[1] == (constants.RENAME_NOTEBOOK, ["nb-1", [[None, None, None, [None, "New"]]]], "/")


def test_list_notes_skips_mind_maps():
    items = [
        ["n1", [None, "hello", None, None, "Greeting"]],
        ["mm", None, 2],
        ["n2", '{"children": []}'],
        ["n3", "plain text"],
        ["", "no id"],
    ]
    call = FakeCaller({constants.GET_NOTES: wrap(constants.GET_NOTES, [items])})
    notes = api.list_notes(call, "nb")
    assert notes == [
        api.Note(id="n1", title="Greeting", content="hello"),
        api.Note(id="n3", title="", content="plain text"),
    ]


def test_list_notes_empty_response():
    assert api.list_notes(FakeCaller(), "nb") == []


def test_create_note_with_default_title_does_not_update():
    call = FakeCaller({constants.CREATE_NOTE: wrap(constants.CREATE_NOTE, [["note-1"]])})
    assert api.create_note(call, "nb", "", "") == "note-1"
    assert [c[0] for c in call.calls] == [constants.CREATE_NOTE]


def test_create_note_with_content_updates():
    call = FakeCaller({constants.CREATE_NOTE: wrap(constants.CREATE_NOTE, ["note-2"])})
    assert api.create_note(call, "nb", "Title", "Body") == "note-2"
    rpc_id, payload, _ = call.calls[1]
    assert rpc_id == constants.UPDATE_NOTE
    assert payload == ["nb", "note-2", [[["Body", "Title", [], 0]]]]


def test_create_web_search_fast_and_deep():
    call = FakeCaller({
        constants.CREATE_WEB_SEARCH: wrap(constants.CREATE_WEB_SEARCH, ["r-fast"]),
        constants.CREATE_DEEP_RESEARCH: wrap(constants.CREATE_DEEP_RESEARCH, ["r-deep", "art-1"]),
    })
    assert api.create_web_search(call, "nb", "topic", api.ResearchMode.FAST) == ("r-fast", "")
    assert api.create_web_search(call, "nb", "topic", "deep") == ("r-deep", "art-1")
    assert call.calls[1][1] == [None, [1], ["topic", 1], 5, "nb"]


def _research_body(status):
    inner = [[["task", [None, None, status, [["https://example.com/a", "A", "desc"]]]]]]
    return wrap(constants.POLL_RESEARCH, inner)


def test_poll_research_results_completes():
    call = FakeCaller({constants.POLL_RESEARCH: [_research_body(1), _research_body(2)]})
    with mock.patch("time.sleep") as sleeper:
        results, report = api.poll_research_results(call, "nb", 60)
    assert results == [ResearchResult(url="https://example.com/a", title="A", description="desc")]
    assert report == ""
    assert sleeper.call_count == 1


def test_poll_research_results_times_out():
    call = FakeCaller({constants.POLL_RESEARCH: _research_body(1)})
    real_sleep = time.sleep
    with mock.patch("time.sleep", side_effect=lambda _s: real_sleep(0.01)):
        assert api.poll_research_results(call, "nb", 0.03) == ([], "")
    assert len(call.calls) >= 1


def test_import_research_without_sources_makes_no_call():
    call = FakeCaller()
    api.import_research(call, "nb", "r", [], "")
    assert call.calls == []


def test_import_research_sends_report_and_results():
    call = FakeCaller()
    api.import_research(call, "nb", "r", [ResearchResult(url="https://example.com/x", title="X")], "report md")
    rpc_id, payload, path = call.calls[0]
    assert rpc_id == constants.IMPORT_RESEARCH
    sources = payload[4]
    assert len(sources) == 2
    assert sources[0][1] == ["Deep Research Report", "report md"]
    assert sources[1][2] == ["https://example.com/x", "X"]
    assert path == "/notebook/nb"


def test_get_output_language():
    inner = [[None, None, [None, None, None, None, ["de"]]]]
    call = FakeCaller({constants.GET_ACCOUNT_INFO: wrap(constants.GET_ACCOUNT_INFO, inner)})
    assert api.get_output_language(call) == "de"
    assert api.get_output_language(FakeCaller()) == ""


def test_set_output_language_payload():
    call = FakeCaller()
    api.set_output_language(call, "fr")
    assert call.calls[0][1] == [[[None, [[None, None, None, None, ["fr"]]]]]]


def test_share_status_returns_first_envelope():
    call = FakeCaller({constants.GET_SHARE_STATUS: wrap(constants.GET_SHARE_STATUS, [1, 2])})
    assert api.get_share_status(call, "nb") == [1, 2]
    assert api.get_share_status(FakeCaller(), "nb") is None


def test_share_notebook_public_flag():
    call = FakeCaller()
    api.share_notebook(call, "nb", True)
    assert call.calls[0][1][0] == [["nb", None, [1], [1, ""]]]


def test_share_notebook_with_user_codes():
    call = FakeCaller()
    api.share_notebook_with_user(call, "nb", "user@example.com", "editor", False, "hi")
    api.share_notebook_with_user(call, "nb", "user@example.com", "", True, "")
    first, second = call.calls[0][1], call.calls[1][1]
    assert first[0] == [["nb", [["user@example.com", None, 2]], None, [0, "hi"]]]
    assert first[1] == 0
    assert second[0] == [["nb", [["user@example.com", None, 3]], None, [1, ""]]]
    assert second[1] == 1


def test_send_chat_parses_stream():
    def chat(notebook_id, message, source_ids):
        assert source_ids == ["s1"]
        return wrap("x", [["The answer", None, ["thread-1", "resp-1"]]])

    assert api.send_chat(chat, "nb", "Q?", ["s1"]) == ("The answer", "thread-1")


def test_send_chat_wraps_failure():
    def chat(*_args):
        raise ConnectionError("down")

    with pytest.raises(api.ApiError, match="send chat"):
        api.send_chat(chat, "nb", "Q?", [])


def test_delete_chat_thread_payload():
    call = FakeCaller()
    api.delete_chat_thread(call, "t1")
    assert call.calls[0] == (constants.DELETE_CHAT_THREAD, [[], "t1", None, 1], "")


def test_generate_artifact_defaults_to_audio_in_session_language():
    call = FakeCaller({constants.GENERATE_ARTIFACT: wrap(constants.GENERATE_ARTIFACT, [["art-1", "Audio"]])})
    assert api.generate_artifact(call, "nb", ["s1"], "ja", None) == ("art-1", "Audio")
    payload = call.calls[0][1]
    assert payload[0] == constants.default_user_config()
    inner = payload[2]
    assert inner[2] == constants.ARTIFACT_AUDIO
    assert inner[3] == [[["s1"]]]
    assert inner[6][1][3] == [["s1"]]
    assert inner[6][1][4] == "ja"


def test_generate_artifact_fills_report_language_only():
    call = FakeCaller()
    api.generate_artifact(call, "nb", ["s1"], "ko", ReportArtifactOptions())
    api.generate_artifact(call, "nb", ["s1"], "ko", QuizArtifactOptions())
    report_inner = call.calls[0][1][2]
    quiz_inner = call.calls[1][1][2]
    assert report_inner[7][1][4] == "ko"
    assert quiz_inner[9][1][3] is None


def test_get_interactive_html_variants():
    long_html = "<html>" + "x" * 300
    direct = FakeCaller({constants.GET_INTERACTIVE_HTML: wrap("v", ["<p>short</p>"])})
    nested = FakeCaller({constants.GET_INTERACTIVE_HTML: wrap("v", [["short", [long_html]]])})
    assert api.get_interactive_html(direct, "a") == "<p>short</p>"
    assert api.get_interactive_html(nested, "a") == long_html
    assert api.get_interactive_html(FakeCaller(), "a") == ""


def test_get_artifacts_and_delete_rename():
    inner = [[["art-1", "Quiz", 4]]]
    call = FakeCaller({constants.GET_ARTIFACTS_FILTERED: wrap("g", inner)})
    artifacts = api.get_artifacts(call, "nb")
    assert [(a.id, a.title, a.type) for a in artifacts] == [("art-1", "Quiz", 4)]
    api.delete_artifact(call, "art-1")
    api.rename_artifact(call, "art-1", "Renamed")
    assert call.calls[1][1][1] == "art-1"
    assert call.calls[2] == (constants.RENAME_ARTIFACT, ["art-1", "Renamed"], "")