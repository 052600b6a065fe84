import json

import pytest

from nblmclient.parsers import (
    AccountInfo,
    ParseError,
    ResearchParseResult,
    ResearchResult,
    SourceInfo,
    StudioAudioType,
    StudioConfig,
    StudioDocType,
    find_artifact_download_url,
    parse_account_info,
    parse_add_source,
    parse_artifacts,
    parse_chat_stream,
    parse_create_notebook,
    parse_generate_artifact,
    parse_list_notebooks,
    parse_notebook_detail,
    parse_research_results,
    parse_source_content,
    parse_source_summary,
    parse_studio_config,
)


def _raw(*inners):
    envelopes = [["wrb.fr", "rpc", json.dumps(inner), None, None] for inner in inners]
    return ")]}'\n" + json.dumps(envelopes)


MEDIA_BASE = "https://lh3.googleusercontent.com/notebooklm/abc"
DOWNLOAD = MEDIA_BASE + "=m140-dv"
STREAM = MEDIA_BASE + "=m140"
HLS = MEDIA_BASE + "=mm,hls"
DASH = MEDIA_BASE + "=mm,dash"


def test_account_info_reads_limits_and_flags():
    limits = [1, 100, 50, 500000]
    raw = _raw([[None, limits, None, None, [True]]])
    info = parse_account_info(raw)
    assert info == AccountInfo(
        plan_type=limits[0],
        notebook_limit=limits[1],
        source_limit=limits[2],
        source_word_limit=limits[3],
        is_plus=True,
    )


def test_account_info_without_envelope_is_default():
    assert parse_account_info("garbage") == AccountInfo()


def test_generate_artifact_nested_and_flat():
    assert parse_generate_artifact(_raw([["art-1", "My Title", 1]])) == ("art-1", "My Title")
    assert parse_generate_artifact(_raw(["art-2", "Flat"])) == ("art-2", "Flat")
    assert parse_generate_artifact("") == ("", "")


def _artifact_raw():
    audio = [
        "a1",
        "Audio",
        1,
        [[["s1"]], ["s2"]],
        [[DOWNLOAD, 4], [STREAM, 1], [HLS, 2], [DASH, 3]],
        [300, 2000000],
    ]
    report = ["r1", "Report", 2]
    return _raw([[audio, report, "not-a-list", ["", "no id"]]])


def test_parse_artifacts_extracts_media_and_sources():
    artifacts = parse_artifacts(_artifact_raw())
    assert [a.id for a in artifacts] == ["a1", "r1"]
    audio = artifacts[0]
    assert audio.title == "Audio"
    assert audio.type == 1
    assert audio.source_ids == ["s1", "s2"]
    assert audio.download_url == DOWNLOAD
    assert audio.stream_url == STREAM
    assert audio.hls_url == HLS
    assert audio.dash_url == DASH
    assert audio.duration_seconds == 300
    assert audio.duration_nanos == 2000000


def test_parse_artifacts_non_media_has_no_urls():
    report = parse_artifacts(_artifact_raw())[1]
    assert report.download_url == ""
    assert report.duration_seconds is None
    assert report.source_ids == []


def test_short_duration_pair_ignored():
    raw = _raw([[["v1", "Video", 3, None, [5, 2000000]]]])
    (artifact,) = parse_artifacts(raw)
    assert artifact.duration_seconds is None
    assert artifact.duration_nanos is None


def test_find_artifact_download_url():
    raw = _artifact_raw()
    assert find_artifact_download_url(raw, "a1") == DOWNLOAD
    assert find_artifact_download_url(raw, "r1") == ""
    assert find_artifact_download_url(raw, "missing") == ""


def test_chat_stream_keeps_last_non_empty_values():
    raw = _raw(
        [["partial", None, ["thread-1", "resp-1"]]],
        [["full answer", None, ["thread-1", "resp-2"]]],
        [["", None, ["", ""]]],
    )
    assert parse_chat_stream(raw) == ("full answer", "thread-1", "resp-2")


def test_chat_stream_empty():
    assert parse_chat_stream("") == ("", "", "")


def test_create_notebook_returns_id():
    assert parse_create_notebook(_raw(["", None, "nb-id-1"])) == "nb-id-1"


def test_create_notebook_missing_id_raises():
    with pytest.raises(ParseError, match="failed to parse notebook ID"):
        parse_create_notebook(_raw(["", None]))


def test_list_notebooks_filters_by_uuid_prefix():
    sources = [[1], [2]]
    raw = _raw([
        [
            ["Title A", sources, "1234abcd-0000"],
            ["Bad", None, "notauuid"],
            ["No sources", None, "abcdef01-1111"],
            "skip",
        ]
    ])
    notebooks = parse_list_notebooks(raw)
    assert [(n.id, n.title) for n in notebooks] == [
        ("1234abcd-0000", "Title A"),
        ("abcdef01-1111", "No sources"),
    ]
    assert notebooks[0].source_count == len(sources)
    assert notebooks[1].source_count is None


def test_notebook_detail_parses_sources():
    pad = [None] * 5
    raw = _raw([[
        "NB Title",
        [
            [["src-1"], "Source One", [None, 250, *pad, ["https://example.com/a"]]],
            [[], "no id"],
            [["src-2"], "Two", [None, 0, *pad, "https://example.com/b"]],
            [["src-3"], "Three"],
        ],
    ]])
    title, sources = parse_notebook_detail(raw)
    assert title == "NB Title"
    assert sources == [
        SourceInfo(id="src-1", title="Source One", word_count=250, url="https://example.com/a"),
        SourceInfo(id="src-2", title="Two", word_count=0, url="https://example.com/b"),
        SourceInfo(id="src-3", title="Three"),
    ]


def test_notebook_detail_empty():
    assert parse_notebook_detail("") == ("", [])


def test_research_completed_with_report():
    task_info = [
        None,
        None,
        1,
        [[
            ["https://example.com/1", "T1", "D1", 1],
            [None, ["Report", "# md"], None, 3],
        ]],
        6,
    ]
    raw = _raw([[["task-1", task_info]]])
    result = parse_research_results(raw)
    assert result.status == 2
    assert result.results == [ResearchResult(url="https://example.com/1", title="T1", description="D1")]
    assert result.report == "# md"


def test_research_legacy_report_chunks():
    legacy = [None, "Title", None, 1, None, None, ["part a", 7, "part b"]]
    task_info = [None, None, 2, [legacy, ["https://example.com/2", "T2"]]]
    result = parse_research_results(_raw([[["task-2", task_info]]]))
    assert result.report == "part a\n\npart b"
    assert [r.url for r in result.results] == ["https://example.com/2"]


def test_research_in_progress_keeps_status():
    result = parse_research_results(_raw([[["task-3", [None, None, 1]]]]))
    assert result == ResearchParseResult(status=1)


def test_research_unparseable_is_default():
    assert parse_research_results(_raw([[[None]]])) == ResearchParseResult()
    assert parse_research_results("") == ResearchParseResult()


def test_add_source():
    assert parse_add_source(_raw([[[["src-9"], "Title 9"]]])) == ("src-9", "Title 9")
    assert parse_add_source(_raw([])) == ("", "")


def test_source_content():
    assert parse_source_content(_raw([["src-3"], "T3", [None, 42]])) == ("src-3", "T3", 42)
    assert parse_source_content("") == ("", "", 0)


def test_source_summary():
    raw = _raw([[[["src-4"]]], "Summary text"])
    assert parse_source_summary(raw) == ("src-4", "Summary text")


def test_studio_config_sections():
    raw = _raw([[
        [[[1, "Deep Dive", "desc1"], [2, "Brief", "desc2"]]],
        [[[3, "Explainer", "e"]]],
        [[]],
        [[["Briefing Doc", "bd"]]],
    ]])
    config = parse_studio_config(raw)
    assert config == StudioConfig(
        audio_types=[
            StudioAudioType(id=1, name="Deep Dive", description="desc1"),
            StudioAudioType(id=2, name="Brief", description="desc2"),
        ],
        explainer_types=[StudioAudioType(id=3, name="Explainer", description="e")],
        slide_types=[],
        doc_types=[StudioDocType(name="Briefing Doc", description="bd")],
    )


def test_studio_config_empty():
    assert parse_studio_config("") == StudioConfig()