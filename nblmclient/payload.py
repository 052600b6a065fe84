"""Builders for the artifact generation request payloads."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from nblmclient.constants import (
    ARTIFACT_AUDIO,
    ARTIFACT_DATA_TABLE,
    ARTIFACT_INFOGRAPHIC,
    ARTIFACT_QUIZ,
    ARTIFACT_REPORT,
    ARTIFACT_SLIDE_DECK,
    ARTIFACT_VIDEO,
)

AUDIO_FORMAT_CODE = {"deep_dive": 1, "brief": 2, "critique": 3, "debate": 4}
AUDIO_LENGTH_CODE = {"short": 1, "default": 2, "long": 3}
VIDEO_FORMAT_CODE = {"explainer": 1, "brief": 2, "cinematic": 3}
VIDEO_STYLE_CODE = {
    "auto": 1,
    "classic": 3,
    "whiteboard": 4,
    "kawaii": 5,
    "anime": 6,
    "watercolor": 7,
    "retro_print": 8,
}
QUIZ_QUANTITY_CODE = {"fewer": 1, "standard": 2}
QUIZ_DIFFICULTY_CODE = {"easy": 1, "medium": 2, "hard": 3}
INFOGRAPHIC_ORIENTATION_CODE = {"landscape": 1, "portrait": 2, "square": 3}
INFOGRAPHIC_DETAIL_CODE = {"concise": 1, "standard": 2, "detailed": 3}
INFOGRAPHIC_STYLE_CODE = {"sketch_note": 2, "professional": 3, "bento_grid": 4}
SLIDE_FORMAT_CODE = {"detailed": 1, "presenter": 2}
SLIDE_LENGTH_CODE = {"default": 1, "short": 2}

DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class ReportTemplateInfo:
    title: str
    description: str
    prompt: str


REPORT_TEMPLATES: dict[str, ReportTemplateInfo] = {
    "briefing_doc": ReportTemplateInfo(
        title="Briefing Doc",
        description="Key insights and important quotes",
        prompt=(
            "Create a comprehensive briefing document that includes an Executive "
            "Summary, detailed analysis of key themes, important quotes with context, "
            "and actionable insights."
        ),
    ),
    "study_guide": ReportTemplateInfo(
        title="Study Guide",
        description="Short-answer quiz, essay questions, glossary",
        prompt=(
            "Create a comprehensive study guide that includes key concepts, "
            "short-answer practice questions, essay prompts for deeper exploration, "
            "and a glossary of important terms."
        ),
    ),
    "blog_post": ReportTemplateInfo(
        title="Blog Post",
        description="Insightful takeaways in readable article format",
        prompt=(
            "Write an engaging blog post that presents the key insights in an "
            "accessible, reader-friendly format. Include an attention-grabbing "
            "introduction, well-organized sections, and a compelling conclusion "
            "with takeaways."
        ),
    ),
    "custom": ReportTemplateInfo(
        title="Custom Report",
        description="Custom format",
        prompt="Create a report based on the provided sources.",
    ),
}

_EMPTY_TEMPLATE = ReportTemplateInfo(title="", description="", prompt="")


@dataclass(frozen=True)
class AudioArtifactOptions:
    language: str = ""
    instructions: str = ""
    format: str = ""
    length: str = ""


@dataclass(frozen=True)
class ReportArtifactOptions:
    template: str = ""
    instructions: str = ""
    language: str = ""


@dataclass(frozen=True)
class VideoArtifactOptions:
    format: str = ""
    style: str = ""
    instructions: str = ""
    language: str = ""


@dataclass(frozen=True)
class QuizArtifactOptions:
    instructions: str = ""
    language: str = ""
    quantity: str = ""
    difficulty: str = ""


@dataclass(frozen=True)
class FlashcardsArtifactOptions:
    instructions: str = ""
    language: str = ""
    quantity: str = ""
    difficulty: str = ""


@dataclass(frozen=True)
class InfographicArtifactOptions:
    instructions: str = ""
    language: str = ""
    orientation: str = ""
    detail: str = ""
    style: str = ""


@dataclass(frozen=True)
class SlideDeckArtifactOptions:
    instructions: str = ""
    language: str = ""
    format: str = ""
    length: str = ""


@dataclass(frozen=True)
class DataTableArtifactOptions:
    instructions: str = ""
    language: str = ""


ArtifactOptions = Union[
    AudioArtifactOptions,
    ReportArtifactOptions,
    VideoArtifactOptions,
    QuizArtifactOptions,
    FlashcardsArtifactOptions,
    InfographicArtifactOptions,
    SlideDeckArtifactOptions,
    DataTableArtifactOptions,
]


def _code(mapping: Mapping[str, int], key: str) -> int | None:
    if not key:
        return None
    return mapping.get(key)


def _or_none(value: str) -> str | None:
    return value or None


def build_audio_payload(sids_triple: Any, sids_double: Any, opts: AudioArtifactOptions) -> list[Any]:
    lang = opts.language or DEFAULT_LANGUAGE
    format_code = _code(AUDIO_FORMAT_CODE, opts.format)
    if format_code is None:
        format_code = AUDIO_FORMAT_CODE["deep_dive"]
    return [
        None, None, ARTIFACT_AUDIO, sids_triple, None, None,
        [None, [
            _or_none(opts.instructions),
            _code(AUDIO_LENGTH_CODE, opts.length),
            None,
            sids_double,
            lang,
            None,
            format_code,
        ]],
    ]


def build_report_payload(sids_triple: Any, sids_double: Any, opts: ReportArtifactOptions) -> list[Any]:
    template = opts.template or "briefing_doc"
    info = REPORT_TEMPLATES.get(template, _EMPTY_TEMPLATE)
    lang = opts.language or DEFAULT_LANGUAGE
    if template == "custom":
        prompt = opts.instructions or info.prompt
    elif opts.instructions:
        prompt = f"{info.prompt}\n\n{opts.instructions}"
    else:
        prompt = info.prompt
    return [
        None, None, ARTIFACT_REPORT, sids_triple, None, None, None,
        [None, [info.title, info.description, None, sids_double, lang, prompt, None, True]],
    ]


def build_video_payload(sids_triple: Any, sids_double: Any, opts: VideoArtifactOptions) -> list[Any]:
    lang = opts.language or DEFAULT_LANGUAGE
    format_code = _code(VIDEO_FORMAT_CODE, opts.format)
    style_code = None if opts.format == "cinematic" else _code(VIDEO_STYLE_CODE, opts.style)
    return [
        None, None, ARTIFACT_VIDEO, sids_triple, None, None, None, None,
        [None, None, [sids_double, lang, _or_none(opts.instructions), None, format_code, style_code]],
    ]


def build_quiz_payload(sids_triple: Any, opts: QuizArtifactOptions) -> list[Any]:
    return [
        None, None, ARTIFACT_QUIZ, sids_triple, None, None, None, None, None,
        [None, [
            2, None, _or_none(opts.instructions), _or_none(opts.language), None, None, None,
            [_code(QUIZ_QUANTITY_CODE, opts.quantity), _code(QUIZ_DIFFICULTY_CODE, opts.difficulty)],
        ]],
    ]


def build_flashcards_payload(sids_triple: Any, opts: FlashcardsArtifactOptions) -> list[Any]:
    return [
        None, None, ARTIFACT_QUIZ, sids_triple, None, None, None, None, None,
        [None, [
            1, None, _or_none(opts.instructions), _or_none(opts.language), None, None,
            [_code(QUIZ_DIFFICULTY_CODE, opts.difficulty), _code(QUIZ_QUANTITY_CODE, opts.quantity)],
        ]],
    ]


def build_infographic_payload(sids_triple: Any, opts: InfographicArtifactOptions) -> list[Any]:
    lang = opts.language or DEFAULT_LANGUAGE
    return [
        None, None, ARTIFACT_INFOGRAPHIC, sids_triple,
        *([None] * 10),
        [[
            _or_none(opts.instructions),
            lang,
            None,
            _code(INFOGRAPHIC_ORIENTATION_CODE, opts.orientation),
            _code(INFOGRAPHIC_DETAIL_CODE, opts.detail),
            _code(INFOGRAPHIC_STYLE_CODE, opts.style),
        ]],
    ]


def build_slide_deck_payload(sids_triple: Any, opts: SlideDeckArtifactOptions) -> list[Any]:
    lang = opts.language or DEFAULT_LANGUAGE
    return [
        None, None, ARTIFACT_SLIDE_DECK, sids_triple,
        *([None] * 12),
        [[
            _or_none(opts.instructions),
            lang,
            _code(SLIDE_FORMAT_CODE, opts.format),
            _code(SLIDE_LENGTH_CODE, opts.length),
        ]],
    ]


def build_data_table_payload(sids_triple: Any, opts: DataTableArtifactOptions) -> list[Any]:
    lang = opts.language or DEFAULT_LANGUAGE
    return [
        None, None, ARTIFACT_DATA_TABLE, sids_triple,
        *([None] * 14),
        [None, [_or_none(opts.instructions), lang]],
    ]


_BUILDERS: dict[type, Callable[[Any, Any, Any], list[Any]]] = {
    AudioArtifactOptions: build_audio_payload,
    ReportArtifactOptions: build_report_payload,
    VideoArtifactOptions: build_video_payload,
    QuizArtifactOptions: lambda triple, _double, o: build_quiz_payload(triple, o),
    FlashcardsArtifactOptions: lambda triple, _double, o: build_flashcards_payload(triple, o),
    InfographicArtifactOptions: lambda triple, _double, o: build_infographic_payload(triple, o),
    SlideDeckArtifactOptions: lambda triple, _double, o: build_slide_deck_payload(triple, o),
    DataTableArtifactOptions: lambda triple, _double, o: build_data_table_payload(triple, o),
}


def build_artifact_payload(sids_triple: Any, sids_double: Any, opts: ArtifactOptions) -> list[Any]:
    """Build the payload matching the kind of ``opts``."""
    builder = _BUILDERS.get(type(opts))
    if builder is None:
        raise TypeError(f"unsupported artifact options: {type(opts).__name__}")
    return builder(sids_triple, sids_double, opts)