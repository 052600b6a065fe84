"""RPC identifiers, artifact type codes, endpoint URLs and static payload fragments."""

from __future__ import annotations

import copy
from typing import Any

# Notebook operations
CREATE_NOTEBOOK = "CCqFvf"
LIST_NOTEBOOKS = "wXbhsf"
GET_NOTEBOOK = "rLM1Ne"
RENAME_NOTEBOOK = "s0tc2d"
DELETE_NOTEBOOK = "WWINqb"
REMOVE_RECENTLY_VIEWED = "fejl7e"

# Source operations
ADD_SOURCE = "izAoDd"
ADD_SOURCE_FILE = "o4cbdc"
GET_SOURCE_CONTENT = "hizoJc"
GET_SOURCE_SUMMARY = "tr032e"
DELETE_SOURCE = "tGMBJ"
REFRESH_SOURCE = "FLmJqe"
UPDATE_SOURCE = "b7Wfje"

# Research operations
CREATE_WEB_SEARCH = "Ljjv0c"
CREATE_DEEP_RESEARCH = "QA9ei"
POLL_RESEARCH = "e3bVqc"
IMPORT_RESEARCH = "LBwxtb"

# Artifact operations
GENERATE_ARTIFACT = "R7cb6c"
GET_ARTIFACTS_FILTERED = "gArtLc"
DELETE_ARTIFACT = "V5N4be"
RENAME_ARTIFACT = "rc3d8d"
GET_INTERACTIVE_HTML = "v9rmvd"
EXPORT_ARTIFACT = "Krh3pd"
SHARE_ARTIFACT = "RGP97b"
GET_STUDIO_CONFIG = "sqTeoe"

# Notes
CREATE_NOTE = "CYK0Xb"
GET_NOTES = "cFji9"
UPDATE_NOTE = "cYAfTb"
DELETE_NOTE = "AH0mwd"

# Chat
DELETE_CHAT_THREAD = "J7Gthc"

# Sharing
GET_SHARE_STATUS = "JFMDGd"
SHARE_NOTEBOOK = "QDyure"

# Account and settings
GET_ACCOUNT_INFO = "ZwVcOc"
SET_USER_SETTINGS = "hT54vc"
GET_NOTEBOOK_SUMMARY = "VfAZjd"
GET_RECOMMENDED_TOPICS = "otmP3b"
GET_UI_CONFIG = "ozz5Z"
REPORT_PLAY_PROGRESS = "Fxmvse"

# Artifact type codes
ARTIFACT_AUDIO = 1
ARTIFACT_REPORT = 2
ARTIFACT_VIDEO = 3
ARTIFACT_QUIZ = 4
ARTIFACT_MIND_MAP = 5
ARTIFACT_INFOGRAPHIC = 7
ARTIFACT_SLIDE_DECK = 8
ARTIFACT_DATA_TABLE = 9

# Endpoints
BASE_URL = "https://notebooklm.google.com"
DASHBOARD_URL = "https://notebooklm.google.com/"
BATCH_EXECUTE_URL = "https://notebooklm.google.com/_/LabsTailwindUi/data/batchexecute"
CHAT_STREAM_URL = (
    "https://notebooklm.google.com/_/LabsTailwindUi/data/"
    "google.internal.labs.tailwind.orchestration.v1."
    "LabsTailwindOrchestrationService/GenerateFreeFormStreamed"
)
UPLOAD_URL = "https://notebooklm.google.com/upload/_/"

_DEFAULT_USER_CONFIG: list[Any] = [
    2,
    None,
    None,
    [1, None, None, None, None, None, None, None, None, None, [1]],
    [[2, 1, 3]],
]

_PLATFORM_WEB: list[Any] = [2]


def default_user_config() -> list[Any]:
    """Return a fresh copy of the static user configuration payload fragment."""
    return copy.deepcopy(_DEFAULT_USER_CONFIG)


def platform_web() -> list[Any]:
    """Return a fresh copy of the web platform marker used in RPC payloads."""
    return list(_PLATFORM_WEB)