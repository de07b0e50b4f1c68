"""
Conversation state for claippy.

A conversation is an ordered list of user/assistant turns plus the set of
workspace references (files, URLs) that have been or will be shown to the
model. Assistant turns are built by the stream segmenter, which splits a
streamed response into narrative text and named artifacts.
"""

from .context import ContextRef, ContextSet, RefKind
from .manager import Conversation
from .segmenter import ScanState, StreamSegmenter, segment_text
from .segments import (
    DEFAULT_SYNTAX,
    PLACEHOLDER_IDENTIFIER,
    ArtifactSegment,
    ArtifactSyntax,
    Role,
    TextSegment,
    Turn,
    merge_text,
)

__all__ = [
    "ArtifactSegment",
    "ArtifactSyntax",
    "ContextRef",
    "ContextSet",
    "Conversation",
    "DEFAULT_SYNTAX",
    "PLACEHOLDER_IDENTIFIER",
    "RefKind",
    "Role",
    "ScanState",
    "StreamSegmenter",
    "TextSegment",
    "Turn",
    "merge_text",
    "segment_text",
]
