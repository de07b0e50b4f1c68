"""
Incremental segmentation of a streamed model response.

Chunks arrive in any size, so a marker may be split anywhere. The scanner
keeps only the few characters that could still turn into a marker and hands
everything else on immediately: text lines to the line renderer as soon as
they are complete, artifacts as soon as their closing marker is seen.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from claippy.exceptions import MalformedArtifactMarker

from .segments import (
    DEFAULT_SYNTAX,
    PLACEHOLDER_IDENTIFIER,
    ArtifactSegment,
    ArtifactSyntax,
    Segment,
    TextSegment,
)

logger = logging.getLogger(__name__)


class ScanState(Enum):
    TEXT = "text"
    OPEN_MARKER = "open_marker"
    BODY = "body"


def held_prefix_length(buffer: str, token: str) -> int:
    """Length of the longest tail of ``buffer`` that is a proper prefix of ``token``."""
    for size in range(min(len(token) - 1, len(buffer)), 0, -1):
        if buffer.endswith(token[:size]):
            return size
    return 0


def find_marker_end(buffer: str, start: int) -> int:
    """
    Index of the ``>`` closing an opening marker, ignoring any inside quoted
    attribute values.

    Returns -1 while more input is needed and -2 when a newline comes first,
    which means the buffer does not hold a marker.
    """
    quote = None
    for idx in range(start, len(buffer)):
        char = buffer[idx]
        if char == "\n":
            return -2
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ">":
            return idx
    return -1


class StreamSegmenter:
    """
    Turns a sequence of text chunks into Text and Artifact segments.

    Args:
        syntax: Artifact marker convention to recognise
        on_line: Called with each completed line of narrative text
        on_artifact: Called with each completed ArtifactSegment

    ``feed`` may be called any number of times, then ``finish`` exactly once.
    Both callbacks observe the same finalized content that ends up in
    ``segments``; the final result does not depend on how the input was
    split into chunks.
    """

    def __init__(
        self,
        syntax: ArtifactSyntax = DEFAULT_SYNTAX,
        on_line: Optional[Callable[[str], None]] = None,
        on_artifact: Optional[Callable[[ArtifactSegment], None]] = None,
    ):
        self.syntax = syntax
        self.on_line = on_line
        self.on_artifact = on_artifact

        self.state = ScanState.TEXT
        self.segments: List[Segment] = []
        self.problems: List[MalformedArtifactMarker] = []
        self.finished = False

        self._pending = ""
        self._text: List[str] = []
        self._line = ""
        self._marker = ""
        self._body: List[str] = []

    def feed(self, chunk: str) -> List[Segment]:
        """Consume one chunk; returns the segments finalized by it."""
        if self.finished:
            raise RuntimeError("Cannot feed a finished segmenter")
        start = len(self.segments)
        if chunk:
            self._pending += chunk
            while self._step():
                pass
        return self.segments[start:]

    def finish(self) -> List[Segment]:
        """
        End of stream: whatever is still buffered becomes trailing text,
        including an unterminated marker and its body.
        """
        if self.finished:
            return list(self.segments)

        if self.state is ScanState.BODY:
            leftover = self._marker + "".join(self._body) + self._pending
        else:
            leftover = self._pending
        if self.state is not ScanState.TEXT:
            logger.debug("Stream ended inside an artifact marker, keeping it as text")

        self._pending = ""
        self._marker = ""
        self._body = []
        self.state = ScanState.TEXT

        self._emit_text(leftover)
        self._close_text_run()
        self._flush_line()
        self.finished = True
        return list(self.segments)

    def _step(self) -> bool:
        if self.state is ScanState.TEXT:
            return self._scan_text()
        if self.state is ScanState.OPEN_MARKER:
            return self._scan_open_marker()
        return self._scan_body()

    def _scan_text(self) -> bool:
        prefix = self.syntax.open_prefix
        idx = self._pending.find(prefix)
        if idx == -1:
            cut = len(self._pending) - held_prefix_length(self._pending, prefix)
            self._emit_text(self._pending[:cut])
            self._pending = self._pending[cut:]
            return False

        self._emit_text(self._pending[:idx])
        self._pending = self._pending[idx:]
        self.state = ScanState.OPEN_MARKER
        return True

    def _scan_open_marker(self) -> bool:
        prefix = self.syntax.open_prefix
        if len(self._pending) <= len(prefix):
            return False

        follower = self._pending[len(prefix)]
        end = find_marker_end(self._pending, len(prefix))
        # A longer tag name such as <Artifacts, or prose mentioning the tag
        # that never closes on the same line
        not_a_marker = not (follower.isspace() or follower == ">") or end == -2
        if not_a_marker:
            self._emit_text(self._pending[: len(prefix)])
            self._pending = self._pending[len(prefix) :]
            self.state = ScanState.TEXT
            return True

        if end == -1:
            return False

        self._marker = self._pending[: end + 1]
        self._pending = self._pending[end + 1 :]
        self.state = ScanState.BODY
        return True

    def _scan_body(self) -> bool:
        close = self.syntax.close_marker
        idx = self._pending.find(close)
        if idx == -1:
            cut = len(self._pending) - held_prefix_length(self._pending, close)
            if cut:
                self._body.append(self._pending[:cut])
                self._pending = self._pending[cut:]
            return False

        self._body.append(self._pending[:idx])
        self._pending = self._pending[idx + len(close) :]
        self._finalize_artifact()
        self.state = ScanState.TEXT
        return True

    def _finalize_artifact(self):
        self._close_text_run()
        self._flush_line()

        marker = self._marker
        attrs = self.syntax.parse_attributes(marker)
        identifier = attrs.get(self.syntax.identifier_attr)
        if not identifier:
            problem = MalformedArtifactMarker(marker, f"missing {self.syntax.identifier_attr}")
            self.problems.append(problem)
            logger.warning("Malformed artifact marker, using placeholder: %s", problem)
            identifier = PLACEHOLDER_IDENTIFIER

        artifact = ArtifactSegment(
            identifier=identifier,
            body="".join(self._body),
            language=attrs.get(self.syntax.language_attr) or None,
            marker=marker,
        )
        self._marker = ""
        self._body = []

        self.segments.append(artifact)
        if self.on_artifact:
            self.on_artifact(artifact)

    def _emit_text(self, text: str):
        if not text:
            return
        self._text.append(text)
        self._line += text
        while "\n" in self._line:
            line, self._line = self._line.split("\n", 1)
            if self.on_line:
                self.on_line(line)

    def _close_text_run(self):
        text = "".join(self._text)
        self._text = []
        if text:
            self.segments.append(TextSegment(text))

    def _flush_line(self):
        if self._line:
            if self.on_line:
                self.on_line(self._line)
            self._line = ""


def segment_text(
    chunks: Iterable[str], syntax: ArtifactSyntax = DEFAULT_SYNTAX
) -> List[Segment]:
    """Segment a complete response given as one string or an iterable of chunks."""
    if isinstance(chunks, str):
        chunks = [chunks]
    segmenter = StreamSegmenter(syntax)
    for chunk in chunks:
        segmenter.feed(chunk)
    return segmenter.finish()
