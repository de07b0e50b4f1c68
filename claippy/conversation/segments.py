import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

PLACEHOLDER_IDENTIFIER = "untitled"


class Role(str, Enum):
    """Speaker of a turn, using the role names the model API expects."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ArtifactSyntax:
    """
    Textual convention for wrapping artifacts in a response.

    The same instance must be used to decode model output and to encode the
    history sent back to the model, otherwise the round trip breaks.

    Attributes:
        tag: Marker name, e.g. "Artifact" for <Artifact ...>...</Artifact>
        identifier_attr: Attribute carrying the artifact identifier
        language_attr: Optional attribute carrying the content language
    """

    tag: str = "Artifact"
    identifier_attr: str = "identifier"
    language_attr: str = "language"

    @property
    def open_prefix(self) -> str:
        return f"<{self.tag}"

    @property
    def close_marker(self) -> str:
        return f"</{self.tag}>"

    def open_marker(self, identifier: str, language: Optional[str] = None) -> str:
        marker = f"<{self.tag} {self.identifier_attr}={quote_attribute(identifier)}"
        if language:
            marker += f" {self.language_attr}={quote_attribute(language)}"
        return marker + ">"

    def parse_attributes(self, marker: str) -> Dict[str, str]:
        """Return the attributes of a complete opening marker as a dict."""
        inner = marker[len(self.open_prefix) : -1]
        attrs = {}
        for match in ATTRIBUTE_RE.finditer(inner):
            name = match.group(1)
            value = match.group(2) if match.group(2) is not None else match.group(3)
            attrs.setdefault(name, value)
        return attrs


DEFAULT_SYNTAX = ArtifactSyntax()

ATTRIBUTE_RE = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def attribute_error(value: str) -> Optional[str]:
    """Why ``value`` cannot be written as a marker attribute, or None if it can."""
    if "\n" in value:
        return "contains a newline"
    if '"' in value and "'" in value:
        return "contains both quote characters"
    return None


def quote_attribute(value: str) -> str:
    """Quote a marker attribute value, switching to single quotes if it holds a double quote."""
    problem = attribute_error(value)
    if problem:
        raise ValueError(f"Attribute value {value!r} {problem}")
    if '"' in value:
        return f"'{value}'"
    return f'"{value}"'


@dataclass(frozen=True)
class TextSegment:
    """Narrative or markdown content."""

    text: str

    def literal(self, syntax: ArtifactSyntax = DEFAULT_SYNTAX) -> str:
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ArtifactSegment:
    """
    A named block of reusable content extracted from a response.

    ``marker`` keeps the opening marker exactly as the model wrote it so the
    segment can be written back byte for byte. It does not take part in
    equality.
    """

    identifier: str
    body: str
    language: Optional[str] = None
    marker: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if self.marker is not None:
            return
        for value in (self.identifier, self.language):
            problem = value and attribute_error(value)
            if problem:
                raise ValueError(f"Artifact attribute {value!r} {problem}")

    def literal(self, syntax: ArtifactSyntax = DEFAULT_SYNTAX) -> str:
        opening = self.marker or syntax.open_marker(self.identifier, self.language)
        return f"{opening}{self.body}{syntax.close_marker}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "artifact",
            "identifier": self.identifier,
            "language": self.language,
            "body": self.body,
            "marker": self.marker,
        }


Segment = Union[TextSegment, ArtifactSegment]


def segment_from_dict(data: Dict[str, Any]) -> Segment:
    kind = data.get("type")
    if kind == "text":
        return TextSegment(data["text"])
    if kind == "artifact":
        return ArtifactSegment(
            identifier=data["identifier"],
            body=data["body"],
            language=data.get("language"),
            marker=data.get("marker"),
        )
    raise ValueError(f"Unknown segment type: {kind}")


def merge_text(segments: List[Segment]) -> List[Segment]:
    """Collapse adjacent text segments and drop empty ones."""
    merged: List[Segment] = []
    for segment in segments:
        if isinstance(segment, TextSegment):
            if not segment.text:
                continue
            if merged and isinstance(merged[-1], TextSegment):
                merged[-1] = TextSegment(merged[-1].text + segment.text)
                continue
        merged.append(segment)
    return merged


@dataclass
class Turn:
    role: Role
    segments: List[Segment] = field(default_factory=list)

    def literal(self, syntax: ArtifactSyntax = DEFAULT_SYNTAX) -> str:
        return "".join(segment.literal(syntax) for segment in self.segments)

    @property
    def artifacts(self) -> List[ArtifactSegment]:
        return [s for s in self.segments if isinstance(s, ArtifactSegment)]

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "segments": [s.to_dict() for s in self.segments]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(
            role=Role(data["role"]),
            segments=[segment_from_dict(s) for s in data.get("segments", [])],
        )
