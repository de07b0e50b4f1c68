import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from claippy.exceptions import ContextUnavailable

from .context import ContextSet, Fetch
from .segments import DEFAULT_SYNTAX, ArtifactSyntax, Role, Segment, TextSegment, Turn

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"
FORMAT_VERSION = 1


class Conversation:
    """
    Ordered user/assistant turn history together with its context set.

    The conversation owns both exclusively; callers change them only through
    the methods below and must not run two turns against one instance at
    the same time.
    """

    def __init__(self, conversation_id: str, context: Optional[ContextSet] = None, turns=None):
        self.id = conversation_id
        self.context = context if context is not None else ContextSet()
        self.turns: List[Turn] = list(turns or [])

    @classmethod
    def create(cls, conversation_id: str) -> "Conversation":
        return cls(conversation_id)

    @staticmethod
    def create_id(descriptor: str = "", now: Optional[datetime] = None) -> str:
        """
        Build a unique id from a human descriptor and the creation time.

        Ids sort roughly chronologically for a given descriptor and are safe
        to use as file names.
        """
        now = now or datetime.now(timezone.utc)
        descriptor = "-".join(descriptor.split())
        descriptor = re.sub(r"[^a-zA-Z0-9_.-]", "_", descriptor) or "conversation"
        return f"{descriptor}-{now.strftime('%Y%m%dT%H%M%S%fZ')}"

    def add_context(self, refs: Iterable[str]):
        return self.context.add(refs)

    def remove_context(self, refs: Iterable[str]):
        return self.context.remove(refs)

    def add_user_message(self, raw_text: str, fetch: Fetch) -> Turn:
        """
        Resolve pending context into a new user turn.

        If any context fetch fails nothing is appended and references
        resolved during this call go back to unseen, so the conversation is
        left as it was.
        """
        try:
            envelopes = self.context.resolve_pending(fetch)
        except ContextUnavailable as err:
            self.context.mark_unseen(err.delivered)
            raise

        content = "".join(envelope + CONTEXT_SEPARATOR for envelope in envelopes) + raw_text
        turn = Turn(Role.USER, [TextSegment(content)])
        self.turns.append(turn)
        return turn

    def add_assistant_message(self, segments: Iterable[Segment]) -> Turn:
        turn = Turn(Role.ASSISTANT, list(segments))
        self.turns.append(turn)
        return turn

    def clear(self) -> None:
        """Drop all turns; known context will be sent again on the next turn."""
        self.turns = []
        self.context.reset_to_unseen()

    def flatten_for_transmission(
        self, syntax: ArtifactSyntax = DEFAULT_SYNTAX
    ) -> List[Dict[str, str]]:
        """Messages for the model: one {role, content} dict per turn."""
        return [{"role": turn.role.value, "content": turn.literal(syntax)} for turn in self.turns]

    @property
    def last_turn(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "id": self.id,
            "context": self.context.to_dict(),
            "turns": [turn.to_dict() for turn in self.turns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conversation":
        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported conversation format version: {version}")
        return cls(
            data["id"],
            context=ContextSet.from_dict(data.get("context", {})),
            turns=[Turn.from_dict(t) for t in data.get("turns", [])],
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Conversation):
            return False
        return (
            self.id == other.id and self.context == other.context and self.turns == other.turns
        )

    def __repr__(self):
        return f"Conversation(id={self.id!r}, turns={len(self.turns)}, context={self.context!r})"
