import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List

from claippy.exceptions import ContextUnavailable, FetchError

logger = logging.getLogger(__name__)

URL_PREFIXES = ("http://", "https://")

ENVELOPE_TEMPLATE = '<source type="{kind}" ref="{ref}">\n{body}\n</source>'


class RefKind(str, Enum):
    FILE = "file"
    URL = "url"


@dataclass(frozen=True)
class ContextRef:
    """
    A workspace reference (file path or URL) that can be shown to the model.

    Equality and hashing use the literal string only; the kind is derived
    from it.
    """

    literal: str
    kind: RefKind = field(compare=False)

    @classmethod
    def parse(cls, raw: str) -> "ContextRef":
        kind = RefKind.URL if raw.startswith(URL_PREFIXES) else RefKind.FILE
        return cls(literal=raw, kind=kind)

    @property
    def is_url(self) -> bool:
        return self.kind is RefKind.URL

    def envelope(self, body: str) -> str:
        """Wrap fetched content in a tag naming where it came from."""
        return ENVELOPE_TEMPLATE.format(kind=self.kind.value, ref=self.literal, body=body)

    def __str__(self):
        return self.literal


Fetch = Callable[[ContextRef], str]


class ContextSet:
    """
    Tracks which references have been delivered to the model.

    ``unseen`` holds references waiting for the next user turn, ``seen``
    those already delivered. A reference is in at most one of the two. Both
    are ordered sets (dicts with ``None`` values) so resolution follows
    insertion order.
    """

    def __init__(self, seen: Iterable[str] = (), unseen: Iterable[str] = ()):
        self._seen: Dict[ContextRef, None] = {}
        self._unseen: Dict[ContextRef, None] = {}
        for raw in seen:
            self._seen[ContextRef.parse(raw)] = None
        for raw in unseen:
            ref = ContextRef.parse(raw)
            if ref not in self._seen:
                self._unseen[ref] = None

    @property
    def seen(self) -> List[ContextRef]:
        return list(self._seen)

    @property
    def unseen(self) -> List[ContextRef]:
        return list(self._unseen)

    def __contains__(self, raw) -> bool:
        ref = raw if isinstance(raw, ContextRef) else ContextRef.parse(raw)
        return ref in self._seen or ref in self._unseen

    def __len__(self) -> int:
        return len(self._seen) + len(self._unseen)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContextSet):
            return False
        return self.seen == other.seen and self.unseen == other.unseen

    def add(self, refs: Iterable[str]) -> List[ContextRef]:
        """Queue references for the next turn. Returns the ones newly queued."""
        added = []
        for raw in refs:
            ref = ContextRef.parse(raw)
            if ref in self._seen or ref in self._unseen:
                continue
            self._unseen[ref] = None
            added.append(ref)
        return added

    def remove(self, refs: Iterable[str]) -> List[ContextRef]:
        """Forget references wherever they are. Returns the ones removed."""
        removed = []
        for raw in refs:
            ref = ContextRef.parse(raw)
            if self._seen.pop(ref, False) is None or self._unseen.pop(ref, False) is None:
                removed.append(ref)
        return removed

    def resolve_pending(self, fetch: Fetch) -> List[str]:
        """
        Fetch every unseen reference and return its envelope.

        Each reference moves to ``seen`` right after its own fetch succeeds.
        If a fetch fails, references already moved stay seen and are listed
        on the raised ContextUnavailable.
        """
        envelopes = []
        delivered = []
        for ref in list(self._unseen):
            try:
                body = fetch(ref)
            except FetchError as err:
                raise ContextUnavailable(ref, delivered, err.reason) from err
            del self._unseen[ref]
            self._seen[ref] = None
            delivered.append(ref)
            envelopes.append(ref.envelope(body))
            logger.debug("Delivered context %s (%d chars)", ref, len(body))
        return envelopes

    def mark_unseen(self, refs: Iterable[ContextRef]) -> None:
        """Move specific seen references back to the front of ``unseen``, in order."""
        moved = {ref: None for ref in refs if self._seen.pop(ref, False) is None}
        self._unseen = {**moved, **self._unseen}

    def reset_to_unseen(self) -> None:
        """Move every seen reference back to ``unseen`` for re-delivery."""
        for ref in self._seen:
            self._unseen.setdefault(ref, None)
        self._seen.clear()

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "seen": [ref.literal for ref in self._seen],
            "unseen": [ref.literal for ref in self._unseen],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, List[str]]) -> "ContextSet":
        return cls(seen=data.get("seen", []), unseen=data.get("unseen", []))

    def __repr__(self):
        return f"ContextSet(seen={self.to_dict()['seen']}, unseen={self.to_dict()['unseen']})"
