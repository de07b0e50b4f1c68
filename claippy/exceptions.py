class ClaippyError(Exception):
    """Base class for errors surfaced to the caller."""

    pass


class FetchError(ClaippyError):
    """Reading a file or fetching a URL for context failed."""

    def __init__(self, ref, reason):
        self.ref = ref
        self.reason = reason
        super().__init__(f"Unable to fetch {ref}: {reason}")


class ContextUnavailable(ClaippyError):
    """
    A pending context reference could not be fetched.

    Attributes:
        ref: The reference whose fetch failed
        delivered: References that were resolved (and marked seen) earlier in
            the same resolve call, before the failure
    """

    def __init__(self, ref, delivered=None, reason=None):
        self.ref = ref
        self.delivered = list(delivered or [])
        message = f"Context unavailable: {ref}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class TransportError(ClaippyError):
    """The model request failed or its response stream broke off."""

    pass


class StoreError(ClaippyError):
    """Persisting or loading a conversation failed."""

    pass


class ConversationNotFound(StoreError):
    def __init__(self, conversation_id):
        self.conversation_id = conversation_id
        if conversation_id is None:
            super().__init__("No active conversation, start one with: claippy new <description>")
        else:
            super().__init__(f"No conversation named {conversation_id}")


class MalformedArtifactMarker:
    """
    Record of an artifact marker whose attributes could not be used as-is.

    Never raised: the segmenter keeps going with a placeholder and collects
    these for diagnostics.
    """

    def __init__(self, marker, problem):
        self.marker = marker
        self.problem = problem

    def __str__(self):
        return f"{self.problem}: {self.marker}"

    def __repr__(self):
        return f"MalformedArtifactMarker(marker={self.marker!r}, problem={self.problem!r})"
